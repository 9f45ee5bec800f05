"""
OIDC issuer helpers for EKS IRSA (IAM Roles for Service Accounts).

The cluster's issuer URL is only known once the cluster exists, so these helpers are written to run inside
`pulumi.Output.apply` and to distinguish a preview, where the issuer may legitimately be absent, from a real
apply, where its absence is fatal.
"""

import pulumi

OIDC_SCHEMES = ("https://", "http://")


def strip_scheme(url: str) -> str:
    """Return the issuer host+path, eg: `oidc.eks.us-east-2.amazonaws.com/id/ABC`"""
    for scheme in OIDC_SCHEMES:
        if url.startswith(scheme):
            url = url[len(scheme) :]
            break

    return url.rstrip("/")


def missing_oidc_provider_message(cluster_name: str) -> str:
    return (
        f"Missing OIDC provider for cluster {cluster_name}: OIDC support was requested but the cluster "
        f"exposes no issuer URL"
    )


def require_oidc_issuer(issuer_url: str | None, cluster_name: str, *, dry_run: bool) -> str | None:
    """
    :param issuer_url: The issuer reported by the cluster, if any
    :param cluster_name: The cluster name, used for diagnostics
    :param dry_run: Whether this is a preview run
    :return: The issuer URL, or None during a preview when the issuer does not exist yet
    """
    if issuer_url:
        return issuer_url

    if dry_run:
        pulumi.log.info(f"No OIDC issuer for cluster {cluster_name} yet; tolerated during preview")
        return None

    raise RuntimeError(missing_oidc_provider_message(cluster_name))
