from __future__ import annotations

import json
import typing

import zephyr
import zephyr.oidc


class AwsPolicyDocumentCondition(typing.TypedDict):
    StringEquals: dict[str, str]


class AwsPolicyDocumentStatementPrincipal(typing.TypedDict):
    Federated: str


class AwsPolicyDocumentStatement(typing.TypedDict):
    Effect: str
    Principal: AwsPolicyDocumentStatementPrincipal
    Action: str
    Condition: AwsPolicyDocumentCondition


class TrustPolicyDocument(typing.TypedDict):
    Version: str
    Statement: list[AwsPolicyDocumentStatement]


def service_account_subject(namespace: str, service_account: str) -> str:
    return f"system:serviceaccount:{namespace}:{service_account}"


def oidc_provider_arn(account_id: str, issuer_url: str) -> str:
    return f"arn:aws:iam::{account_id}:oidc-provider/{zephyr.oidc.strip_scheme(issuer_url)}"


def build_irsa_role_assume_role_policy(
    issuer_url: str,
    account_id: str,
    namespace: str,
    service_account: str,
) -> TrustPolicyDocument:
    """
    Build a trust policy that lets exactly one Kubernetes service account assume a role through the cluster's
    OIDC issuer, without static credentials.

    Modelled after https://docs.aws.amazon.com/eks/latest/userguide/associate-service-account-role.html

    :param issuer_url: The cluster's OIDC issuer, with or without scheme
    :param account_id: The AWS account that owns the OIDC provider
    :param namespace: The namespace of the service account
    :param service_account: The name of the service account
    :return: The trust policy document with a single statement
    """
    issuer = zephyr.oidc.strip_scheme(issuer_url)

    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Principal": {
                    "Federated": oidc_provider_arn(account_id, issuer_url),
                },
                "Action": "sts:AssumeRoleWithWebIdentity",
                "Condition": {
                    "StringEquals": {
                        f"{issuer}:aud": zephyr.STS_AUDIENCE,
                        f"{issuer}:sub": service_account_subject(namespace, service_account),
                    },
                },
            }
        ],
    }


def render_trust_policy(
    issuer_url: str | None,
    account_id: str | None,
    namespace: str,
    service_account: str,
    *,
    cluster_name: str,
    dry_run: bool,
) -> str | None:
    """
    Render the trust policy as JSON once its inputs are known.

    A missing issuer or account id fails a real apply, and short-circuits to None during a preview. A trust
    document with an empty principal is never produced.
    """
    if not issuer_url or not account_id:
        if dry_run:
            return None
        raise RuntimeError(zephyr.oidc.missing_oidc_provider_message(cluster_name))

    return json.dumps(build_irsa_role_assume_role_policy(issuer_url, account_id, namespace, service_account))
