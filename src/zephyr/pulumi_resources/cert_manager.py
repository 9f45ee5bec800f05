import typing

import pulumi
import pulumi_kubernetes as k8s

import zephyr
import zephyr.pulumi_resources

CERT_MANAGER_MANIFEST_URL = "https://github.com/cert-manager/cert-manager/releases/download/{version}/cert-manager.yaml"


def cert_manager_manifest_url(version: str) -> str:
    if not version.startswith("v"):
        version = f"v{version}"
    return CERT_MANAGER_MANIFEST_URL.format(version=version)


def add_managed_by_label(obj: dict[str, typing.Any], _: pulumi.ResourceOptions) -> None:
    """
    Pulumi transformation to inject the zephyr/managed-by label into all resources.

    Args:
        obj: The Kubernetes resource object to transform
        _: Pulumi resource options (unused)
    """
    obj.setdefault("metadata", {})
    if obj["metadata"].get("labels") is None:
        obj["metadata"]["labels"] = {}

    obj["metadata"]["labels"][str(zephyr.TagKeys.ZEPHYR_MANAGED_BY)] = "zephyr"


TRANSFORMATIONS: list[zephyr.pulumi_resources.ResourceTransformationFunc] = [add_managed_by_label]


class CertManager(pulumi.ComponentResource):
    """cert-manager applied from its released manifest, which the collector operator's webhooks rely on."""

    name: str
    version: str
    manifest: k8s.yaml.ConfigFile

    def __init__(
        self,
        name: str,
        version: str = zephyr.CERT_MANAGER_VERSION,
        *args,
        **kwargs,
    ):
        super().__init__(
            f"zephyr:{self.__class__.__name__}",
            f"{name}-cert-manager",
            None,
            *args,
            **kwargs,
        )

        self.name = name
        self.version = version

        self._define_manifest()

        self.register_outputs({})

    def _define_manifest(self):
        self.manifest = k8s.yaml.ConfigFile(
            f"{self.name}-cert-manager",
            file=cert_manager_manifest_url(self.version),
            transformations=TRANSFORMATIONS,
            opts=pulumi.ResourceOptions(parent=self),
        )
