import typing

import pulumi
import pulumi_kubernetes as kubernetes

import zephyr
import zephyr.telemetry

COLLECTOR_API_VERSION = "opentelemetry.io/v1alpha1"
COLLECTOR_KIND = "OpenTelemetryCollector"
HOST_LOG_DIR = "/var/log"


def select_collector_pipeline(
    use_saas_backend: bool,
    namespace: kubernetes.core.v1.Namespace,
    provider: pulumi.ProviderResource,
    *,
    datadog_api_key: pulumi.Input[str] | None = None,
    name: str = zephyr.COLLECTOR_NAME,
    parent: pulumi.Resource | None = None,
) -> zephyr.telemetry.CollectorPipeline:
    """
    Select exactly one collector pipeline. Only the Datadog branch creates resources: the API key secret that
    its single env binding reads from.

    :param use_saas_backend: True for Datadog, False for the AWS-native X-Ray pipeline
    :param namespace: The collector namespace
    :param provider: The kubernetes provider for the cluster
    :param datadog_api_key: Required for the Datadog branch
    :param name: Prefix for resource names
    :param parent: Optional. Parent for created resources
    :return: The rendered pipeline
    """
    if not use_saas_backend:
        pulumi.log.info("Telemetry backend: aws (X-Ray)")
        return zephyr.telemetry.aws_collector_pipeline()

    if datadog_api_key is None:
        msg = "Configuration 'datadogApiKey' is required when 'datadogEnabled' is true"
        raise ValueError(msg)

    pulumi.log.info("Telemetry backend: datadog")
    secret = kubernetes.core.v1.Secret(
        f"{name}-{zephyr.DATADOG_API_KEY_SECRET}",
        metadata=kubernetes.meta.v1.ObjectMetaArgs(
            name=zephyr.DATADOG_API_KEY_SECRET,
            namespace=namespace.metadata.name,
        ),
        string_data={
            "apiKey": pulumi.Output.secret(datadog_api_key),
        },
        opts=pulumi.ResourceOptions(parent=parent, provider=provider),
    )

    return zephyr.telemetry.datadog_collector_pipeline(secret_name=secret.metadata.name)


def collector_spec(
    pipeline: zephyr.telemetry.CollectorPipeline,
    service_account: pulumi.Input[str],
) -> dict[str, typing.Any]:
    spec: dict[str, typing.Any] = {
        "mode": "daemonset",
        "serviceAccount": service_account,
        "config": pipeline.config_yaml(),
        "volumes": [
            {
                "name": "varlog",
                "hostPath": {"path": HOST_LOG_DIR},
            },
        ],
        "volumeMounts": [
            {
                "name": "varlog",
                "mountPath": HOST_LOG_DIR,
                "readOnly": True,
            },
        ],
    }

    if pipeline.env:
        spec["env"] = pipeline.env_k8s()

    return spec


class OTelCollector(pulumi.ComponentResource):
    """The collector custom resource, reconciled into a node-local daemonset by the collector operator."""

    name: str
    namespace: pulumi.Input[str]
    pipeline: zephyr.telemetry.CollectorPipeline
    collector: kubernetes.apiextensions.CustomResource

    def __init__(
        self,
        name: str,
        namespace: pulumi.Input[str],
        pipeline: zephyr.telemetry.CollectorPipeline,
        service_account: pulumi.Input[str] = zephyr.COLLECTOR_SERVICE_ACCOUNT,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(
            f"zephyr:{self.__class__.__name__}",
            name,
            None,
            opts,
        )

        self.name = name
        self.namespace = namespace
        self.pipeline = pipeline

        self.collector = kubernetes.apiextensions.CustomResource(
            name,
            api_version=COLLECTOR_API_VERSION,
            kind=COLLECTOR_KIND,
            metadata=kubernetes.meta.v1.ObjectMetaArgs(
                name=zephyr.COLLECTOR_NAME,
                namespace=namespace,
                labels={str(zephyr.TagKeys.ZEPHYR_MANAGED_BY): "zephyr"},
            ),
            spec=collector_spec(pipeline, service_account),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.register_outputs({"backend": str(pipeline.backend)})
