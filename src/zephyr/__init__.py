from __future__ import annotations

import dataclasses
import enum
import typing

if typing.TYPE_CHECKING:
    import pulumi

BASE_STACK_OUTPUT_VPC_ID = "vpcId"
BASE_STACK_OUTPUT_PRIVATE_SUBNET_IDS = "privSubnetIds"
BASE_STACK_OUTPUT_PUBLIC_SUBNET_IDS = "pubSubnetIds"

CERT_MANAGER_NAMESPACE = "cert-manager"
CERT_MANAGER_VERSION = "v1.18.1"
COLLECTOR_NAME = "otel-collector"
COLLECTOR_NAMESPACE = "opentelemetry"
COLLECTOR_SERVICE_ACCOUNT = "otel-collector"
DATADOG_API_KEY_SECRET = "datadog-apikey"  # noqa: S105
DATADOG_API_KEY_ENV = "DD_API_KEY"
DEFAULT_BASE_PROJECT = "zephyr-infra"
DEFAULT_DESIRED_CLUSTER_SIZE = 3
DEFAULT_MAX_CLUSTER_SIZE = 6
DEFAULT_MIN_CLUSTER_SIZE = 3
DEFAULT_NODE_INSTANCE_TYPE = "t3.medium"
OTEL_OPERATOR_ADDON = "adot"
STS_AUDIENCE = "sts.amazonaws.com"

ROLE_ARN_ANNOTATION = "eks.amazonaws.com/role-arn"


class TelemetryBackend(enum.StrEnum):
    AWS = "aws"
    DATADOG = "datadog"


class TagKeys(enum.StrEnum):
    ZEPHYR_MANAGED_BY = "zephyr/managed-by"
    ZEPHYR_STACK = "zephyr/stack"


class ManagedPolicies(enum.StrEnum):
    XRAY_WRITE = "arn:aws:iam::aws:policy/AWSXrayWriteOnlyAccess"
    PROMETHEUS_REMOTE_WRITE = "arn:aws:iam::aws:policy/AmazonPrometheusRemoteWriteAccess"
    CLOUDWATCH_AGENT = "arn:aws:iam::aws:policy/CloudWatchAgentServerPolicy"


COLLECTOR_MANAGED_POLICY_ARNS: tuple[str, ...] = (
    str(ManagedPolicies.XRAY_WRITE),
    str(ManagedPolicies.PROMETHEUS_REMOTE_WRITE),
    str(ManagedPolicies.CLOUDWATCH_AGENT),
)


@dataclasses.dataclass(frozen=True)
class BaseStackConfig:
    organization: str
    project: str
    stack: str

    @property
    def name(self) -> str:
        return f"{self.organization}/{self.project}/{self.stack}"


@dataclasses.dataclass(frozen=True)
class ClusterConfig:
    instance_type: str = DEFAULT_NODE_INSTANCE_TYPE
    min_size: int = DEFAULT_MIN_CLUSTER_SIZE
    desired_size: int = DEFAULT_DESIRED_CLUSTER_SIZE
    max_size: int = DEFAULT_MAX_CLUSTER_SIZE
    oidc_enabled: bool = True


@dataclasses.dataclass(frozen=True)
class TelemetryConfig:
    datadog_enabled: bool = False
    datadog_api_key: pulumi.Input[str] | None = None
    cert_manager_version: str = CERT_MANAGER_VERSION
    otel_operator_addon_version: str | None = None  # None installs the latest addon version

    @property
    def backend(self) -> TelemetryBackend:
        return TelemetryBackend.DATADOG if self.datadog_enabled else TelemetryBackend.AWS


@dataclasses.dataclass(frozen=True)
class ZephyrConfig:
    base_stack: BaseStackConfig
    cluster: ClusterConfig = dataclasses.field(default_factory=ClusterConfig)
    telemetry: TelemetryConfig = dataclasses.field(default_factory=TelemetryConfig)
