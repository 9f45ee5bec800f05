from __future__ import annotations

import typing

import pulumi

import zephyr

T = typing.TypeVar("T")


def _first_set(*values: T | None) -> T | None:
    for value in values:
        if value is not None and value != "":
            return value
    return None


def load_base_stack_config(config: pulumi.Config, *, organization: str, stack: str) -> zephyr.BaseStackConfig:
    """
    Each of organization, project and stack falls back in order: explicit config value (the ``base*``
    key, then its ``infra*`` alias), the current Pulumi context, and finally the hard-coded default.
    """
    return zephyr.BaseStackConfig(
        organization=_first_set(config.get("baseOrgName"), config.get("infraOrgName"), organization) or "",
        project=_first_set(config.get("baseProjName"), config.get("infraProjName"), zephyr.DEFAULT_BASE_PROJECT)
        or "",
        stack=_first_set(config.get("baseStackName"), config.get("infraStackName"), stack) or "",
    )


def load_cluster_config(config: pulumi.Config) -> zephyr.ClusterConfig:
    cluster = zephyr.ClusterConfig(
        instance_type=_first_set(config.get("eksNodeInstanceType"), zephyr.DEFAULT_NODE_INSTANCE_TYPE),
        min_size=_first_set(config.get_int("minClusterSize"), zephyr.DEFAULT_MIN_CLUSTER_SIZE),
        desired_size=_first_set(config.get_int("desiredClusterSize"), zephyr.DEFAULT_DESIRED_CLUSTER_SIZE),
        max_size=_first_set(config.get_int("maxClusterSize"), zephyr.DEFAULT_MAX_CLUSTER_SIZE),
        oidc_enabled=_first_set(config.get_bool("oidcEnabled"), True),
    )

    # Left for the EKS API to reject; values are never coerced here.
    if not cluster.min_size <= cluster.desired_size <= cluster.max_size:
        pulumi.log.warn(
            f"Cluster sizing is out of order (min={cluster.min_size}, desired={cluster.desired_size}, "
            f"max={cluster.max_size}); passing through unchanged"
        )

    return cluster


def load_telemetry_config(config: pulumi.Config) -> zephyr.TelemetryConfig:
    datadog_enabled = bool(_first_set(config.get_bool("datadogEnabled"), False))
    datadog_api_key = None

    if datadog_enabled:
        datadog_api_key = config.get_secret("datadogApiKey")
        if datadog_api_key is None:
            msg = "Configuration 'datadogApiKey' is required when 'datadogEnabled' is true"
            raise ValueError(msg)

    return zephyr.TelemetryConfig(
        datadog_enabled=datadog_enabled,
        datadog_api_key=datadog_api_key,
        cert_manager_version=_first_set(config.get("certManagerVersion"), zephyr.CERT_MANAGER_VERSION),
        otel_operator_addon_version=config.get("otelOperatorAddonVersion"),
    )


def load_config(config: pulumi.Config | None = None, *, organization: str, stack: str) -> zephyr.ZephyrConfig:
    """
    Read the stack configuration exactly once and return it as a frozen struct.

    :param config: The project config. Defaults to ``pulumi.Config()``.
    :param organization: The current Pulumi organization, used when no base org is configured.
    :param stack: The current Pulumi stack, used when no base stack is configured.
    :return: The ZephyrConfig for this run
    """
    if config is None:
        config = pulumi.Config()

    cfg = zephyr.ZephyrConfig(
        base_stack=load_base_stack_config(config, organization=organization, stack=stack),
        cluster=load_cluster_config(config),
        telemetry=load_telemetry_config(config),
    )

    pulumi.log.info(
        f"Loaded config: base stack {cfg.base_stack.name}, {cfg.cluster.instance_type} nodes "
        f"({cfg.cluster.min_size}/{cfg.cluster.desired_size}/{cfg.cluster.max_size}), "
        f"telemetry backend {cfg.telemetry.backend}"
    )
    return cfg
