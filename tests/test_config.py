import pytest

import zephyr
import zephyr.config


def test_load_config_defaults(fake_config) -> None:
    cfg = zephyr.config.load_config(fake_config(), organization="acme", stack="dev")

    assert cfg.base_stack == zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev")
    assert cfg.base_stack.name == "acme/zephyr-infra/dev"
    assert cfg.cluster == zephyr.ClusterConfig(
        instance_type="t3.medium",
        min_size=3,
        desired_size=3,
        max_size=6,
        oidc_enabled=True,
    )
    assert cfg.telemetry.datadog_enabled is False
    assert cfg.telemetry.datadog_api_key is None
    assert cfg.telemetry.backend == zephyr.TelemetryBackend.AWS
    assert cfg.telemetry.cert_manager_version == "v1.18.1"
    assert cfg.telemetry.otel_operator_addon_version is None


def test_load_base_stack_config_prefers_base_keys(fake_config) -> None:
    config = fake_config(
        {
            "baseOrgName": "base-org",
            "infraOrgName": "infra-org",
            "infraProjName": "infra-proj",
            "infraStackName": "infra-stack",
        }
    )

    base_stack = zephyr.config.load_base_stack_config(config, organization="ctx-org", stack="ctx-stack")

    assert base_stack.organization == "base-org"
    assert base_stack.project == "infra-proj"
    assert base_stack.stack == "infra-stack"


def test_load_base_stack_config_ignores_empty_values(fake_config) -> None:
    config = fake_config({"baseOrgName": "", "baseStackName": ""})

    base_stack = zephyr.config.load_base_stack_config(config, organization="ctx-org", stack="ctx-stack")

    assert base_stack.name == "ctx-org/zephyr-infra/ctx-stack"


def test_load_cluster_config_reads_sizing(fake_config) -> None:
    config = fake_config(
        {
            "eksNodeInstanceType": "m5.large",
            "minClusterSize": "2",
            "desiredClusterSize": 4,
            "maxClusterSize": 8,
            "oidcEnabled": "false",
        }
    )

    cluster = zephyr.config.load_cluster_config(config)

    assert cluster.instance_type == "m5.large"
    assert (cluster.min_size, cluster.desired_size, cluster.max_size) == (2, 4, 8)
    assert cluster.oidc_enabled is False


def test_load_cluster_config_passes_out_of_order_sizing_through(fake_config) -> None:
    config = fake_config({"minClusterSize": 5, "desiredClusterSize": 1, "maxClusterSize": 2})

    cluster = zephyr.config.load_cluster_config(config)

    assert (cluster.min_size, cluster.desired_size, cluster.max_size) == (5, 1, 2)


def test_load_telemetry_config_requires_api_key_for_datadog(fake_config) -> None:
    with pytest.raises(ValueError, match="datadogApiKey"):
        zephyr.config.load_telemetry_config(fake_config({"datadogEnabled": True}))


def test_load_telemetry_config_datadog(fake_config) -> None:
    telemetry = zephyr.config.load_telemetry_config(
        fake_config(
            {
                "datadogEnabled": "true",
                "datadogApiKey": "dd-key",
                "certManagerVersion": "v1.17.0",
                "otelOperatorAddonVersion": "v0.117.0-eksbuild.1",
            }
        )
    )

    assert telemetry.backend == zephyr.TelemetryBackend.DATADOG
    assert telemetry.datadog_api_key == "dd-key"
    assert telemetry.cert_manager_version == "v1.17.0"
    assert telemetry.otel_operator_addon_version == "v0.117.0-eksbuild.1"


def test_load_telemetry_config_ignores_api_key_when_disabled(fake_config) -> None:
    telemetry = zephyr.config.load_telemetry_config(fake_config({"datadogApiKey": "dd-key"}))

    assert telemetry.backend == zephyr.TelemetryBackend.AWS
    assert telemetry.datadog_api_key is None


def test_zephyr_config_is_frozen(zephyr_config: zephyr.ZephyrConfig) -> None:
    with pytest.raises(AttributeError):
        zephyr_config.cluster = zephyr.ClusterConfig()  # type: ignore[misc]
