"""
OpenTelemetry collector configuration documents.

Two mutually exclusive backends are supported. The AWS document sends traces to X-Ray. The Datadog document
is the AWS document plus host metrics, pod logs and the Datadog exporter, with traces delivered to both
X-Ray and Datadog.
"""

from __future__ import annotations

import copy
import dataclasses
import typing

import deepmerge  # type: ignore
import yaml

import zephyr

if typing.TYPE_CHECKING:
    import pulumi

OTLP_GRPC_ENDPOINT = "0.0.0.0:4317"
OTLP_HTTP_ENDPOINT = "0.0.0.0:4318"
SELF_METRICS_TARGET = "0.0.0.0:8888"
POD_LOGS_GLOB = "/var/log/pods/**/*.log"
DATADOG_SITE = "datadoghq.com"

# batch processor thresholds; whichever is reached first flushes
BATCH_SEND_MAX_SIZE = 100
BATCH_SEND_SIZE = 10
BATCH_TIMEOUT = "10s"


@dataclasses.dataclass(frozen=True)
class SecretKeyRef:
    name: pulumi.Input[str]
    key: str


@dataclasses.dataclass(frozen=True)
class EnvBinding:
    """An environment variable for the collector agent, from either a literal or a secret key."""

    name: str
    value: str | None = None
    secret_key_ref: SecretKeyRef | None = None

    def __post_init__(self):
        if (self.value is None) == (self.secret_key_ref is None):
            msg = f"Env binding {self.name!r} must set exactly one of 'value' or 'secret_key_ref'"
            raise ValueError(msg)

    def to_k8s(self) -> dict[str, typing.Any]:
        if self.secret_key_ref is not None:
            return {
                "name": self.name,
                "valueFrom": {
                    "secretKeyRef": {
                        "name": self.secret_key_ref.name,
                        "key": self.secret_key_ref.key,
                    },
                },
            }

        return {"name": self.name, "value": self.value}


@dataclasses.dataclass(frozen=True)
class CollectorPipeline:
    backend: zephyr.TelemetryBackend
    config: dict[str, typing.Any]
    env: tuple[EnvBinding, ...] = ()

    @property
    def exporters(self) -> list[str]:
        return list(self.config.get("exporters", {}))

    def config_yaml(self) -> str:
        return yaml.safe_dump(self.config, sort_keys=False)

    def env_k8s(self) -> list[dict[str, typing.Any]]:
        return [binding.to_k8s() for binding in self.env]


def _otlp_receiver() -> dict[str, typing.Any]:
    return {
        "protocols": {
            "grpc": {"endpoint": OTLP_GRPC_ENDPOINT},
            "http": {"endpoint": OTLP_HTTP_ENDPOINT},
        }
    }


def _self_scrape_receiver() -> dict[str, typing.Any]:
    # feeds the OpenTelemetry Collector dashboard
    return {
        "config": {
            "scrape_configs": [
                {
                    "job_name": "otelcol",
                    "scrape_interval": "10s",
                    "static_configs": [{"targets": [SELF_METRICS_TARGET]}],
                }
            ]
        }
    }


def _hostmetrics_receiver() -> dict[str, typing.Any]:
    def utilization(metric: str) -> dict[str, typing.Any]:
        return {"metrics": {metric: {"enabled": True}}}

    return {
        "collection_interval": "10s",
        "scrapers": {
            "paging": utilization("system.paging.utilization"),
            "cpu": utilization("system.cpu.utilization"),
            "disk": None,
            "filesystem": utilization("system.filesystem.utilization"),
            "load": None,
            "memory": None,
            "network": None,
            "processes": None,
        },
    }


def _filelog_receiver() -> dict[str, typing.Any]:
    return {
        "include_file_path": True,
        "poll_interval": "500ms",
        "include": [POD_LOGS_GLOB],
    }


def render_aws_collector_config() -> dict[str, typing.Any]:
    return {
        "receivers": {
            "otlp": _otlp_receiver(),
            "prometheus": _self_scrape_receiver(),
        },
        "processors": {
            "k8sattributes": None,
            "batch": {
                "send_batch_max_size": BATCH_SEND_MAX_SIZE,
                "send_batch_size": BATCH_SEND_SIZE,
                "timeout": BATCH_TIMEOUT,
            },
        },
        "exporters": {
            "awsxray": None,
        },
        "extensions": {
            "awsproxy": None,
        },
        "service": {
            "extensions": ["awsproxy"],
            "pipelines": {
                "traces": {
                    "receivers": ["otlp"],
                    "processors": ["k8sattributes", "batch"],
                    "exporters": ["awsxray"],
                },
            },
        },
    }


def render_datadog_collector_config() -> dict[str, typing.Any]:
    additions = {
        "receivers": {
            "hostmetrics": _hostmetrics_receiver(),
            "filelog": _filelog_receiver(),
        },
        "exporters": {
            "datadog": {
                "api": {
                    "site": DATADOG_SITE,
                    "key": f"${{env:{zephyr.DATADOG_API_KEY_ENV}}}",
                },
            },
        },
        "service": {
            "pipelines": {
                "logs": {
                    "receivers": ["otlp", "filelog"],
                    "processors": ["batch"],
                    "exporters": ["datadog"],
                },
                "metrics": {
                    "receivers": ["hostmetrics", "otlp"],
                    "processors": ["k8sattributes", "batch"],
                    "exporters": ["datadog"],
                },
                # lists are appended, so traces go to awsxray and datadog
                "traces": {
                    "exporters": ["datadog"],
                },
            },
        },
    }

    return deepmerge.always_merger.merge(copy.deepcopy(render_aws_collector_config()), additions)


def aws_collector_pipeline() -> CollectorPipeline:
    return CollectorPipeline(backend=zephyr.TelemetryBackend.AWS, config=render_aws_collector_config())


def datadog_collector_pipeline(secret_name: pulumi.Input[str]) -> CollectorPipeline:
    return CollectorPipeline(
        backend=zephyr.TelemetryBackend.DATADOG,
        config=render_datadog_collector_config(),
        env=(
            EnvBinding(
                name=zephyr.DATADOG_API_KEY_ENV,
                secret_key_ref=SecretKeyRef(name=secret_name, key="apiKey"),
            ),
        ),
    )
