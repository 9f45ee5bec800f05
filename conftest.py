"""Shared pytest fixtures for zephyr Pulumi tests.

This module provides common fixtures used across test files:
- pulumi_mocks: Standard Pulumi mock class for resource tests
- fake_config: Factory for an in-memory stand-in for pulumi.Config
- zephyr_config: ZephyrConfig with sensible defaults
"""

import pathlib
import sys
import typing

import pulumi
import pytest

HERE = pathlib.Path(__file__).absolute().parent

sys.path.insert(0, str(HERE / "src"))

import zephyr  # noqa: E402


# ============================================================================
# Pulumi Mock Fixtures
# ============================================================================


class StandardPulumiMocks(pulumi.runtime.Mocks):
    """Standard Pulumi mocks for testing Pulumi resources.

    This mock class implements the minimal interface required by Pulumi for
    testing. It returns resource names as IDs and echoes back all inputs as
    outputs. Calls return an account id so that aws.get_caller_identity works.
    """

    def new_resource(self, args: pulumi.runtime.MockResourceArgs) -> tuple[str | None, dict[typing.Any, typing.Any]]:
        """Mock resource creation - returns resource name as ID and inputs as outputs."""
        return args.name, dict(args.inputs)

    def call(
        self, args: pulumi.runtime.MockCallArgs
    ) -> dict[typing.Any, typing.Any] | tuple[dict[typing.Any, typing.Any], list[tuple[str, str]] | None]:
        """Mock function calls - returns a caller identity for getCallerIdentity, otherwise an empty dict."""
        if args.token == "aws:index/getCallerIdentity:getCallerIdentity":
            return {
                "accountId": "111122223333",
                "arn": "arn:aws:iam::111122223333:user/test",
                "userId": "test",
            }
        return {}


@pytest.fixture
def pulumi_mocks() -> type[pulumi.runtime.Mocks]:
    """Returns the standard Pulumi mocks class.

    The mocks are not automatically set - you must call set_mocks() in your test.

    Usage:
        @pulumi.runtime.test
        def test_my_resource(pulumi_mocks):
            pulumi.runtime.set_mocks(pulumi_mocks(), preview=False)
            # Now test your Pulumi resources
    """
    return StandardPulumiMocks


# ============================================================================
# Configuration Fixtures
# ============================================================================


class FakeConfig:
    """The subset of pulumi.Config that zephyr.config reads, backed by a dict."""

    def __init__(self, values: dict[str, typing.Any] | None = None):
        self.values = values or {}

    def get(self, key: str) -> str | None:
        value = self.values.get(key)
        return None if value is None else str(value)

    def get_int(self, key: str) -> int | None:
        value = self.values.get(key)
        return None if value is None else int(value)

    def get_bool(self, key: str) -> bool | None:
        value = self.values.get(key)
        if value is None:
            return None
        if isinstance(value, bool):
            return value
        return str(value).lower() == "true"

    def get_secret(self, key: str) -> typing.Any:
        return self.values.get(key)


@pytest.fixture
def fake_config() -> type[FakeConfig]:
    """Returns the FakeConfig class; instantiate it with a dict of config values.

    Usage:
        def test_something(fake_config):
            cfg = zephyr.config.load_config(fake_config({"minClusterSize": 4}), organization="o", stack="s")
    """
    return FakeConfig


@pytest.fixture
def zephyr_config() -> zephyr.ZephyrConfig:
    """A ZephyrConfig with default sizing and the AWS telemetry backend.

    - Base stack: "acme/zephyr-infra/dev"
    - Cluster: t3.medium, 3/3/6, OIDC enabled
    - Telemetry: AWS (X-Ray)
    """
    return zephyr.ZephyrConfig(
        base_stack=zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev"),
    )
