from unittest.mock import patch

import pulumi
import pytest

import zephyr
from zephyr.pulumi_resources.stack_outputs import BaseStackOutputs, stack_reference_name


def test_stack_reference_name() -> None:
    base_stack = zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev")

    assert stack_reference_name(base_stack) == "acme/zephyr-infra/dev"


def test_stack_reference_name_incomplete() -> None:
    base_stack = zephyr.BaseStackConfig(organization="", project="zephyr-infra", stack="")

    with pytest.raises(ValueError, match="missing: organization, stack"):
        stack_reference_name(base_stack)


def test_base_stack_outputs_reads_well_known_names() -> None:
    base_stack = zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev")

    with patch("zephyr.pulumi_resources.stack_outputs.pulumi.StackReference") as mock_ref:
        outputs = BaseStackOutputs(base_stack)

        mock_ref.assert_called_once_with("acme/zephyr-infra/dev", opts=None)

        reference = mock_ref.return_value
        raw = reference.get_output.return_value

        assert outputs.vpc_id is raw.apply.return_value
        reference.get_output.assert_called_with("vpcId")

        _ = outputs.private_subnet_ids
        reference.get_output.assert_called_with("privSubnetIds")

        _ = outputs.public_subnet_ids
        reference.get_output.assert_called_with("pubSubnetIds")

    assert raw.apply.call_count == 3


@pulumi.runtime.test
def test_require_passes_declared_output_through(pulumi_mocks: type[pulumi.runtime.Mocks]):
    pulumi.runtime.set_mocks(pulumi_mocks(), preview=False)
    base_stack = zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev")

    with patch("zephyr.pulumi_resources.stack_outputs.pulumi.StackReference") as mock_ref:
        mock_ref.return_value.get_output.return_value = pulumi.Output.from_input("vpc-123")
        outputs = BaseStackOutputs(base_stack)

    def check(vpc_id: str) -> None:
        assert vpc_id == "vpc-123"

    return outputs.require("vpcId").apply(check)


def test_require_fails_only_when_dereferenced() -> None:
    base_stack = zephyr.BaseStackConfig(organization="acme", project="zephyr-infra", stack="dev")

    with patch("zephyr.pulumi_resources.stack_outputs.pulumi.StackReference") as mock_ref:
        outputs = BaseStackOutputs(base_stack)
        output = outputs.require("natGatewayId")

    raw = mock_ref.return_value.get_output.return_value
    assert output is raw.apply.return_value

    (check,), _ = raw.apply.call_args
    assert check("nat-123") == "nat-123"
    with pytest.raises(ValueError, match="'natGatewayId' not found in base stack acme/zephyr-infra/dev"):
        check(None)
