import typing

import pulumi

import zephyr


def stack_reference_name(base_stack: zephyr.BaseStackConfig) -> str:
    missing = [
        field
        for field, value in (
            ("organization", base_stack.organization),
            ("project", base_stack.project),
            ("stack", base_stack.stack),
        )
        if not value
    ]
    if missing:
        msg = f"Base stack reference {base_stack.name!r} is incomplete, missing: {', '.join(missing)}"
        raise ValueError(msg)

    return base_stack.name


class BaseStackOutputs:
    """
    Read-only view over the outputs of the already-deployed base (network) stack.

    Outputs that the base stack does not declare resolve to None through `get`. The network outputs the cluster
    is placed into always go through `require`, so a missing one fails once the cluster dereferences it.
    """

    base_stack: zephyr.BaseStackConfig
    stack_reference: pulumi.StackReference

    def __init__(
        self,
        base_stack: zephyr.BaseStackConfig,
        opts: pulumi.ResourceOptions | None = None,
    ):
        self.base_stack = base_stack
        name = stack_reference_name(base_stack)

        pulumi.log.info(f"Reading outputs from base stack {name}")
        self.stack_reference = pulumi.StackReference(name, opts=opts)

    def get(self, output_name: str) -> pulumi.Output[typing.Any]:
        return self.stack_reference.get_output(output_name)

    def require(self, output_name: str) -> pulumi.Output[typing.Any]:
        """
        :return: The output, failing only when it is dereferenced and the base stack does not declare it
        """
        stack_name = self.base_stack.name

        def check(value: typing.Any) -> typing.Any:
            if value is None:
                msg = f"Required output {output_name!r} not found in base stack {stack_name}"
                raise ValueError(msg)
            return value

        return self.get(output_name).apply(check)

    @property
    def vpc_id(self) -> pulumi.Output[str]:
        return self.require(zephyr.BASE_STACK_OUTPUT_VPC_ID)

    @property
    def private_subnet_ids(self) -> pulumi.Output[list[str]]:
        return self.require(zephyr.BASE_STACK_OUTPUT_PRIVATE_SUBNET_IDS)

    @property
    def public_subnet_ids(self) -> pulumi.Output[list[str]]:
        return self.require(zephyr.BASE_STACK_OUTPUT_PUBLIC_SUBNET_IDS)
