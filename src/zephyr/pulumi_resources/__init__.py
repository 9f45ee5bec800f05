import asyncio
import typing

import pulumi

ResourceTransformationFunc = typing.Callable[[dict[str, typing.Any], pulumi.ResourceOptions], None]


def unknown_output() -> pulumi.Output[typing.Any]:
    """
    An Output whose value is not known, shown by a preview as computed. Only usable inside a running Pulumi
    program, eg: returned from an `apply`.
    """
    loop = asyncio.get_running_loop()

    resources: asyncio.Future[set[pulumi.Resource]] = loop.create_future()
    resources.set_result(set())
    value: asyncio.Future[typing.Any] = loop.create_future()
    value.set_result(None)
    is_known: asyncio.Future[bool] = loop.create_future()
    is_known.set_result(False)

    return pulumi.Output(resources, value, is_known)
