"""
Explicit ordering between resources whose dependency is semantic rather than visible through their inputs.

The Pulumi engine infers ordering from Output references. The collector stack also needs orderings that no
input expresses: the operator addon's webhooks require cert-manager, and the collector custom resource
requires the operator's CRDs. Those edges are declared here once and turned into `depends_on`.
"""

import dataclasses
import typing

import pulumi

CERT_MANAGER = "cert-manager"
OTEL_OPERATOR = "otel-operator"
OTEL_COLLECTOR = "otel-collector"


@dataclasses.dataclass(frozen=True)
class DependencyEdge:
    producer: str
    consumer: str


COLLECTOR_INSTALL_ORDER: tuple[DependencyEdge, ...] = (
    DependencyEdge(producer=CERT_MANAGER, consumer=OTEL_OPERATOR),
    DependencyEdge(producer=OTEL_OPERATOR, consumer=OTEL_COLLECTOR),
)


class ResourceSequencer:
    edges: tuple[DependencyEdge, ...]
    resources: dict[str, pulumi.Resource]

    def __init__(self, edges: typing.Iterable[DependencyEdge] = COLLECTOR_INSTALL_ORDER):
        self.edges = tuple(edges)
        self.resources = {}

    def producers(self, consumer: str) -> list[str]:
        return [edge.producer for edge in self.edges if edge.consumer == consumer]

    def register(self, key: str, resource: pulumi.Resource) -> pulumi.Resource:
        if key in self.resources:
            msg = f"Resource {key!r} is already registered with the sequencer"
            raise ValueError(msg)

        self.resources[key] = resource
        return resource

    def depends_on(self, consumer: str) -> list[pulumi.Resource]:
        deps = []
        for producer in self.producers(consumer):
            if producer not in self.resources:
                msg = f"Resource {consumer!r} must be defined after {producer!r}, which is not registered yet"
                raise ValueError(msg)
            deps.append(self.resources[producer])

        return deps

    def options(self, consumer: str, opts: pulumi.ResourceOptions | None = None) -> pulumi.ResourceOptions:
        """
        :param consumer: The key of the resource about to be defined
        :param opts: Optional. Resource options to extend
        :return: The options with the consumer's producers added to `depends_on`
        """
        deps = self.depends_on(consumer)
        if not deps:
            return opts or pulumi.ResourceOptions()

        return pulumi.ResourceOptions.merge(opts, pulumi.ResourceOptions(depends_on=deps))
