import pulumi
import pulumi_kubernetes as kubernetes


class KubernetesRoleRule:
    api_groups: list[str]
    resources: list[str]
    verbs: list[str]

    def __init__(self, api_groups: list[str], resources: list[str], verbs: list[str]):
        self.api_groups = api_groups
        self.resources = resources
        self.verbs = verbs


READ_VERBS = ["get", "list", "watch"]

# what k8sattributes and the prometheus/kubelet receivers need to read
COLLECTOR_READ_RULES: list[KubernetesRoleRule] = [
    KubernetesRoleRule(
        api_groups=[""],
        resources=["pods", "namespaces", "nodes", "nodes/stats", "nodes/proxy", "services", "endpoints", "events"],
        verbs=READ_VERBS,
    ),
    KubernetesRoleRule(api_groups=["apps"], resources=["replicasets"], verbs=READ_VERBS),
    KubernetesRoleRule(api_groups=["metrics.k8s.io"], resources=["pods", "nodes"], verbs=READ_VERBS),
]


class KubernetesClusterRole(pulumi.ComponentResource):
    """A service account bound to a cluster-wide role, optionally annotated (eg: with an IRSA role ARN)."""

    name: str
    service_account_name: str
    namespace: pulumi.Input[str]
    role_name: str
    annotations: dict[str, pulumi.Input[str]]
    rules: list[KubernetesRoleRule]

    role: kubernetes.rbac.v1.ClusterRole
    role_binding: kubernetes.rbac.v1.ClusterRoleBinding
    service_account: kubernetes.core.v1.ServiceAccount

    def __init__(
        self,
        name: str,
        service_account: str,
        role_name: str,
        namespace: pulumi.Input[str],
        rules: list[KubernetesRoleRule],
        annotations: dict[str, pulumi.Input[str]] | None = None,
        *args,
        **kwargs,
    ):
        super().__init__(
            f"zephyr:{self.__class__.__name__}",
            f"{name}-{role_name}",
            *args,
            **kwargs,
        )

        self.name = name
        self.service_account_name = service_account
        self.namespace = namespace
        self.role_name = role_name
        self.annotations = annotations or {}
        self.rules = rules

        self._define_service_account()
        self._define_role()
        self._define_role_binding()

        self.register_outputs({})

    def _define_service_account(self) -> None:
        self.service_account = kubernetes.core.v1.ServiceAccount(
            f"{self.name}-{self.service_account_name}",
            kubernetes.core.v1.ServiceAccountInitArgs(
                metadata=kubernetes.meta.v1.ObjectMetaArgs(
                    name=self.service_account_name,
                    namespace=self.namespace,
                    annotations=self.annotations,
                ),
                automount_service_account_token=True,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

    def _define_role(self) -> None:
        self.role = kubernetes.rbac.v1.ClusterRole(
            f"{self.name}-{self.role_name}",
            kubernetes.rbac.v1.ClusterRoleInitArgs(
                metadata=kubernetes.meta.v1.ObjectMetaArgs(
                    name=self.role_name,
                ),
                rules=[
                    kubernetes.rbac.v1.PolicyRuleArgs(
                        api_groups=rule.api_groups,
                        resources=rule.resources,
                        verbs=rule.verbs,
                    )
                    for rule in self.rules
                ],
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

    def _define_role_binding(self) -> None:
        self.role_binding = kubernetes.rbac.v1.ClusterRoleBinding(
            f"{self.name}-{self.role_name}",
            kubernetes.rbac.v1.ClusterRoleBindingInitArgs(
                metadata=kubernetes.meta.v1.ObjectMetaArgs(
                    name=self.role_name,
                ),
                subjects=[
                    kubernetes.rbac.v1.SubjectArgs(
                        kind="ServiceAccount",
                        name=self.service_account_name,
                        namespace=self.namespace,
                    ),
                ],
                role_ref=kubernetes.rbac.v1.RoleRefArgs(
                    api_group="rbac.authorization.k8s.io",
                    kind="ClusterRole",
                    name=self.role.metadata.name,
                ),
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )
