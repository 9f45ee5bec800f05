import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s

import zephyr
import zephyr.config
import zephyr.pulumi_resources.aws_eks_cluster
import zephyr.pulumi_resources.cert_manager
import zephyr.pulumi_resources.kubernetes_role
import zephyr.pulumi_resources.otel_collector
import zephyr.pulumi_resources.sequencing
import zephyr.pulumi_resources.stack_outputs
import zephyr.telemetry


class ZephyrCluster(pulumi.ComponentResource):
    """
    The EKS cluster plus its telemetry pipeline, wired in dependency order: base stack outputs, cluster,
    collector identity, pipeline selection, then cert-manager, the collector operator addon and the collector.
    """

    cfg: zephyr.ZephyrConfig
    dry_run: bool
    required_tags: dict[str, str]

    base_outputs: zephyr.pulumi_resources.stack_outputs.BaseStackOutputs
    cluster: zephyr.pulumi_resources.aws_eks_cluster.AWSEKSCluster
    handle: zephyr.pulumi_resources.aws_eks_cluster.ClusterHandle
    namespace: k8s.core.v1.Namespace
    collector_role: aws.iam.Role | None
    collector_rbac: zephyr.pulumi_resources.kubernetes_role.KubernetesClusterRole
    pipeline: zephyr.telemetry.CollectorPipeline
    sequencer: zephyr.pulumi_resources.sequencing.ResourceSequencer
    cert_manager: zephyr.pulumi_resources.cert_manager.CertManager
    otel_operator: aws.eks.Addon
    collector: zephyr.pulumi_resources.otel_collector.OTelCollector

    @classmethod
    def autoload(cls) -> "ZephyrCluster":
        cfg = zephyr.config.load_config(
            pulumi.Config(),
            organization=pulumi.get_organization(),
            stack=pulumi.get_stack(),
        )
        return cls(
            name=f"{pulumi.get_project()}-{pulumi.get_stack()}",
            cfg=cfg,
            dry_run=pulumi.runtime.is_dry_run(),
        )

    def __init__(self, name: str, cfg: zephyr.ZephyrConfig, *args, dry_run: bool = False, **kwargs):
        super().__init__(
            f"zephyr:{self.__class__.__name__}",
            name,
            *args,
            **kwargs,
        )

        self.name = name
        self.cfg = cfg
        self.dry_run = dry_run
        self.required_tags = {
            str(zephyr.TagKeys.ZEPHYR_MANAGED_BY): __name__,
            str(zephyr.TagKeys.ZEPHYR_STACK): name,
        }
        self.collector_role = None
        self.sequencer = zephyr.pulumi_resources.sequencing.ResourceSequencer(
            zephyr.pulumi_resources.sequencing.COLLECTOR_INSTALL_ORDER
        )

        self._define_cluster()
        self._define_namespace()
        self._define_collector_identity()
        self._define_pipeline()
        self._define_cert_manager()
        self._define_otel_operator()
        self._define_collector()

        self.register_outputs(
            {
                "kubeconfig": self.handle.kubeconfig,
                "node_security_group_id": self.handle.node_security_group_id,
                "telemetry_backend": str(self.pipeline.backend),
            }
        )

    @property
    def kube_opts(self) -> pulumi.ResourceOptions:
        return pulumi.ResourceOptions(parent=self, provider=self.handle.provider)

    def _define_cluster(self) -> None:
        self.base_outputs = zephyr.pulumi_resources.stack_outputs.BaseStackOutputs(
            self.cfg.base_stack,
            opts=pulumi.ResourceOptions(parent=self),
        )

        spec = zephyr.pulumi_resources.aws_eks_cluster.ClusterSpec.from_config(
            self.cfg.cluster,
            vpc_id=self.base_outputs.vpc_id,
            public_subnet_ids=self.base_outputs.public_subnet_ids,
            private_subnet_ids=self.base_outputs.private_subnet_ids,
        )

        self.cluster = zephyr.pulumi_resources.aws_eks_cluster.AWSEKSCluster(
            f"{self.name}-eks",
            spec=spec,
            tags=self.required_tags,
            oidc_enabled=self.cfg.cluster.oidc_enabled,
            dry_run=self.dry_run,
            opts=pulumi.ResourceOptions(parent=self),
        )
        self.handle = self.cluster.handle

    def _define_namespace(self) -> None:
        self.namespace = k8s.core.v1.Namespace(
            f"{self.name}-{zephyr.COLLECTOR_NAMESPACE}",
            metadata=k8s.meta.v1.ObjectMetaArgs(name=zephyr.COLLECTOR_NAMESPACE),
            opts=self.kube_opts,
        )

    def _define_collector_identity(self) -> None:
        annotations = {}

        if self.cfg.cluster.oidc_enabled:
            self.collector_role = self.cluster.create_service_account_role(
                role_name=f"{self.name}-{zephyr.COLLECTOR_NAME}",
                service_account=zephyr.pulumi_resources.aws_eks_cluster.ServiceAccount(
                    name=zephyr.COLLECTOR_SERVICE_ACCOUNT,
                    namespace=zephyr.COLLECTOR_NAMESPACE,
                ),
            )
            annotations[zephyr.ROLE_ARN_ANNOTATION] = self.collector_role.arn
        else:
            pulumi.log.warn(f"OIDC disabled for {self.name}; the collector runs with the node role's permissions")

        self.collector_rbac = zephyr.pulumi_resources.kubernetes_role.KubernetesClusterRole(
            name=self.name,
            service_account=zephyr.COLLECTOR_SERVICE_ACCOUNT,
            role_name=f"{zephyr.COLLECTOR_NAME}-read",
            namespace=self.namespace.metadata.name,
            rules=zephyr.pulumi_resources.kubernetes_role.COLLECTOR_READ_RULES,
            annotations=annotations,
            opts=self.kube_opts,
        )

    def _define_pipeline(self) -> None:
        self.pipeline = zephyr.pulumi_resources.otel_collector.select_collector_pipeline(
            self.cfg.telemetry.datadog_enabled,
            self.namespace,
            self.handle.provider,
            datadog_api_key=self.cfg.telemetry.datadog_api_key,
            name=self.name,
            parent=self,
        )

    def _define_cert_manager(self) -> None:
        self.cert_manager = zephyr.pulumi_resources.cert_manager.CertManager(
            self.name,
            version=self.cfg.telemetry.cert_manager_version,
            opts=self.sequencer.options(zephyr.pulumi_resources.sequencing.CERT_MANAGER, self.kube_opts),
        )
        self.sequencer.register(zephyr.pulumi_resources.sequencing.CERT_MANAGER, self.cert_manager)

    def _define_otel_operator(self) -> None:
        self.otel_operator = self.cluster.with_otel_operator_addon(
            version=self.cfg.telemetry.otel_operator_addon_version,
            service_account_role_arn=self.collector_role.arn if self.collector_role is not None else None,
            opts=self.sequencer.options(zephyr.pulumi_resources.sequencing.OTEL_OPERATOR),
        )
        self.sequencer.register(zephyr.pulumi_resources.sequencing.OTEL_OPERATOR, self.otel_operator)

    def _define_collector(self) -> None:
        self.collector = zephyr.pulumi_resources.otel_collector.OTelCollector(
            f"{self.name}-{zephyr.COLLECTOR_NAME}",
            namespace=self.namespace.metadata.name,
            pipeline=self.pipeline,
            service_account=self.collector_rbac.service_account.metadata.name,
            opts=self.sequencer.options(zephyr.pulumi_resources.sequencing.OTEL_COLLECTOR, self.kube_opts),
        )
        self.sequencer.register(zephyr.pulumi_resources.sequencing.OTEL_COLLECTOR, self.collector)
