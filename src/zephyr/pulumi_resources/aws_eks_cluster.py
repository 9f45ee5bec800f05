from __future__ import annotations

import dataclasses
import typing

import pulumi
import pulumi_aws as aws
import pulumi_eks as eks
import pulumi_kubernetes as k8s

import zephyr
import zephyr.aws_iam
import zephyr.oidc
import zephyr.pulumi_resources


@dataclasses.dataclass(frozen=True)
class ClusterSpec:
    vpc_id: pulumi.Input[str]
    public_subnet_ids: pulumi.Input[typing.Sequence[pulumi.Input[str]]]
    private_subnet_ids: pulumi.Input[typing.Sequence[pulumi.Input[str]]]
    instance_type: str = zephyr.DEFAULT_NODE_INSTANCE_TYPE
    min_size: int = zephyr.DEFAULT_MIN_CLUSTER_SIZE
    desired_size: int = zephyr.DEFAULT_DESIRED_CLUSTER_SIZE
    max_size: int = zephyr.DEFAULT_MAX_CLUSTER_SIZE
    node_associate_public_ip_address: bool = False

    @classmethod
    def from_config(
        cls,
        cfg: zephyr.ClusterConfig,
        vpc_id: pulumi.Input[str],
        public_subnet_ids: pulumi.Input[typing.Sequence[pulumi.Input[str]]],
        private_subnet_ids: pulumi.Input[typing.Sequence[pulumi.Input[str]]],
    ) -> ClusterSpec:
        return cls(
            vpc_id=vpc_id,
            public_subnet_ids=public_subnet_ids,
            private_subnet_ids=private_subnet_ids,
            instance_type=cfg.instance_type,
            min_size=cfg.min_size,
            desired_size=cfg.desired_size,
            max_size=cfg.max_size,
        )


# the IAM OIDC provider only exists when create_oidc_provider took effect
def oidc_provider_url(core: typing.Any) -> pulumi.Input[str] | None:
    return core.oidc_provider.url if core.oidc_provider is not None else None


def oidc_provider_arn(core: typing.Any) -> pulumi.Input[str] | None:
    return core.oidc_provider.arn if core.oidc_provider is not None else None


@dataclasses.dataclass(frozen=True)
class ClusterHandle:
    cluster_name: pulumi.Output[str]
    kubeconfig: pulumi.Output[str]
    node_security_group_id: pulumi.Output[str]
    oidc_issuer_url: pulumi.Output[str | None] | None
    oidc_provider_arn: pulumi.Output[str | None] | None
    provider: k8s.Provider


@dataclasses.dataclass
class ServiceAccount:
    name: str
    namespace: str

    def get_subject(self):
        """
        :return: The value to use in a condition for the sub (subject)
        """
        return zephyr.aws_iam.service_account_subject(self.namespace, self.name)


def trust_policy_input(
    issuer_url: str | None,
    account_id: str | None,
    service_account: ServiceAccount,
    *,
    cluster_name: str,
    dry_run: bool,
) -> pulumi.Input[str]:
    """
    The rendered trust policy for a service account role. During a preview without an issuer the policy is left
    unknown, never empty.
    """
    policy = zephyr.aws_iam.render_trust_policy(
        issuer_url,
        account_id,
        service_account.namespace,
        service_account.name,
        cluster_name=cluster_name,
        dry_run=dry_run,
    )
    if policy is None:
        return zephyr.pulumi_resources.unknown_output()

    return policy


class AWSEKSCluster(pulumi.ComponentResource):
    """
    Create an EKS cluster with a single managed node group inside an existing VPC.

    Example usage:
      ```
      cluster = AWSEKSCluster(
          name="zephyr-eks",
          spec=ClusterSpec(vpc_id=vpc_id, public_subnet_ids=pub, private_subnet_ids=priv),
          tags=tags,
      )
      role = cluster.create_service_account_role("collector", ServiceAccount("otel-collector", "opentelemetry"))
      cluster.with_otel_operator_addon(service_account_role_arn=role.arn)
      ```

    :param name: The name of the EKS cluster
    :param spec: The network and sizing inputs, passed through unmodified
    :param tags: Tags to attach to child resources
    :param oidc_enabled: Whether to create an IAM OIDC provider for IRSA
    :param dry_run: Whether this is a preview, in which a missing OIDC issuer is tolerated
    :param opts: Optional. Resource options
    """

    name: str
    spec: ClusterSpec
    tags: dict[str, str]
    oidc_enabled: bool
    dry_run: bool

    eks: eks.Cluster
    cluster_name: pulumi.Output[str]
    kubeconfig: pulumi.Output[str]
    node_security_group_id: pulumi.Output[str]
    oidc_issuer_url: pulumi.Output[str | None] | None
    oidc_provider_arn: pulumi.Output[str | None] | None
    provider: k8s.Provider
    otel_operator_addon: aws.eks.Addon | None

    def __init__(
        self,
        name: str,
        spec: ClusterSpec,
        tags: dict[str, str],
        *,
        oidc_enabled: bool = True,
        dry_run: bool = False,
        opts: pulumi.ResourceOptions | None = None,
    ):
        super().__init__(f"zephyr:{self.__class__.__name__}", name, None, opts)

        self.name = name
        self.spec = spec
        self.tags = tags
        self.oidc_enabled = oidc_enabled
        self.dry_run = dry_run
        self.otel_operator_addon = None

        self._define_cluster()
        self._define_oidc_issuer()
        self._define_provider()

        self.register_outputs(
            {
                "cluster_name": self.cluster_name,
                "kubeconfig": self.kubeconfig,
                "node_security_group_id": self.node_security_group_id,
            }
        )

    @property
    def handle(self) -> ClusterHandle:
        return ClusterHandle(
            cluster_name=self.cluster_name,
            kubeconfig=self.kubeconfig,
            node_security_group_id=self.node_security_group_id,
            oidc_issuer_url=self.oidc_issuer_url,
            oidc_provider_arn=self.oidc_provider_arn,
            provider=self.provider,
        )

    def _define_cluster(self) -> None:
        pulumi.log.info(
            f"Creating EKS cluster {self.name} with {self.spec.instance_type} nodes "
            f"(min={self.spec.min_size}, desired={self.spec.desired_size}, max={self.spec.max_size})"
        )

        self.eks = eks.Cluster(
            self.name,
            vpc_id=self.spec.vpc_id,
            public_subnet_ids=self.spec.public_subnet_ids,
            private_subnet_ids=self.spec.private_subnet_ids,
            instance_type=self.spec.instance_type,
            desired_capacity=self.spec.desired_size,
            min_size=self.spec.min_size,
            max_size=self.spec.max_size,
            node_associate_public_ip_address=self.spec.node_associate_public_ip_address,
            create_oidc_provider=self.oidc_enabled,
            tags={"Name": self.name} | self.tags,
            opts=pulumi.ResourceOptions(parent=self),
        )

        self.cluster_name = self.eks.eks_cluster.apply(lambda c: c.name)
        self.kubeconfig = self.eks.kubeconfig_json
        self.node_security_group_id = self.eks.node_security_group_id

    def _define_oidc_issuer(self) -> None:
        if not self.oidc_enabled:
            self.oidc_issuer_url = None
            self.oidc_provider_arn = None
            return

        name = self.name
        dry_run = self.dry_run

        issuer = self.eks.core.apply(oidc_provider_url)
        self.oidc_issuer_url = issuer.apply(lambda url: zephyr.oidc.require_oidc_issuer(url, name, dry_run=dry_run))
        self.oidc_provider_arn = self.eks.core.apply(oidc_provider_arn)

    def _define_provider(self) -> None:
        self.provider = k8s.Provider(
            f"{self.name}-k8s",
            args=k8s.ProviderArgs(
                enable_server_side_apply=True,
                kubeconfig=self.kubeconfig,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

    def create_service_account_role(
        self,
        role_name: str,
        service_account: ServiceAccount,
        managed_policies: typing.Sequence[str] = zephyr.COLLECTOR_MANAGED_POLICY_ARNS,
        opts: pulumi.ResourceOptions | None = None,
    ) -> aws.iam.Role:
        """
        Create a role that is assumable by exactly one service account through the cluster's OIDC issuer.

        :param role_name: The name of the role to create.
        :param service_account: The service account allowed to assume the role.
        :param managed_policies: Managed policy ARNs to attach to the role.
        :param opts: Optional resource options.
        :return: The aws.iam.Role
        """
        if self.oidc_issuer_url is None:
            msg = f"Cannot create service account role {role_name}: cluster {self.name} has OIDC support disabled"
            raise ValueError(msg)

        cluster_name = self.name
        dry_run = self.dry_run

        # We will need the account id and oidc_issuer_url to create the iam role policy
        account_id = aws.get_caller_identity_output().account_id
        assume_role_policy = pulumi.Output.all(self.oidc_issuer_url, account_id).apply(
            lambda args: trust_policy_input(
                args[0],
                args[1],
                service_account,
                cluster_name=cluster_name,
                dry_run=dry_run,
            )
        )

        role = aws.iam.Role(
            role_name,
            aws.iam.RoleArgs(
                assume_role_policy=assume_role_policy,
                tags=self.tags,
            ),
            opts=pulumi.ResourceOptions.merge(pulumi.ResourceOptions(parent=self), opts),
        )

        for policy_arn in managed_policies:
            aws.iam.RolePolicyAttachment(
                f"{role_name}-{policy_arn.rsplit('/', 1)[-1]}",
                policy_arn=policy_arn,
                role=role.name,
                opts=pulumi.ResourceOptions(parent=role),
            )

        return role

    def with_otel_operator_addon(
        self,
        version: str | None = None,
        service_account_role_arn: pulumi.Input[str] | None = None,
        opts: pulumi.ResourceOptions | None = None,
    ) -> aws.eks.Addon:
        """
        Add the AWS Distro for OpenTelemetry (adot) eks addon, which runs the collector operator.

        :param version: Optional, String, version of the addon to install, default: None
            By setting this to None, the latest version will be installed on first run, to upgrade versions later, you
            will need to specify a newer version.
        :param service_account_role_arn: Optional. IRSA role for the operator's service account
        :param opts: Optional. Resource options, eg: the cert-manager dependency
        :return: The addon
        """
        self.otel_operator_addon = aws.eks.Addon(
            f"{self.name}-{zephyr.OTEL_OPERATOR_ADDON}",
            args=aws.eks.AddonArgs(
                addon_name=zephyr.OTEL_OPERATOR_ADDON,
                addon_version=version,
                cluster_name=self.cluster_name,
                resolve_conflicts_on_create="OVERWRITE",
                resolve_conflicts_on_update="OVERWRITE",
                service_account_role_arn=service_account_role_arn,
                tags=self.tags,
            ),
            opts=pulumi.ResourceOptions.merge(pulumi.ResourceOptions(parent=self), opts),
        )

        return self.otel_operator_addon
