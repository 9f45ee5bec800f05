"""Pulumi program entrypoint for the zephyr EKS cluster and its telemetry pipeline."""

import pulumi

from zephyr.pulumi_resources.zephyr_cluster import ZephyrCluster

zephyr_cluster = ZephyrCluster.autoload()
handle = zephyr_cluster.handle

pulumi.export("kubeconfig", pulumi.Output.secret(handle.kubeconfig))
pulumi.export("nodeSecurityGroup", handle.node_security_group_id)
pulumi.export("clusterName", handle.cluster_name)
pulumi.export("oidcIssuerUrl", handle.oidc_issuer_url)
pulumi.export("oidcProviderArn", handle.oidc_provider_arn)
pulumi.export("collectorRoleArn", zephyr_cluster.collector_role.arn if zephyr_cluster.collector_role else None)
pulumi.export("telemetryBackend", str(zephyr_cluster.pipeline.backend))
