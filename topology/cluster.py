"""EKS cluster planning: IAM roles, control planes, node groups and add-ons."""

import logging

from topology.errors import ConfigError, UnknownAvailabilityZone
from topology.models import (
    ClusterPlan,
    EnvironmentConfig,
    ExportBinding,
    KubeconfigRef,
    NetworkPlan,
    NodeGroupSpec,
    ResourceDescriptor,
    ResourceKind,
    ResourceRef,
)
from topology.naming import NameAllocator
from topology.policies import (
    CLUSTER_AUTOSCALER_POLICY,
    EKS_CLUSTER_ASSUME_ROLE_POLICY,
    EKS_CLUSTER_POLICIES,
    EKS_NODE_GROUP_ASSUME_ROLE_POLICY,
    EKS_NODE_GROUP_POLICIES,
    managed_policy_arn,
)
from topology.validation import validate_eks_config

logger = logging.getLogger(__name__)

ADDONS_NAMESPACE = "kube-system"
CLUSTER_AUTOSCALER_REPO = "https://kubernetes.github.io/autoscaler"
METRICS_SERVER_REPO = "https://kubernetes-sigs.github.io/metrics-server/"


def plan_clusters(
    config: EnvironmentConfig,
    names: NameAllocator,
    network: NetworkPlan,
    region: str,
) -> ClusterPlan:
    """Plan every EKS cluster with its IAM roles and node groups.

    Node groups are placed in the private subnet of their availability zone;
    an AZ without a private subnet fails the whole run before anything is
    planned. Invalid EKS settings raise ConfigError the same way.
    """
    eks = config.eks
    errors = validate_eks_config(eks)
    if errors:
        raise ConfigError(errors)

    private_subnet_index = network.private_subnet_index
    for cluster_name in names.clusters:
        for group in eks.node_groups:
            if group.az not in private_subnet_index:
                raise UnknownAvailabilityZone(cluster_name, group.name, group.az, list(private_subnet_index))

    descriptors: list[ResourceDescriptor] = []
    exports: list[ExportBinding] = []

    for cluster_name in names.clusters:
        role = _plan_iam_role(
            descriptors,
            logical_name=names.name("eks-role", cluster_name),
            role_name=f"{eks.role_prefix}-{cluster_name}",
            assume_role_policy=EKS_CLUSTER_ASSUME_ROLE_POLICY,
            attachment_prefix=names.name("eks-role-policy", cluster_name),
            policies=EKS_CLUSTER_POLICIES,
        )

        cluster = names.name("eks", cluster_name)
        descriptors.append(
            ResourceDescriptor(
                kind=ResourceKind.EKS_CLUSTER,
                logical_name=cluster,
                parent_ref=network.vpc,
                attributes={
                    "name": cluster_name,
                    "role_arn": ResourceRef(role, "arn"),
                    "vpc_config": {
                        "subnet_ids": [ResourceRef(subnet) for subnet in private_subnet_index.values()],
                    },
                },
            )
        )

        exports.extend(
            _plan_node_groups(descriptors, config, names, cluster_name, cluster, private_subnet_index)
        )

        kubeconfig = KubeconfigRef(cluster, region)
        if eks.addons.enabled:
            _plan_addons(descriptors, config, names, cluster_name, cluster, kubeconfig, region)

        exports.append(ExportBinding(f"eks-{cluster_name}", ResourceRef(cluster, "name")))
        exports.append(ExportBinding(f"kubeconfig-{cluster_name}", kubeconfig))

        logger.debug("Planned cluster %s with %d node groups", cluster_name, len(eks.node_groups))

    logger.info(
        "Planned %d clusters (%s), %d descriptors",
        len(names.clusters),
        ", ".join(names.clusters),
        len(descriptors),
    )

    return ClusterPlan(descriptors=descriptors, cluster_names=list(names.clusters), exports=exports)


def _plan_iam_role(
    descriptors: list[ResourceDescriptor],
    logical_name: str,
    role_name: str,
    assume_role_policy: str,
    attachment_prefix: str,
    policies: list[str],
) -> str:
    """IAM role with its AWS managed policy attachments; returns the role's logical name."""
    descriptors.append(
        ResourceDescriptor(
            kind=ResourceKind.IAM_ROLE,
            logical_name=logical_name,
            attributes={
                "name": role_name,
                "assume_role_policy": assume_role_policy,
            },
        )
    )

    for policy in policies:
        descriptors.append(
            ResourceDescriptor(
                kind=ResourceKind.IAM_ROLE_POLICY_ATTACHMENT,
                logical_name=f"{attachment_prefix}-{policy}",
                parent_ref=logical_name,
                attributes={
                    "role": ResourceRef(logical_name, "name"),
                    "policy_arn": managed_policy_arn(policy),
                },
            )
        )

    return logical_name


def _plan_node_groups(
    descriptors: list[ResourceDescriptor],
    config: EnvironmentConfig,
    names: NameAllocator,
    cluster_name: str,
    cluster: str,
    private_subnet_index: dict[str, str],
) -> list[ExportBinding]:
    eks = config.eks
    role = _plan_iam_role(
        descriptors,
        logical_name=names.name("node-group-role", cluster_name),
        role_name=f"{eks.node_group_role_prefix}-{cluster_name}",
        assume_role_policy=EKS_NODE_GROUP_ASSUME_ROLE_POLICY,
        attachment_prefix=names.name("node-group-role-policy", cluster_name),
        policies=EKS_NODE_GROUP_POLICIES,
    )

    descriptors.append(
        ResourceDescriptor(
            kind=ResourceKind.IAM_ROLE_POLICY,
            logical_name=names.name("autoscaler-policy", cluster_name),
            parent_ref=cluster,
            attributes={
                "role": ResourceRef(role, "name"),
                "policy": CLUSTER_AUTOSCALER_POLICY,
            },
        )
    )

    exports: list[ExportBinding] = []
    for group in eks.node_groups:
        node_group = names.name("node-group", cluster_name, group.name)
        descriptors.append(_node_group(node_group, cluster, role, private_subnet_index[group.az], group))
        exports.append(ExportBinding(f"{cluster_name}-node-group-{group.name}", ResourceRef(node_group)))

    return exports


def _node_group(
    logical_name: str,
    cluster: str,
    role: str,
    subnet: str,
    group: NodeGroupSpec,
) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.EKS_NODE_GROUP,
        logical_name=logical_name,
        parent_ref=cluster,
        attributes={
            "cluster_name": ResourceRef(cluster, "name"),
            "node_role_arn": ResourceRef(role, "arn"),
            "subnet_ids": [ResourceRef(subnet)],
            "instance_types": ",".join(group.instance_types),
            "scaling_config": {
                "desired_size": group.size.desired,
                "min_size": group.size.min,
                "max_size": group.size.max,
            },
        },
    )


def _plan_addons(
    descriptors: list[ResourceDescriptor],
    config: EnvironmentConfig,
    names: NameAllocator,
    cluster_name: str,
    cluster: str,
    kubeconfig: KubeconfigRef,
    region: str,
) -> None:
    """Kubernetes provider for the cluster and the Helm releases installed through it."""
    addons = config.eks.addons
    provider = names.name("k8s-provider", cluster_name)
    descriptors.append(
        ResourceDescriptor(
            kind=ResourceKind.KUBERNETES_PROVIDER,
            logical_name=provider,
            parent_ref=cluster,
            attributes={"kubeconfig": kubeconfig},
        )
    )

    if addons.cluster_autoscaler:
        descriptors.append(
            ResourceDescriptor(
                kind=ResourceKind.HELM_RELEASE,
                logical_name=names.name("cluster-autoscaler", cluster_name),
                parent_ref=cluster,
                attributes={
                    "provider": ResourceRef(provider, None),
                    "name": "cluster-autoscaler",
                    "chart": "cluster-autoscaler",
                    "namespace": ADDONS_NAMESPACE,
                    "repository_opts": {"repo": CLUSTER_AUTOSCALER_REPO},
                    "values": {
                        "autoDiscovery": {"clusterName": cluster_name},
                        "awsRegion": region,
                        "rbac": {"create": True},
                    },
                },
            )
        )

    if addons.metrics_server:
        descriptors.append(
            ResourceDescriptor(
                kind=ResourceKind.HELM_RELEASE,
                logical_name=names.name("metrics-server", cluster_name),
                parent_ref=cluster,
                attributes={
                    "provider": ResourceRef(provider, None),
                    "name": "metrics-server",
                    "chart": "metrics-server",
                    "namespace": ADDONS_NAMESPACE,
                    "repository_opts": {"repo": METRICS_SERVER_REPO},
                },
            )
        )
