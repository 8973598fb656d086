"""Realizes planned descriptors as Pulumi resources."""

from typing import Any, Optional

import pulumi
import pulumi_aws as aws
import pulumi_kubernetes as k8s

from topology.errors import PlanningError
from topology.models import (
    ExportBinding,
    KubeconfigRef,
    ResourceDescriptor,
    ResourceKind,
    ResourceRef,
)
from topology.policies import render_kubeconfig


def aws_resource_types() -> dict[ResourceKind, type]:
    return {
        ResourceKind.VPC: aws.ec2.Vpc,
        ResourceKind.SUBNET: aws.ec2.Subnet,
        ResourceKind.INTERNET_GATEWAY: aws.ec2.InternetGateway,
        ResourceKind.ROUTE_TABLE: aws.ec2.RouteTable,
        ResourceKind.ROUTE: aws.ec2.Route,
        ResourceKind.ROUTE_TABLE_ASSOCIATION: aws.ec2.RouteTableAssociation,
        ResourceKind.ELASTIC_IP: aws.ec2.Eip,
        ResourceKind.NAT_GATEWAY: aws.ec2.NatGateway,
        ResourceKind.IAM_ROLE: aws.iam.Role,
        ResourceKind.IAM_ROLE_POLICY_ATTACHMENT: aws.iam.RolePolicyAttachment,
        ResourceKind.IAM_ROLE_POLICY: aws.iam.RolePolicy,
        ResourceKind.EKS_CLUSTER: aws.eks.Cluster,
        ResourceKind.EKS_NODE_GROUP: aws.eks.NodeGroup,
    }


def kubernetes_resource_types() -> dict[ResourceKind, type]:
    return {
        ResourceKind.KUBERNETES_PROVIDER: k8s.Provider,
        ResourceKind.HELM_RELEASE: k8s.helm.v3.Release,
    }


def nested_args_types() -> dict[tuple[ResourceKind, str], type]:
    """Nested attributes passed as typed args."""
    return {
        (ResourceKind.EKS_CLUSTER, "vpc_config"): aws.eks.ClusterVpcConfigArgs,
        (ResourceKind.EKS_NODE_GROUP, "scaling_config"): aws.eks.NodeGroupScalingConfigArgs,
        (ResourceKind.HELM_RELEASE, "repository_opts"): k8s.helm.v3.RepositoryOptsArgs,
    }


class PulumiResourceSink:
    """Creates one Pulumi resource per descriptor and registers stack exports.

    AWS resources are created with the given AWS provider. Kubernetes
    resources use the provider named by their `provider` attribute.
    """

    def __init__(self, provider: Optional[aws.Provider] = None):
        self.provider = provider
        self.resources: dict[str, pulumi.Resource] = {}
        self._kubeconfigs: dict[str, pulumi.Output] = {}

    def submit(self, descriptor: ResourceDescriptor) -> pulumi.Resource:
        if descriptor.logical_name in self.resources:
            raise PlanningError(f"Resource {descriptor.logical_name} was already submitted")

        aws_types = aws_resource_types()
        kubernetes_types = kubernetes_resource_types()
        if descriptor.kind in aws_types:
            resource = self._create_aws_resource(descriptor, aws_types[descriptor.kind])
        elif descriptor.kind in kubernetes_types:
            resource = self._create_kubernetes_resource(descriptor, kubernetes_types[descriptor.kind])
        else:
            raise PlanningError(f"No Pulumi resource type for {descriptor.kind.value}")

        pulumi.log.debug(f"Registered {descriptor.kind.value} {descriptor.logical_name}")
        self.resources[descriptor.logical_name] = resource
        return resource

    def export(self, binding: ExportBinding) -> None:
        pulumi.export(binding.name, self._resolve(binding.value))

    def _create_aws_resource(self, descriptor: ResourceDescriptor, resource_type: type) -> pulumi.Resource:
        args = self._resolve_attributes(descriptor)

        if descriptor.kind == ResourceKind.EKS_NODE_GROUP and isinstance(args.get("instance_types"), str):
            args["instance_types"] = [t for t in args["instance_types"].split(",") if t]
        if descriptor.tags:
            args["tags"] = dict(descriptor.tags)

        opts = pulumi.ResourceOptions(parent=self._parent(descriptor), provider=self.provider)
        return resource_type(descriptor.logical_name, **args, opts=opts)

    def _create_kubernetes_resource(self, descriptor: ResourceDescriptor, resource_type: type) -> pulumi.Resource:
        args = self._resolve_attributes(descriptor)

        # the provider is a resource option, not an input
        provider = args.pop("provider", None)
        opts = pulumi.ResourceOptions(parent=self._parent(descriptor), provider=provider)
        return resource_type(descriptor.logical_name, **args, opts=opts)

    def _resolve_attributes(self, descriptor: ResourceDescriptor) -> dict[str, Any]:
        args_types = nested_args_types()
        args: dict[str, Any] = {}
        for key, value in descriptor.attributes.items():
            resolved = self._resolve(value, descriptor.logical_name)
            args_type = args_types.get((descriptor.kind, key))
            if args_type is not None and isinstance(resolved, dict):
                resolved = args_type(**resolved)
            args[key] = resolved
        return args

    def _parent(self, descriptor: ResourceDescriptor) -> Optional[pulumi.Resource]:
        if descriptor.parent_ref is None:
            return None
        return self._get(descriptor.parent_ref, descriptor.logical_name)

    def _get(self, logical_name: str, referrer: str) -> pulumi.Resource:
        try:
            return self.resources[logical_name]
        except KeyError:
            raise PlanningError(
                f"{referrer} refers to {logical_name}, which has not been submitted"
            ) from None

    def _resolve(self, value: Any, referrer: str = "export") -> Any:
        if isinstance(value, ResourceRef):
            resource = self._get(value.logical_name, referrer)
            if value.attribute is None:
                return resource
            return getattr(resource, value.attribute)
        if isinstance(value, KubeconfigRef):
            return self._kubeconfig(value, referrer)
        if isinstance(value, dict):
            return {k: self._resolve(v, referrer) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve(v, referrer) for v in value]
        return value

    def _kubeconfig(self, ref: KubeconfigRef, referrer: str) -> pulumi.Output:
        if ref.cluster not in self._kubeconfigs:
            cluster = self._get(ref.cluster, referrer)
            self._kubeconfigs[ref.cluster] = pulumi.Output.all(
                cluster.name,
                cluster.arn,
                cluster.endpoint,
                cluster.certificate_authority.apply(lambda ca: ca.data),
            ).apply(lambda args: render_kubeconfig(*args, region=ref.region))
        return self._kubeconfigs[ref.cluster]
