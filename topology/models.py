from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class SubnetKind(str, Enum):
    """Which routing tier a subnet belongs to."""

    PUBLIC = "public"
    PRIVATE = "private"


class _ConfigModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class SubnetSpec(_ConfigModel):
    """One subnet: a CIDR block placed in a single availability zone."""

    az: str = Field(..., description="Availability zone")
    cidr: str = Field(..., description="CIDR block for the subnet")
    kind: SubnetKind = Field(default=SubnetKind.PUBLIC)


class SubnetsConfig(_ConfigModel):
    """Public and private subnet lists, in input order."""

    public: list[SubnetSpec] = Field(default_factory=list)
    private: list[SubnetSpec] = Field(default_factory=list)

    @field_validator("public", "private", mode="before")
    @classmethod
    def tag_subnet_kind(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return []
        if not isinstance(v, list):
            return v
        kind = SubnetKind(info.field_name)
        tagged = []
        for subnet in v:
            if isinstance(subnet, dict):
                subnet = {**subnet, "kind": kind}
            elif isinstance(subnet, SubnetSpec):
                subnet = subnet.model_copy(update={"kind": kind})
            tagged.append(subnet)
        return tagged


class VpcConfig(_ConfigModel):
    """VPC configuration."""

    name: str
    cidr: str
    subnets: SubnetsConfig = Field(default_factory=SubnetsConfig)


class NodeGroupSize(_ConfigModel):
    """Node group scaling bounds."""

    desired: int = Field(..., ge=0)
    min: int = Field(..., ge=0)
    max: int = Field(..., ge=0)


class NodeGroupSpec(_ConfigModel):
    """A managed node group, created once per cluster."""

    name: str
    az: str
    instance_types: list[str] = Field(..., alias="instanceTypes")
    size: NodeGroupSize


class ClusterAddonsConfig(_ConfigModel):
    """In-cluster add-ons installed through a Kubernetes provider."""

    cluster_autoscaler: bool = Field(default=False, alias="clusterAutoscaler")
    metrics_server: bool = Field(default=False, alias="metricsServer")

    @property
    def enabled(self) -> bool:
        return self.cluster_autoscaler or self.metrics_server


class EksConfig(_ConfigModel):
    """EKS clusters configuration."""

    count: int
    name_prefix: str = Field(..., alias="namePrefix")
    role_prefix: str = Field(..., alias="rolePrefix")
    node_group_role_prefix: str = Field(..., alias="nodeGroupRolePrefix")
    node_groups: list[NodeGroupSpec] = Field(default_factory=list, alias="nodeGroups")
    addons: ClusterAddonsConfig = Field(default_factory=ClusterAddonsConfig)

    @field_validator("node_groups", mode="before")
    @classmethod
    def default_node_groups(cls, v: Any) -> Any:
        return [] if v is None else v


class EnvironmentConfig(_ConfigModel):
    """Root of the configuration tree for one environment.

    Mirrors the `config` object of a stack: a VPC with its subnets and the
    EKS clusters placed inside it.
    """

    vpc: VpcConfig
    eks: EksConfig


class ValidationErrorDetail(BaseModel):
    """Single validation error detail."""

    field: str
    message: str
    value: Optional[str] = None


class ResourceKind(str, Enum):
    """Resource types a planner can emit."""

    VPC = "vpc"
    SUBNET = "subnet"
    INTERNET_GATEWAY = "internet_gateway"
    ROUTE_TABLE = "route_table"
    ROUTE = "route"
    ROUTE_TABLE_ASSOCIATION = "route_table_association"
    ELASTIC_IP = "elastic_ip"
    NAT_GATEWAY = "nat_gateway"
    IAM_ROLE = "iam_role"
    IAM_ROLE_POLICY_ATTACHMENT = "iam_role_policy_attachment"
    IAM_ROLE_POLICY = "iam_role_policy"
    EKS_CLUSTER = "eks_cluster"
    EKS_NODE_GROUP = "eks_node_group"
    KUBERNETES_PROVIDER = "kubernetes_provider"
    HELM_RELEASE = "helm_release"


@dataclass(frozen=True)
class ResourceRef:
    """Reference to an attribute of another descriptor, by logical name.

    `attribute=None` refers to the resource itself rather than one of its outputs.
    """

    logical_name: str
    attribute: Optional[str] = "id"


@dataclass(frozen=True)
class KubeconfigRef:
    """Kubeconfig document of a planned cluster, rendered once the cluster exists."""

    cluster: str
    region: str


ExportValue = Union[ResourceRef, KubeconfigRef]


@dataclass(frozen=True)
class ResourceDescriptor:
    kind: ResourceKind
    logical_name: str
    parent_ref: Optional[str] = None
    attributes: dict[str, Any] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "kind": self.kind.value,
            "logicalName": self.logical_name,
        }
        if self.parent_ref is not None:
            data["parentRef"] = self.parent_ref
        data["attributes"] = _to_plain(self.attributes)
        if self.tags:
            data["tags"] = dict(self.tags)
        return data


@dataclass(frozen=True)
class ExportBinding:
    """A named stack output."""

    name: str
    value: ExportValue

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": _to_plain(self.value)}


@dataclass
class NetworkPlan:
    """Output of network planning."""

    descriptors: list[ResourceDescriptor]
    vpc: str
    public_subnets: list[str]
    private_subnets: list[str]
    # availability zone -> private subnet logical name
    private_subnet_index: dict[str, str]
    exports: list[ExportBinding] = field(default_factory=list)


@dataclass
class ClusterPlan:
    """Output of cluster planning."""

    descriptors: list[ResourceDescriptor]
    cluster_names: list[str]
    exports: list[ExportBinding] = field(default_factory=list)


@dataclass
class EnvironmentPlan:
    """Complete, ordered plan for one planning run."""

    stack: str
    project: str
    region: str
    network: NetworkPlan
    clusters: ClusterPlan

    @property
    def descriptors(self) -> list[ResourceDescriptor]:
        return self.network.descriptors + self.clusters.descriptors

    @property
    def exports(self) -> list[ExportBinding]:
        return self.network.exports + self.clusters.exports

    def get(self, logical_name: str) -> ResourceDescriptor:
        for descriptor in self.descriptors:
            if descriptor.logical_name == logical_name:
                return descriptor
        raise KeyError(logical_name)

    def of_kind(self, kind: ResourceKind) -> list[ResourceDescriptor]:
        return [d for d in self.descriptors if d.kind == kind]

    def to_dict(self) -> dict[str, Any]:
        return {
            "stack": self.stack,
            "project": self.project,
            "region": self.region,
            "resources": [d.to_dict() for d in self.descriptors],
            "exports": [e.to_dict() for e in self.exports],
        }


def _to_plain(value: Any) -> Any:
    """Convert descriptor attribute values to JSON/YAML-safe data."""
    if isinstance(value, ResourceRef):
        return {"ref": value.logical_name, "attribute": value.attribute}
    if isinstance(value, KubeconfigRef):
        return {"kubeconfig": value.cluster, "region": value.region}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value
