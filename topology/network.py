"""Network planning: VPC, subnets, gateways and routing."""

import logging

from topology.errors import ConfigError, IndexMismatch
from topology.models import (
    EnvironmentConfig,
    ExportBinding,
    NetworkPlan,
    ResourceDescriptor,
    ResourceKind,
    ResourceRef,
)
from topology.naming import NameAllocator
from topology.validation import validate_subnets, validate_vpc

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_CIDR = "0.0.0.0/0"
PUBLIC_SUBNET_ROLE_TAG = "kubernetes.io/role/elb"
PRIVATE_SUBNET_ROLE_TAG = "kubernetes.io/role/internal-lb"


def plan_network(config: EnvironmentConfig, names: NameAllocator) -> NetworkPlan:
    """Plan the VPC and everything that routes traffic in and out of it.

    Every private subnet gets its own NAT gateway, placed in the public subnet
    with the same index, so both lists must have the same length. Invalid VPC
    or subnet settings raise ConfigError before anything is planned.
    """
    errors = validate_vpc(config.vpc) + validate_subnets(config.vpc)
    if errors:
        raise ConfigError(errors)

    public_specs = config.vpc.subnets.public
    private_specs = config.vpc.subnets.private
    if len(public_specs) != len(private_specs):
        raise IndexMismatch(len(public_specs), len(private_specs))

    descriptors: list[ResourceDescriptor] = []

    vpc_name = names.name("vpc")
    descriptors.append(
        ResourceDescriptor(
            kind=ResourceKind.VPC,
            logical_name=vpc_name,
            attributes={
                "cidr_block": config.vpc.cidr,
                "enable_dns_support": True,
                "enable_dns_hostnames": True,
            },
            tags={**names.stack_tags(config.vpc.name), **names.shared_tags()},
        )
    )
    vpc_id = ResourceRef(vpc_name)

    public_subnets: list[str] = []
    for i, spec in enumerate(public_specs):
        subnet_name = f"public{i}"
        logical_name = names.name("subnet", subnet_name)
        descriptors.append(
            _subnet(logical_name, vpc_name, spec.cidr, spec.az, names.subnet_tags(subnet_name, PUBLIC_SUBNET_ROLE_TAG))
        )
        public_subnets.append(logical_name)

    descriptors.extend(_plan_internet_gateway(names, vpc_name, public_subnets))

    private_subnets: list[str] = []
    private_subnet_index: dict[str, str] = {}
    for i, spec in enumerate(private_specs):
        subnet_name = f"private{i}"
        logical_name = names.name("subnet", subnet_name)
        descriptors.append(
            _subnet(logical_name, vpc_name, spec.cidr, spec.az, names.subnet_tags(subnet_name, PRIVATE_SUBNET_ROLE_TAG))
        )
        private_subnets.append(logical_name)
        private_subnet_index[spec.az] = logical_name

    descriptors.extend(_plan_nat_gateways(names, vpc_name, public_subnets, private_subnets))

    logger.info(
        "Planned network %s: %d public and %d private subnets, %d descriptors",
        vpc_name,
        len(public_subnets),
        len(private_subnets),
        len(descriptors),
    )

    return NetworkPlan(
        descriptors=descriptors,
        vpc=vpc_name,
        public_subnets=public_subnets,
        private_subnets=private_subnets,
        private_subnet_index=private_subnet_index,
        exports=[ExportBinding("vpc-id", vpc_id)],
    )


def _subnet(logical_name: str, vpc: str, cidr: str, az: str, tags: dict[str, str]) -> ResourceDescriptor:
    return ResourceDescriptor(
        kind=ResourceKind.SUBNET,
        logical_name=logical_name,
        parent_ref=vpc,
        attributes={
            "vpc_id": ResourceRef(vpc),
            "cidr_block": cidr,
            "availability_zone": az,
            "assign_ipv6_address_on_creation": False,
        },
        tags=tags,
    )


def _plan_internet_gateway(
    names: NameAllocator,
    vpc: str,
    public_subnets: list[str],
) -> list[ResourceDescriptor]:
    """Internet gateway plus the public route table shared by all public subnets."""
    igw = names.name("igw")
    route_table = names.name("public-rt")

    descriptors = [
        ResourceDescriptor(
            kind=ResourceKind.INTERNET_GATEWAY,
            logical_name=igw,
            parent_ref=vpc,
            attributes={"vpc_id": ResourceRef(vpc)},
        ),
        ResourceDescriptor(
            kind=ResourceKind.ROUTE_TABLE,
            logical_name=route_table,
            parent_ref=vpc,
            attributes={"vpc_id": ResourceRef(vpc)},
        ),
        ResourceDescriptor(
            kind=ResourceKind.ROUTE,
            logical_name=names.name("public-route"),
            parent_ref=route_table,
            attributes={
                "route_table_id": ResourceRef(route_table),
                "destination_cidr_block": DEFAULT_ROUTE_CIDR,
                "gateway_id": ResourceRef(igw),
            },
        ),
    ]

    for i, subnet in enumerate(public_subnets):
        descriptors.append(
            ResourceDescriptor(
                kind=ResourceKind.ROUTE_TABLE_ASSOCIATION,
                logical_name=names.name("public-rta", i),
                parent_ref=route_table,
                attributes={
                    "subnet_id": ResourceRef(subnet),
                    "route_table_id": ResourceRef(route_table),
                },
            )
        )

    return descriptors


def _plan_nat_gateways(
    names: NameAllocator,
    vpc: str,
    public_subnets: list[str],
    private_subnets: list[str],
) -> list[ResourceDescriptor]:
    """One NAT gateway and private route table per private subnet."""
    descriptors: list[ResourceDescriptor] = []

    for i, (public_subnet, private_subnet) in enumerate(zip(public_subnets, private_subnets)):
        eip = names.name("nat-eip", i)
        nat = names.name("nat-gw", i)
        route_table = names.name("private-rt", i)

        descriptors.extend(
            [
                ResourceDescriptor(
                    kind=ResourceKind.ELASTIC_IP,
                    logical_name=eip,
                    parent_ref=vpc,
                    attributes={"domain": "vpc"},
                ),
                ResourceDescriptor(
                    kind=ResourceKind.NAT_GATEWAY,
                    logical_name=nat,
                    parent_ref=eip,
                    attributes={
                        "subnet_id": ResourceRef(public_subnet),
                        "allocation_id": ResourceRef(eip),
                    },
                ),
                ResourceDescriptor(
                    kind=ResourceKind.ROUTE_TABLE,
                    logical_name=route_table,
                    parent_ref=nat,
                    attributes={"vpc_id": ResourceRef(vpc)},
                ),
                ResourceDescriptor(
                    kind=ResourceKind.ROUTE,
                    logical_name=names.name("private-route", i),
                    parent_ref=route_table,
                    attributes={
                        "route_table_id": ResourceRef(route_table),
                        "destination_cidr_block": DEFAULT_ROUTE_CIDR,
                        "nat_gateway_id": ResourceRef(nat),
                    },
                ),
                ResourceDescriptor(
                    kind=ResourceKind.ROUTE_TABLE_ASSOCIATION,
                    logical_name=names.name("private-rta", i),
                    parent_ref=route_table,
                    attributes={
                        "subnet_id": ResourceRef(private_subnet),
                        "route_table_id": ResourceRef(route_table),
                    },
                ),
            ]
        )
        logger.debug("Planned NAT gateway %s in %s for %s", nat, public_subnet, private_subnet)

    return descriptors
