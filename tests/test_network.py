"""Tests for VPC, subnet, gateway and routing planning"""
import pytest

from tests.helpers import build_config
from topology.errors import ConfigError, IndexMismatch
from topology.models import ResourceKind, ResourceRef
from topology.naming import NameAllocator
from topology.network import plan_network


@pytest.fixture
def network(config, names):
    return plan_network(config, names)


def by_name(network):
    return {d.logical_name: d for d in network.descriptors}


class TestNetworkOrder:
    """Test descriptor order and counts"""

    def test_descriptor_order(self, network):
        """Test that descriptors come out in dependency order"""
        assert [d.logical_name for d in network.descriptors] == [
            "dev-vpc",
            "dev-subnet-public0",
            "dev-subnet-public1",
            "dev-igw",
            "dev-public-rt",
            "dev-public-route",
            "dev-public-rta-0",
            "dev-public-rta-1",
            "dev-subnet-private0",
            "dev-subnet-private1",
            "dev-nat-eip-0",
            "dev-nat-gw-0",
            "dev-private-rt-0",
            "dev-private-route-0",
            "dev-private-rta-0",
            "dev-nat-eip-1",
            "dev-nat-gw-1",
            "dev-private-rt-1",
            "dev-private-route-1",
            "dev-private-rta-1",
        ]

    def test_summary(self, network):
        """Test the subnet lists and AZ index"""
        assert network.vpc == "dev-vpc"
        assert network.public_subnets == ["dev-subnet-public0", "dev-subnet-public1"]
        assert network.private_subnets == ["dev-subnet-private0", "dev-subnet-private1"]
        assert network.private_subnet_index == {
            "az-a": "dev-subnet-private0",
            "az-b": "dev-subnet-private1",
        }

    def test_vpc_export(self, network):
        """Test that the VPC id is exported"""
        assert [(e.name, e.value) for e in network.exports] == [("vpc-id", ResourceRef("dev-vpc"))]

    def test_no_subnets(self, raw_config, names):
        """Test that a VPC without subnets plans only the VPC and public routing"""
        raw_config["vpc"]["subnets"] = {"public": [], "private": []}
        network = plan_network(build_config(raw_config), names)
        assert [d.kind for d in network.descriptors] == [
            ResourceKind.VPC,
            ResourceKind.INTERNET_GATEWAY,
            ResourceKind.ROUTE_TABLE,
            ResourceKind.ROUTE,
        ]
        assert network.private_subnet_index == {}


class TestVpcAndSubnets:
    """Test VPC and subnet attributes"""

    def test_vpc(self, network):
        """Test the VPC CIDR, DNS settings and tags"""
        vpc = by_name(network)["dev-vpc"]
        assert vpc.parent_ref is None
        assert vpc.attributes == {
            "cidr_block": "10.0.0.0/16",
            "enable_dns_support": True,
            "enable_dns_hostnames": True,
        }
        assert vpc.tags == {
            "Name": "demo-vpc",
            "pulumi-stack": "dev",
            "pulumi-project": "eks-topology",
            "kubernetes.io/cluster/demo-0": "shared",
        }

    def test_public_subnet(self, network):
        """Test that public subnets carry the ELB role tag"""
        subnet = by_name(network)["dev-subnet-public1"]
        assert subnet.parent_ref == "dev-vpc"
        assert subnet.attributes == {
            "vpc_id": ResourceRef("dev-vpc"),
            "cidr_block": "10.0.2.0/24",
            "availability_zone": "az-b",
            "assign_ipv6_address_on_creation": False,
        }
        assert subnet.tags == {
            "Name": "public1",
            "kubernetes.io/role/elb": "1",
            "kubernetes.io/cluster/demo-0": "shared",
        }

    def test_private_subnet(self, network):
        """Test that private subnets carry the internal ELB role tag"""
        subnet = by_name(network)["dev-subnet-private0"]
        assert subnet.attributes["cidr_block"] == "10.0.3.0/24"
        assert subnet.tags == {
            "Name": "private0",
            "kubernetes.io/role/internal-lb": "1",
            "kubernetes.io/cluster/demo-0": "shared",
        }

    def test_shared_tags_for_every_cluster(self, raw_config):
        """Test that subnets are shared with every cluster"""
        names = NameAllocator("dev", "eks-topology", ["demo-0", "demo-1"])
        network = plan_network(build_config(raw_config), names)
        tags = by_name(network)["dev-subnet-public0"].tags
        assert tags["kubernetes.io/cluster/demo-0"] == "shared"
        assert tags["kubernetes.io/cluster/demo-1"] == "shared"


class TestRouting:
    """Test gateways, route tables and associations"""

    def test_public_route(self, network):
        """Test that the public default route goes through the internet gateway"""
        route = by_name(network)["dev-public-route"]
        assert route.parent_ref == "dev-public-rt"
        assert route.attributes == {
            "route_table_id": ResourceRef("dev-public-rt"),
            "destination_cidr_block": "0.0.0.0/0",
            "gateway_id": ResourceRef("dev-igw"),
        }

    def test_public_associations(self, network):
        """Test that every public subnet is associated with the public route table"""
        descriptors = by_name(network)
        for i in range(2):
            rta = descriptors[f"dev-public-rta-{i}"]
            assert rta.attributes == {
                "subnet_id": ResourceRef(f"dev-subnet-public{i}"),
                "route_table_id": ResourceRef("dev-public-rt"),
            }

    def test_nat_gateway_pairs_subnets_by_index(self, network):
        """Test that NAT gateway i sits in public subnet i with EIP i"""
        descriptors = by_name(network)
        for i in range(2):
            nat = descriptors[f"dev-nat-gw-{i}"]
            assert nat.parent_ref == f"dev-nat-eip-{i}"
            assert nat.attributes == {
                "subnet_id": ResourceRef(f"dev-subnet-public{i}"),
                "allocation_id": ResourceRef(f"dev-nat-eip-{i}"),
            }

    def test_elastic_ip(self, network):
        """Test that EIPs are VPC-scoped and parented to the VPC"""
        eip = by_name(network)["dev-nat-eip-0"]
        assert eip.parent_ref == "dev-vpc"
        assert eip.attributes == {"domain": "vpc"}

    def test_private_routes(self, network):
        """Test that private route table i routes through NAT gateway i"""
        descriptors = by_name(network)
        for i in range(2):
            assert descriptors[f"dev-private-rt-{i}"].parent_ref == f"dev-nat-gw-{i}"
            route = descriptors[f"dev-private-route-{i}"]
            assert route.attributes["nat_gateway_id"] == ResourceRef(f"dev-nat-gw-{i}")
            assert route.attributes["destination_cidr_block"] == "0.0.0.0/0"
            rta = descriptors[f"dev-private-rta-{i}"]
            assert rta.attributes["subnet_id"] == ResourceRef(f"dev-subnet-private{i}")


class TestNetworkErrors:
    """Test planning failures"""

    def test_more_private_than_public(self, raw_config, names):
        """Test that unequal subnet lists cannot be paired"""
        raw_config["vpc"]["subnets"]["public"].pop()
        with pytest.raises(IndexMismatch) as exc_info:
            plan_network(build_config(raw_config), names)
        assert exc_info.value.public_count == 1
        assert exc_info.value.private_count == 2

    def test_duplicate_private_az(self, raw_config, names):
        """Test that a second private subnet in one AZ fails planning"""
        raw_config["vpc"]["subnets"]["private"][1]["az"] = "az-a"
        with pytest.raises(ConfigError) as exc_info:
            plan_network(build_config(raw_config), names)
        assert exc_info.value.errors[0].field == "vpc.subnets.private[1].az"

    def test_malformed_vpc_cidr(self, raw_config, names):
        """Test that a VPC CIDR that is not a CIDR fails before planning"""
        raw_config["vpc"]["cidr"] = "not-a-cidr"
        with pytest.raises(ConfigError) as exc_info:
            plan_network(build_config(raw_config), names)
        assert [e.field for e in exc_info.value.errors] == ["vpc.cidr"]

    def test_subnet_outside_vpc(self, raw_config, names):
        """Test that subnet problems are reported together"""
        raw_config["vpc"]["subnets"]["public"][0]["cidr"] = "10.9.1.0/24"
        raw_config["vpc"]["subnets"]["private"][1]["cidr"] = "10.9.4.0/24"
        with pytest.raises(ConfigError) as exc_info:
            plan_network(build_config(raw_config), names)
        assert [e.field for e in exc_info.value.errors] == [
            "vpc.subnets.public[0].cidr",
            "vpc.subnets.private[1].cidr",
        ]
