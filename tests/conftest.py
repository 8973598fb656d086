"""Pytest configuration and shared fixtures for topology tests"""
import pytest

from topology.models import EnvironmentConfig
from topology.naming import NameAllocator
from topology.planner import plan_environment

STACK = "dev"
PROJECT = "eks-topology"
REGION = "us-east-1"


@pytest.fixture
def raw_config():
    """Two AZs with one public and one private subnet each, a single cluster"""
    return {
        "vpc": {
            "name": "demo-vpc",
            "cidr": "10.0.0.0/16",
            "subnets": {
                "public": [
                    {"az": "az-a", "cidr": "10.0.1.0/24"},
                    {"az": "az-b", "cidr": "10.0.2.0/24"},
                ],
                "private": [
                    {"az": "az-a", "cidr": "10.0.3.0/24"},
                    {"az": "az-b", "cidr": "10.0.4.0/24"},
                ],
            },
        },
        "eks": {
            "count": 1,
            "namePrefix": "demo",
            "rolePrefix": "demo-eks-role",
            "nodeGroupRolePrefix": "demo-node-group-role",
        },
    }


@pytest.fixture
def node_group():
    """A node group placed in az-a"""
    return {
        "name": "general",
        "az": "az-a",
        "instanceTypes": ["t3.medium", "t3.large"],
        "size": {"desired": 2, "min": 1, "max": 3},
    }


@pytest.fixture
def config(raw_config):
    return EnvironmentConfig.model_validate(raw_config)


@pytest.fixture
def names():
    return NameAllocator(STACK, PROJECT, ["demo-0"])


@pytest.fixture
def plan(config):
    return plan_environment(config, stack=STACK, project=PROJECT, region=REGION)
