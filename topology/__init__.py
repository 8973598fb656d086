"""VPC and EKS topology planning."""

from topology.errors import ConfigError, IndexMismatch, PlanningError, UnknownAvailabilityZone
from topology.models import EnvironmentConfig, EnvironmentPlan, ResourceDescriptor, ResourceKind
from topology.planner import plan_environment, submit_plan

__all__ = [
    "ConfigError",
    "EnvironmentConfig",
    "EnvironmentPlan",
    "IndexMismatch",
    "PlanningError",
    "ResourceDescriptor",
    "ResourceKind",
    "UnknownAvailabilityZone",
    "plan_environment",
    "submit_plan",
]
