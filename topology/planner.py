"""Planning pipeline: validate, name, plan the network, then the clusters."""

import logging

from topology.cluster import plan_clusters
from topology.models import EnvironmentConfig, EnvironmentPlan
from topology.naming import NameAllocator, cluster_names
from topology.network import plan_network
from topology.sink import ResourceSink
from topology.validation import validate_config

logger = logging.getLogger(__name__)


def plan_environment(
    config: EnvironmentConfig,
    stack: str,
    project: str,
    region: str,
) -> EnvironmentPlan:
    """Plan every resource and export for one stack.

    The result is a pure function of the arguments. Any PlanningError is
    raised before a plan is returned, so callers never see a partial plan.
    """
    validate_config(config, region)

    names = NameAllocator(stack, project, cluster_names(config.eks))
    network = plan_network(config, names)
    clusters = plan_clusters(config, names, network, region)

    plan = EnvironmentPlan(
        stack=stack,
        project=project,
        region=region,
        network=network,
        clusters=clusters,
    )
    logger.info(
        "Planned stack %s: %d descriptors, %d exports",
        stack,
        len(plan.descriptors),
        len(plan.exports),
    )
    return plan


def submit_plan(plan: EnvironmentPlan, sink: ResourceSink) -> None:
    """Hand every descriptor to the sink in dependency order, then the exports."""
    for descriptor in plan.descriptors:
        logger.debug("Submitting %s %s", descriptor.kind.value, descriptor.logical_name)
        sink.submit(descriptor)

    for binding in plan.exports:
        sink.export(binding)
