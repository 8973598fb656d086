import pulumi

from infra.config import load_stack_config
from infra.providers import create_aws_provider
from infra.sink import PulumiResourceSink
from topology.planner import plan_environment, submit_plan

config = load_stack_config()

aws_provider = create_aws_provider(config)

plan = plan_environment(
    config.environment,
    stack=config.stack,
    project=config.project,
    region=config.region,
)

pulumi.log.info(f"Creating {len(plan.descriptors)} resources for stack {config.stack}")

submit_plan(plan, PulumiResourceSink(provider=aws_provider))
