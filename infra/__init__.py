from infra.config import PulumiStackConfig, load_stack_config
from infra.providers import create_aws_provider
from infra.sink import PulumiResourceSink

__all__ = ["PulumiStackConfig", "load_stack_config", "create_aws_provider", "PulumiResourceSink"]
