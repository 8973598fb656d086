from dataclasses import dataclass

import pulumi

from topology.config import load_environment_config
from topology.models import EnvironmentConfig


@dataclass
class PulumiStackConfig:
    """Stack configuration loaded from Pulumi config for use in infrastructure code."""

    stack: str
    project: str
    region: str
    environment: EnvironmentConfig


def load_stack_config() -> PulumiStackConfig:
    """Load the `config` object and `aws:region` of the current stack."""
    config = pulumi.Config()
    aws_config = pulumi.Config("aws")

    return PulumiStackConfig(
        stack=pulumi.get_stack(),
        project=pulumi.get_project(),
        region=aws_config.require("region"),
        environment=load_environment_config(config.require_object("config")),
    )
