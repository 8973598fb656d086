"""Helper functions for planner tests"""
from typing import Any

import yaml

from topology.models import EnvironmentConfig, KubeconfigRef, ResourceDescriptor, ResourceRef


def build_config(raw: dict) -> EnvironmentConfig:
    """Validate a raw config mapping into a model"""
    return EnvironmentConfig.model_validate(raw)


def referenced_names(value: Any) -> list[str]:
    """Logical names referenced anywhere inside an attribute value"""
    if isinstance(value, ResourceRef):
        return [value.logical_name]
    if isinstance(value, KubeconfigRef):
        return [value.cluster]
    if isinstance(value, dict):
        return [name for v in value.values() for name in referenced_names(v)]
    if isinstance(value, list):
        return [name for v in value for name in referenced_names(v)]
    return []


def dependencies(descriptor: ResourceDescriptor) -> list[str]:
    """Parent and attribute references of a descriptor"""
    names = referenced_names(descriptor.attributes)
    if descriptor.parent_ref is not None:
        names.append(descriptor.parent_ref)
    return names


def write_stack_file(path, raw_config: dict, region="us-east-1", project="eks-topology"):
    """Write a Pulumi stack file holding the given environment config"""
    stack_config = {f"{project}:config": raw_config}
    if region is not None:
        stack_config["aws:region"] = region
    path.write_text(yaml.safe_dump({"config": stack_config}))
    return path
