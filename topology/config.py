"""Loading environment configuration from raw mappings and stack files."""

import logging
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from topology.errors import ConfigError
from topology.models import EnvironmentConfig, ValidationErrorDetail

logger = logging.getLogger(__name__)

CONFIG_KEY_SUFFIX = ":config"
REGION_KEY = "aws:region"


def _field_path(loc: tuple) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path


def load_environment_config(data: Any) -> EnvironmentConfig:
    """Validate a raw `config` mapping into an EnvironmentConfig.

    Raises ConfigError with one detail per schema problem.
    """
    if not isinstance(data, dict):
        raise ConfigError.single("config", "Configuration must be a mapping")

    try:
        return EnvironmentConfig.model_validate(data)
    except ValidationError as e:
        errors = [
            ValidationErrorDetail(
                field=_field_path(err["loc"]) or "config",
                message=err["msg"],
                value=None if isinstance(err.get("input"), (dict, list)) else _as_str(err.get("input")),
            )
            for err in e.errors()
        ]
        raise ConfigError(errors) from e


def _as_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def load_stack_file(path: str | Path, project: Optional[str] = None) -> tuple[EnvironmentConfig, str]:
    """Read a Pulumi stack file and return its environment config and AWS region.

    The environment config lives under `<project>:config`; when no project is
    given the first key ending in `:config` is used. A missing region is
    returned as an empty string.
    """
    path = Path(path)
    try:
        with path.open() as f:
            document = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigError.single("file", f"Stack file not found: {path}", str(path)) from e
    except OSError as e:
        raise ConfigError.single("file", f"Cannot read stack file {path}: {e}", str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigError.single("file", f"Invalid YAML in {path}: {e}", str(path)) from e

    if not isinstance(document, dict) or not isinstance(document.get("config"), dict):
        raise ConfigError.single("config", f"Stack file {path} has no 'config' section")

    stack_config: dict[str, Any] = document["config"]
    if project:
        key = f"{project}{CONFIG_KEY_SUFFIX}"
        if key not in stack_config:
            raise ConfigError.single(key, f"Stack file {path} has no '{key}' entry")
    else:
        keys = [k for k in stack_config if isinstance(k, str) and k.endswith(CONFIG_KEY_SUFFIX)]
        if not keys:
            raise ConfigError.single("config", f"Stack file {path} has no '<project>:config' entry")
        key = keys[0]

    logger.debug("Loading %s from %s", key, path)
    region = stack_config.get(REGION_KEY) or ""
    return load_environment_config(stack_config[key]), str(region)
