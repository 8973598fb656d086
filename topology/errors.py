from typing import Sequence

from topology.models import ValidationErrorDetail


class PlanningError(Exception):
    """Base class for every failure raised while planning an environment."""


class ConfigError(PlanningError):
    """Exception raised when the environment configuration is missing or invalid."""

    def __init__(self, errors: list[ValidationErrorDetail]):
        self.errors = errors
        messages = [f"{e.field}: {e.message}" for e in errors]
        super().__init__(f"Configuration validation failed: {'; '.join(messages)}")

    @classmethod
    def single(cls, field: str, message: str, value: str | None = None) -> "ConfigError":
        return cls([ValidationErrorDetail(field=field, message=message, value=value)])


class IndexMismatch(PlanningError):
    """Public and private subnet lists cannot be paired by index."""

    def __init__(self, public_count: int, private_count: int):
        self.public_count = public_count
        self.private_count = private_count
        super().__init__(
            f"Each private subnet needs a public subnet at the same index for its NAT gateway: "
            f"got {public_count} public and {private_count} private subnets"
        )


class UnknownAvailabilityZone(PlanningError):
    """A node group is placed in an availability zone that has no private subnet."""

    def __init__(self, cluster: str, node_group: str, az: str, known_azs: Sequence[str]):
        self.cluster = cluster
        self.node_group = node_group
        self.az = az
        self.known_azs = list(known_azs)
        known = ", ".join(self.known_azs) or "none"
        super().__init__(
            f"Node group '{node_group}' of cluster '{cluster}' references availability zone "
            f"'{az}' which has no private subnet (private subnets exist in: {known})"
        )
