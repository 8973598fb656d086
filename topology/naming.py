"""Deterministic resource naming and tag derivation shared by the planners."""

from typing import Union

from topology.models import EksConfig

SHARED_OWNERSHIP_VALUE = "shared"


def cluster_names(eks: EksConfig) -> list[str]:
    """Cluster names `{namePrefix}-{i}` for i in [0, count)."""
    return [f"{eks.name_prefix}-{i}" for i in range(eks.count)]


def shared_ownership_tag(cluster_name: str) -> str:
    return f"kubernetes.io/cluster/{cluster_name}"


class NameAllocator:
    """Logical names and tags for one stack.

    Names are a pure function of the stack and the inputs, so planning the
    same configuration again yields the same names and the provisioning engine
    can match planned resources to existing ones.
    """

    def __init__(self, stack: str, project: str, clusters: list[str]):
        self.stack = stack
        self.project = project
        self.clusters = list(clusters)

    def name(self, kind: str, *suffix: Union[str, int]) -> str:
        """`{stack}-{kind}-{suffix}`; suffix parts are joined with '-'."""
        return "-".join([self.stack, kind, *(str(part) for part in suffix)])

    def shared_tags(self) -> dict[str, str]:
        return {shared_ownership_tag(name): SHARED_OWNERSHIP_VALUE for name in self.clusters}

    def stack_tags(self, name: str) -> dict[str, str]:
        return {
            "Name": name,
            "pulumi-stack": self.stack,
            "pulumi-project": self.project,
        }

    def subnet_tags(self, name: str, role_tag: str) -> dict[str, str]:
        return {
            "Name": name,
            role_tag: "1",
            **self.shared_tags(),
        }
