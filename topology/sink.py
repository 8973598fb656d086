"""Destinations for planned descriptors and export bindings."""

from typing import Protocol

from topology.models import ExportBinding, ResourceDescriptor


class ResourceSink(Protocol):
    """Receives descriptors in dependency order, then the export bindings.

    A descriptor's references always point at descriptors submitted earlier.
    """

    def submit(self, descriptor: ResourceDescriptor) -> None: ...

    def export(self, binding: ExportBinding) -> None: ...


class RecordingSink:
    """Sink that keeps everything it receives in memory."""

    def __init__(self) -> None:
        self.descriptors: list[ResourceDescriptor] = []
        self.exports: list[ExportBinding] = []

    def submit(self, descriptor: ResourceDescriptor) -> None:
        self.descriptors.append(descriptor)

    def export(self, binding: ExportBinding) -> None:
        self.exports.append(binding)

    @property
    def logical_names(self) -> list[str]:
        return [d.logical_name for d in self.descriptors]
