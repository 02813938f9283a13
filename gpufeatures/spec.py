"""Configuration types that drive label generation."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class SharingStrategy(str, enum.Enum):
    """How GPUs on the node are shared between workloads."""

    NONE = "none"
    TIME_SLICING = "time-slicing"
    MPS = "mps"


@dataclass
class ReplicatedResource:
    """A resource that is advertised as several replicas."""

    name: str = ""
    rename: str = ""
    replicas: int = 0


@dataclass
class ReplicatedResources:
    """The set of resources replicated under one sharing mechanism."""

    resources: list[ReplicatedResource] = field(default_factory=list)
    fail_requests_greater_than_one: bool = False

    def is_shared(self) -> bool:
        """Return True if any resource has more than one replica."""
        return any(r.replicas > 1 for r in self.resources)


@dataclass
class Sharing:
    """Sharing settings: time-slicing and, optionally, MPS."""

    time_slicing: ReplicatedResources = field(default_factory=ReplicatedResources)
    mps: ReplicatedResources | None = None

    def sharing_strategy(self) -> SharingStrategy:
        """Return the sharing strategy in effect."""
        if self.mps is not None and self.mps.is_shared():
            return SharingStrategy.MPS
        if self.time_slicing.is_shared():
            return SharingStrategy.TIME_SLICING
        return SharingStrategy.NONE

    def replicated_resources(self) -> ReplicatedResources:
        """Return the replicated resources of the strategy in effect."""
        if self.sharing_strategy() is SharingStrategy.MPS and self.mps is not None:
            return self.mps
        return self.time_slicing


@dataclass
class GFDFlags:
    """Settings specific to feature discovery."""

    machine_type_file: str = ""
    no_timestamp: bool = False


@dataclass
class Flags:
    """Command-line style settings."""

    mig_strategy: str = "none"
    gfd: GFDFlags = field(default_factory=GFDFlags)


@dataclass
class Config:
    """The full configuration."""

    flags: Flags = field(default_factory=Flags)
    sharing: Sharing = field(default_factory=Sharing)