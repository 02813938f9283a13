"""Labels describing the GPU and MIG resources advertised on a node."""

from __future__ import annotations

from typing import Any, Mapping

from .labels import Empty, Labeler, LabelerError, Labels, merge
from .mig import Device
from .spec import Config, ReplicatedResource, ReplicatedResources

FULL_GPU_RESOURCE_NAME = "nvidia.com/gpu"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ResourceLabeler:
    """Builds labels whose keys are prefixed with a resource name."""

    def __init__(self, resource_name: str, config: Config | None) -> None:
        self.resource_name = resource_name
        self.replicated_resources: ReplicatedResources | None = (
            config.sharing.replicated_resources() if config is not None else None
        )

    def single(self, suffix: str, value: Any) -> Labels:
        """Return a single label ``<resource>.<suffix>``."""
        return self.labels({suffix: value})

    def labels(self, suffix_values: Mapping[str, Any]) -> Labels:
        """Return one label ``<resource>.<suffix>`` for each entry."""
        labels = Labels()
        for suffix, value in suffix_values.items():
            self.update_label(labels, suffix, value)
        return labels

    def update_label(self, labels: Labels, suffix: str, value: Any) -> None:
        """Set ``<resource>.<suffix>`` in ``labels`` to ``value``."""
        labels[self.key(suffix)] = _format_value(value)

    def key(self, suffix: str) -> str:
        """Return the label key ``<resource>.<suffix>``."""
        return f"{self.resource_name}.{suffix}"

    def base_labeler(self, count: int, *args: str) -> Labeler:
        """Return the product, count and replicas labels."""
        return merge(
            self.product_label(*args),
            self._count_label(count),
            self._replicas_label(),
        )

    def product_label(self, *args: str) -> Labels:
        """Return the product label built from the non-empty parts."""
        parts = [part.replace(" ", "-") for part in args if part]
        if not parts:
            return Labels()
        if self._is_shared() and not self._is_renamed():
            parts.append("SHARED")
        return self.single("product", "-".join(parts))

    def _count_label(self, count: int) -> Labels:
        return self.single("count", count)

    def _replicas_label(self) -> Labels:
        replicas = 1
        if self._sharing_disabled():
            replicas = 0
        else:
            info = self._replication_info()
            if info is not None and info.replicas > 1:
                replicas = info.replicas
        return self.single("replicas", replicas)

    def _sharing_disabled(self) -> bool:
        return self.replicated_resources is None

    def _is_shared(self) -> bool:
        info = self._replication_info()
        return info is not None and info.replicas > 1

    def _is_renamed(self) -> bool:
        info = self._replication_info()
        return info is not None and info.rename != ""

    def _replication_info(self) -> ReplicatedResource | None:
        if self.replicated_resources is None:
            return None
        return next(
            (r for r in self.replicated_resources.resources if r.name == self.resource_name),
            None,
        )


def new_gpu_resource_labeler_without_sharing(device: Device, count: int) -> Labeler:
    """Return a resource labeler for a full GPU that carries no sharing labels."""
    return new_gpu_resource_labeler(None, device, count)


def new_gpu_resource_labeler(config: Config | None, device: Device, count: int) -> Labeler:
    """Return a resource labeler for ``count`` full GPUs like ``device``."""
    if count == 0:
        return Empty()
    try:
        model = device.get_name()
    except Exception as err:
        raise LabelerError(f"failed to get device model: {err}") from err
    try:
        total_memory_mb = device.get_total_memory_mb()
    except Exception as err:
        raise LabelerError(f"failed to get memory info for device: {err}") from err

    labeler = ResourceLabeler(FULL_GPU_RESOURCE_NAME, config)
    try:
        architecture_labels = _new_architecture_labels(labeler, device)
    except LabelerError as err:
        raise LabelerError(f"failed to create architecture labels: {err}") from err

    memory_labeler: Labeler = Empty()
    if total_memory_mb != 0:
        memory_labeler = labeler.single("memory", total_memory_mb)

    return merge(labeler.base_labeler(count, model), memory_labeler, architecture_labels)


def new_mig_resource_labeler(
    resource_name: str, config: Config | None, device: Device, count: int
) -> Labeler:
    """Return a resource labeler for ``count`` MIG devices like ``device``."""
    if count == 0:
        return Empty()
    try:
        parent = device.get_device_handle_from_mig_device_handle()
    except Exception as err:
        raise LabelerError(f"failed to get parent of MIG device: {err}") from err
    try:
        model = parent.get_name()
    except Exception as err:
        raise LabelerError(f"failed to get device model: {err}") from err
    try:
        mig_profile = device.get_name()
    except Exception as err:
        raise LabelerError(f"failed to get MIG profile name: {err}") from err

    labeler = ResourceLabeler(resource_name, config)
    try:
        attributes = device.get_attributes()
    except Exception as err:
        raise LabelerError(
            f"failed to get MIG attribute labels: unable to get attributes of MIG device: {err}"
        ) from err

    return merge(
        labeler.base_labeler(count, model, "MIG", mig_profile),
        labeler.labels(attributes),
    )


def _new_architecture_labels(labeler: ResourceLabeler, device: Device) -> Labels:
    try:
        major, minor = device.get_cuda_compute_capability()
    except Exception as err:
        raise LabelerError(f"failed to determine CUDA compute capability: {err}") from err
    if major == 0:
        return Labels()
    return labeler.labels(
        {
            "family": get_arch_family(major, minor),
            "compute.major": major,
            "compute.minor": minor,
        }
    )


_ARCH_FAMILIES = {
    1: "tesla",
    2: "fermi",
    3: "kepler",
    5: "maxwell",
    6: "pascal",
    8: "ampere",
    9: "hopper",
}


def get_arch_family(compute_major: int, compute_minor: int) -> str:
    """Return the architecture family name for a CUDA compute capability."""
    if compute_major == 7:
        return "volta" if compute_minor < 5 else "turing"
    return _ARCH_FAMILIES.get(compute_major, "undefined")