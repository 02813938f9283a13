"""Labelers built from the devices and driver reported by a device manager."""

from __future__ import annotations

import contextlib
from typing import Any

from .labels import (
    Empty,
    Labeler,
    LabelerError,
    Labels,
    VGPULabeler,
    merge,
    new_machine_type_labeler,
)
from .mig import Manager
from .mig_strategy import new_resource_labeler
from .spec import Config, SharingStrategy


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def new_nvml_labeler(manager: Manager, config: Config) -> Labeler:
    """Return the labeler for everything the device manager can report.

    The manager is initialised for the duration of the call and always shut
    down again afterwards.
    """
    try:
        manager.init()
    except Exception as err:
        raise LabelerError(f"failed to initialize NVML: {err}") from err
    try:
        return _build_nvml_labeler(manager, config)
    finally:
        with contextlib.suppress(Exception):
            manager.shutdown()


def _build_nvml_labeler(manager: Manager, config: Config) -> Labeler:
    try:
        devices = manager.get_devices()
    except Exception as err:
        raise LabelerError(f"error getting devices: {err}") from err
    if not devices:
        return Empty()

    machine_type_labeler = new_machine_type_labeler(config.flags.gfd.machine_type_file)

    try:
        version_labeler = new_version_labeler(manager)
    except LabelerError as err:
        raise LabelerError(f"failed to construct version labeler: {err}") from err

    try:
        mig_capability_labeler = new_mig_capability_labeler(manager)
    except LabelerError as err:
        raise LabelerError(f"error creating mig capability labeler: {err}") from err

    try:
        resource_labeler = new_resource_labeler(manager, config)
    except LabelerError as err:
        raise LabelerError(f"error creating resource labeler: {err}") from err

    return merge(
        machine_type_labeler,
        version_labeler,
        mig_capability_labeler,
        resource_labeler,
        new_sharing_labeler(config),
    )


def new_version_labeler(manager: Manager) -> Labels:
    """Return the driver and CUDA version labels."""
    try:
        driver_version = manager.get_driver_version()
    except Exception as err:
        raise LabelerError(f"error getting driver version: {err}") from err

    parts = driver_version.split(".")
    if not 2 <= len(parts) <= 3:
        raise LabelerError(
            f'error getting driver version: Version "{driver_version}" '
            'does not match format "X.Y[.Z]"'
        )
    driver_major, driver_minor = parts[0], parts[1]
    driver_rev = parts[2] if len(parts) > 2 else ""

    try:
        cuda_major, cuda_minor = manager.get_cuda_driver_version()
    except Exception as err:
        raise LabelerError(f"error getting cuda driver version: {err}") from err

    return Labels(
        {
            "nvidia.com/cuda.driver.major": driver_major,
            "nvidia.com/cuda.driver.minor": driver_minor,
            "nvidia.com/cuda.driver.rev": driver_rev,
            "nvidia.com/cuda.runtime.major": str(int(cuda_major)),
            "nvidia.com/cuda.runtime.minor": str(int(cuda_minor)),
        }
    )


def new_mig_capability_labeler(manager: Manager) -> Labeler:
    """Return the MIG capability label: true if any GPU on the node is MIG capable."""
    try:
        devices = manager.get_devices()
    except Exception as err:
        raise LabelerError(str(err)) from err
    if not devices:
        return Empty()

    capable = False
    for device in devices:
        try:
            capable = bool(device.is_mig_capable())
        except Exception as err:
            raise LabelerError(f"error getting mig capability: {err}") from err
        if capable:
            break

    return Labels({"nvidia.com/mig.capable": _format_bool(capable)})


def new_sharing_labeler(config: Config | None) -> Labels:
    """Return the label stating whether MPS sharing is enabled."""
    mps_enabled = (
        config is not None and config.sharing.sharing_strategy() is SharingStrategy.MPS
    )
    return Labels({"nvidia.com/sharing.mps.enabled": _format_bool(mps_enabled)})


def new_labelers(manager: Manager, vgpu: Any, config: Config) -> Labeler:
    """Return the composite labeler for the node: device labels and vGPU labels."""
    try:
        nvml_labeler = new_nvml_labeler(manager, config)
    except LabelerError as err:
        raise LabelerError(f"error creating NVML labeler: {err}") from err
    return merge(nvml_labeler, VGPULabeler(vgpu))