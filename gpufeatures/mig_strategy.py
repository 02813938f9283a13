"""Resource labels for full GPUs and MIG devices under each MIG strategy."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .labels import (
    MIG_STRATEGY_MIXED,
    MIG_STRATEGY_NONE,
    MIG_STRATEGY_SINGLE,
    Empty,
    Labeler,
    LabelerError,
    LabelerList,
    Labels,
    merge,
    mig_strategy_labeler,
)
from .mig import Device, DeviceInfo, Manager
from .resource import (
    FULL_GPU_RESOURCE_NAME,
    ResourceLabeler,
    new_gpu_resource_labeler,
    new_gpu_resource_labeler_without_sharing,
    new_mig_resource_labeler,
)
from .spec import Config

logger = logging.getLogger(__name__)


@dataclass
class _MigResource:
    name: str
    device: Device
    count: int = 0


def new_resource_labeler(manager: Manager, config: Config) -> Labeler:
    """Return a labeler for the full GPUs and the MIG devices on the node."""
    try:
        devices = manager.get_devices()
    except Exception as err:
        raise LabelerError(f"error getting devices: {err}") from err
    if not devices:
        return Empty()

    try:
        full_gpu_labeler = _new_gpu_labelers(manager, config)
    except LabelerError as err:
        raise LabelerError(f"failed to construct GPU labeler: {err}") from err

    if config.flags.mig_strategy == MIG_STRATEGY_NONE:
        return full_gpu_labeler

    try:
        mig_labeler = _new_mig_labeler(manager, config)
    except LabelerError as err:
        raise LabelerError(f"failed to construct MIG resource labeler: {err}") from err

    return merge(full_gpu_labeler, mig_labeler)


def _new_mig_labeler(manager: Manager, config: Config) -> Labeler:
    strategy = config.flags.mig_strategy
    labeler: Labeler
    if strategy == MIG_STRATEGY_NONE:
        labeler = Empty()
    elif strategy == MIG_STRATEGY_SINGLE:
        try:
            labeler = _new_mig_strategy_single_labeler(manager, config)
        except LabelerError as err:
            raise LabelerError(f"failed to create labeler for mig-strategy=single: {err}") from err
    elif strategy == MIG_STRATEGY_MIXED:
        try:
            labeler = _new_mig_strategy_mixed_labeler(manager, config)
        except LabelerError as err:
            raise LabelerError(f"failed to create labeler for mig-strategy=mixed: {err}") from err
    else:
        raise LabelerError(f"unknown strategy: {strategy}")
    return merge(mig_strategy_labeler(strategy), labeler)


def _device_name(device: Device, message: str) -> str:
    try:
        return device.get_name()
    except Exception as err:
        raise LabelerError(f"{message}: {err}") from err


def _new_gpu_labelers(manager: Manager, config: Config) -> Labels:
    device_info = DeviceInfo(manager)
    try:
        devices_by_mig_enabled = device_info.get_devices_map()
    except Exception as err:
        raise LabelerError(f"error getting map of devices: {err}") from err
    if not devices_by_mig_enabled:
        raise LabelerError("no GPU devices detected")

    counts: dict[str, int] = {}
    mig_enabled_devices: dict[str, Device] = {}
    for device in devices_by_mig_enabled.get(True, []):
        name = _device_name(device, "error getting device name")
        mig_enabled_devices[name] = device
        counts[name] = counts.get(name, 0) + 1

    full_gpus: dict[str, Device] = {}
    for device in devices_by_mig_enabled.get(False, []):
        name = _device_name(device, "error getting device name")
        full_gpus[name] = device
        counts[name] = counts.get(name, 0) + 1

    if len(counts) > 1:
        logger.warning("Multiple device types detected: %s", list(counts))

    labelers = LabelerList()
    try:
        # MIG-enabled devices carry no sharing information.
        for name, device in mig_enabled_devices.items():
            labelers.append(new_gpu_resource_labeler_without_sharing(device, counts[name]))
        # Full GPUs override MIG-enabled devices with the same name.
        for name, device in full_gpus.items():
            labelers.append(new_gpu_resource_labeler(config, device, counts[name]))
    except LabelerError as err:
        raise LabelerError(f"failed to construct labeler: {err}") from err

    return labelers.labels()


def _collect_mig_resources(device_info: DeviceInfo, resource_name_for) -> dict[str, _MigResource]:
    try:
        migs = device_info.get_all_mig_devices()
    except Exception as err:
        raise LabelerError(f"unable to retrieve list of MIG devices: {err}") from err

    resources: dict[str, _MigResource] = {}
    for mig in migs:
        name = _device_name(mig, "unable to get MIG device name")
        resource = resources.get(name)
        if resource is None:
            resource = resources[name] = _MigResource(name=resource_name_for(name), device=mig)
        resource.count += 1
    return resources


def _new_mig_strategy_single_labeler(manager: Manager, config: Config) -> Labeler:
    device_info = DeviceInfo(manager)
    try:
        mig_enabled = device_info.get_devices_with_mig_enabled()
    except Exception as err:
        raise LabelerError(f"unabled to retrieve list of MIG-enabled devices: {err}") from err
    if not mig_enabled:
        return Empty()

    try:
        has_empty = device_info.any_mig_enabled_device_is_empty()
    except Exception as err:
        raise LabelerError(f"failed to check for empty MIG-enabled devices: {err}") from err
    if has_empty:
        return _new_invalid_mig_strategy_labeler(
            mig_enabled[0], "at least one MIG device is enabled but empty"
        )

    try:
        mig_disabled = device_info.get_devices_with_mig_disabled()
    except Exception as err:
        raise LabelerError(f"unabled to retrieve list of non-MIG-enabled devices: {err}") from err
    if mig_disabled:
        return _new_invalid_mig_strategy_labeler(
            mig_enabled[0], "devices with MIG enabled and disable detected"
        )

    resources = _collect_mig_resources(device_info, lambda _name: FULL_GPU_RESOURCE_NAME)
    if len(resources) != 1:
        return _new_invalid_mig_strategy_labeler(
            mig_enabled[0], "more than one MIG device type present on node"
        )
    return _new_mig_device_labelers(resources, config)


def _new_invalid_mig_strategy_labeler(device: Device, reason: str) -> Labels:
    logger.warning("Invalid configuration detected for mig-strategy=single: %s", reason)
    model = _device_name(device, "failed to get device model")
    labeler = ResourceLabeler(FULL_GPU_RESOURCE_NAME, None)
    labels = labeler.product_label(model, "MIG", "INVALID")
    labeler.update_label(labels, "count", 0)
    labeler.update_label(labels, "replicas", 0)
    labeler.update_label(labels, "memory", 0)
    return labels


def _new_mig_strategy_mixed_labeler(manager: Manager, config: Config) -> Labeler:
    device_info = DeviceInfo(manager)
    resources = _collect_mig_resources(device_info, lambda name: "nvidia.com/mig-" + name)
    return _new_mig_device_labelers(resources, config)


def _new_mig_device_labelers(resources: dict[str, _MigResource], config: Config) -> Labeler:
    labelers = LabelerList()
    for resource in resources.values():
        try:
            labelers.append(
                new_mig_resource_labeler(resource.name, config, resource.device, resource.count)
            )
        except LabelerError as err:
            raise LabelerError(f"failed to construct labeler: {err}") from err
    return labelers