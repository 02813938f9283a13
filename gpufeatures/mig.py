"""Grouping of a node's GPUs by whether MIG is enabled."""

from __future__ import annotations

from typing import Any, Protocol


class Device(Protocol):
    """A GPU or MIG device as seen by the labelers."""

    def get_name(self) -> str: ...

    def get_total_memory_mb(self) -> int: ...

    def get_cuda_compute_capability(self) -> tuple[int, int]: ...

    def is_mig_enabled(self) -> bool: ...

    def is_mig_capable(self) -> bool: ...

    def get_mig_devices(self) -> list[Device]: ...

    def get_attributes(self) -> dict[str, Any]: ...

    def get_device_handle_from_mig_device_handle(self) -> Device: ...


class Manager(Protocol):
    """Access to the devices and driver of a node."""

    def init(self) -> None: ...

    def shutdown(self) -> None: ...

    def get_devices(self) -> list[Device]: ...

    def get_driver_version(self) -> str: ...

    def get_cuda_driver_version(self) -> tuple[int, int]: ...


class DeviceInfo:
    """Information about all devices on the node, built on first use."""

    def __init__(self, manager: Manager) -> None:
        self._manager = manager
        self._devices_map: dict[bool, list[Device]] | None = None

    def get_devices_map(self) -> dict[bool, list[Device]]:
        """Return devices keyed by whether MIG is enabled on them."""
        if self._devices_map is not None:
            return self._devices_map
        devices_map: dict[bool, list[Device]] = {}
        for device in self._manager.get_devices():
            devices_map.setdefault(bool(device.is_mig_enabled()), []).append(device)
        self._devices_map = devices_map
        return devices_map

    def get_devices_with_mig_enabled(self) -> list[Device]:
        """Return the devices with MIG enabled."""
        return self.get_devices_map().get(True, [])

    def get_devices_with_mig_disabled(self) -> list[Device]:
        """Return the devices with MIG disabled."""
        return self.get_devices_map().get(False, [])

    def any_mig_enabled_device_is_empty(self) -> bool:
        """Return True if some MIG-enabled device has no MIG devices.

        This holds trivially when no device has MIG enabled.
        """
        enabled = self.get_devices_with_mig_enabled()
        if not enabled:
            return True
        return any(not device.get_mig_devices() for device in enabled)

    def get_all_mig_devices(self) -> list[Device]:
        """Return the MIG devices of every MIG-enabled device."""
        return [
            mig
            for device in self.get_devices_with_mig_enabled()
            for mig in device.get_mig_devices()
        ]