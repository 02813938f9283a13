"""Mapping of MIG capability files to their device nodes."""

from __future__ import annotations

import logging
import os
import re

logger = logging.getLogger(__name__)

NVIDIA_PROC_DRIVER_PATH = "/proc/driver/nvidia"
NVIDIA_CAPABILITIES_PATH = NVIDIA_PROC_DRIVER_PATH + "/capabilities"
NVCAPS_PROC_DRIVER_PATH = "/proc/driver/nvidia-caps"
NVCAPS_MIG_MINORS_PATH = NVCAPS_PROC_DRIVER_PATH + "/mig-minors"
NVCAPS_DEVICE_PATH = "/dev/nvidia-caps"

_NUM = r"[ \t]*([+-]?\d+)"
_CI_ACCESS = re.compile(rf"gpu{_NUM}/gi{_NUM}/ci{_NUM}/access{_NUM}")
_GI_ACCESS = re.compile(rf"gpu{_NUM}/gi{_NUM}/access{_NUM}")
_CONFIG = re.compile(rf"config{_NUM}")
_MONITOR = re.compile(rf"monitor{_NUM}")


def parse_mig_minors_line(line: str) -> tuple[str, int]:
    """Parse one mig-minors line into a capability path and a device minor."""
    if m := _CI_ACCESS.match(line):
        gpu, gi, ci, minor = (int(g) for g in m.groups())
        return f"{NVIDIA_CAPABILITIES_PATH}/gpu{gpu}/mig/gi{gi}/ci{ci}/access", minor
    if m := _GI_ACCESS.match(line):
        gpu, gi, minor = (int(g) for g in m.groups())
        return f"{NVIDIA_CAPABILITIES_PATH}/gpu{gpu}/mig/gi{gi}/access", minor
    if m := _CONFIG.match(line):
        return f"{NVIDIA_CAPABILITIES_PATH}/mig/config", int(m.group(1))
    if m := _MONITOR.match(line):
        return f"{NVIDIA_CAPABILITIES_PATH}/mig/monitor", int(m.group(1))
    raise ValueError(f"unparsable line: {line}")


def get_mig_capability_device_paths(
    minors_path: str | os.PathLike = NVCAPS_MIG_MINORS_PATH,
) -> dict[str, str]:
    """Map each MIG capability path to its device node path.

    A missing minors file means the machine is not MIG capable; the result is
    then empty. Lines that cannot be parsed are logged and skipped.
    """
    try:
        minors_file = open(minors_path, encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as err:
        raise OSError(f"error opening MIG minors file: {err}") from err

    paths: dict[str, str] = {}
    with minors_file:
        for line in minors_file:
            try:
                cap_path, minor = parse_mig_minors_line(line.rstrip("\r\n"))
            except ValueError as err:
                logger.error("Skipping line in MIG minors file: %s", err)
                continue
            paths[cap_path] = f"{NVCAPS_DEVICE_PATH}/nvidia-cap{minor}"
    return paths