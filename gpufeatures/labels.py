"""Node labels and the labelers that produce them."""

from __future__ import annotations

import io
import logging
import os
import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Iterable, Protocol, TextIO, runtime_checkable

from .spec import Config

logger = logging.getLogger(__name__)

MACHINE_TYPE_UNKNOWN = "unknown"

MIG_STRATEGY_NONE = "none"
MIG_STRATEGY_SINGLE = "single"
MIG_STRATEGY_MIXED = "mixed"

_TMP_DIR_NAME = "gfd-tmp"
_TMP_FILE_PREFIX = "gfd-"


class LabelerError(Exception):
    """Raised when labels cannot be generated or written."""


@runtime_checkable
class Labeler(Protocol):
    """Anything that can produce a set of labels."""

    def labels(self) -> Labels: ...


class Labels(dict):
    """A mapping of label names to values; also a labeler of itself."""

    def labels(self) -> Labels:
        """Return these labels."""
        return self

    def write_to(self, output: TextIO) -> int:
        """Write one ``key=value`` line per label and return the characters written."""
        total = 0
        for key, value in self.items():
            line = f"{key}={value}\n"
            output.write(line)
            total += len(line)
        return total

    def update_file(self, path: str | os.PathLike) -> None:
        """Write the labels to ``path`` atomically, or to stdout if ``path`` is empty."""
        logger.info("Writing labels to output file %s", path)
        if not path:
            self.write_to(sys.stdout)
            return
        buffer = io.StringIO()
        self.write_to(buffer)
        try:
            write_file_atomically(path, buffer.getvalue().encode("utf-8"), 0o644)
        except LabelerError as err:
            raise LabelerError(f"error atomically writing file '{path}': {err}") from err


class Empty:
    """A labeler that produces no labels."""

    def labels(self) -> Labels:
        return Labels()

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Empty)

    def __hash__(self) -> int:
        return hash(Empty)

    def __repr__(self) -> str:
        return "Empty()"


class LabelerList(list):
    """A list of labelers acting as one; later labels override earlier ones."""

    def labels(self) -> Labels:
        all_labels = Labels()
        for labeler in self:
            try:
                produced = labeler.labels()
            except Exception as err:
                raise LabelerError(f"error generating labels: {err}") from err
            all_labels.update(produced or {})
        return all_labels


def merge(*args: Labeler) -> LabelerList:
    """Combine several labelers into a single composite labeler."""
    return LabelerList(args)


def write_file_atomically(path: str | os.PathLike, contents: bytes | str, perm: int = 0o644) -> None:
    """Write ``contents`` to ``path`` through a temporary file and a rename."""
    if isinstance(contents, str):
        contents = contents.encode("utf-8")
    abs_path = Path(os.path.abspath(path))
    tmp_dir = abs_path.parent / _TMP_DIR_NAME

    try:
        tmp_dir.mkdir(parents=True, exist_ok=True)
    except OSError as err:
        raise LabelerError(f"failed to create temporary directory: {err}") from err

    tmp_name: str | None = None
    try:
        try:
            fd, tmp_name = tempfile.mkstemp(prefix=_TMP_FILE_PREFIX, dir=tmp_dir)
        except OSError as err:
            raise LabelerError(f"fail to create temporary output file: {err}") from err
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(contents)
        except OSError as err:
            raise LabelerError(f"error writing temporary file '{tmp_name}': {err}") from err
        try:
            os.replace(tmp_name, path)
        except OSError as err:
            raise LabelerError(f"error moving temporary file to '{path}': {err}") from err
        tmp_name = None
        try:
            os.chmod(path, perm)
        except OSError as err:
            raise LabelerError(f"error setting permissions on '{path}': {err}") from err
    except LabelerError:
        if tmp_name is not None:
            try:
                os.remove(tmp_name)
            except OSError:
                pass
        shutil.rmtree(tmp_dir, ignore_errors=True)
        raise


def get_machine_type(path: str | os.PathLike) -> str:
    """Read the machine type from ``path``; an empty path gives "unknown"."""
    if not path:
        return MACHINE_TYPE_UNKNOWN
    try:
        data = Path(path).read_text()
    except OSError as err:
        raise LabelerError(f"could not open machine type file: {err}") from err
    return data.strip()


def new_machine_type_labeler(machine_type_path: str | os.PathLike) -> Labels:
    """Return the machine type label, falling back to "unknown" on errors."""
    try:
        machine_type = get_machine_type(machine_type_path)
    except LabelerError as err:
        logger.warning("Error getting machine type from %s: %s", machine_type_path, err)
        machine_type = MACHINE_TYPE_UNKNOWN
    return Labels({"nvidia.com/gpu.machine": machine_type.replace(" ", "-")})


def mig_strategy_labeler(strategy: str) -> Labeler:
    """Return the MIG strategy label, or no labels for the "none" strategy."""
    if strategy == MIG_STRATEGY_NONE:
        return Empty()
    return Labels({"nvidia.com/mig.strategy": strategy})


def new_timestamp_labeler(config: Config) -> Labeler:
    """Return a label holding the current Unix time unless timestamps are disabled."""
    if config.flags.gfd.no_timestamp:
        return Empty()
    return Labels({"nvidia.com/gfd.timestamp": str(int(time.time()))})


class VGPULabeler:
    """Produces the vGPU labels for the node."""

    def __init__(self, lib: Any) -> None:
        self._lib = lib

    def labels(self) -> Labels:
        try:
            devices: Iterable[Any] = list(self._lib.devices())
        except Exception as err:
            raise LabelerError(f"unable to get vGPU devices: {err}") from err
        labels = Labels()
        if devices:
            labels["nvidia.com/vgpu.present"] = "true"
        for device in devices:
            try:
                info = device.get_info()
            except Exception as err:
                raise LabelerError(f"error getting vGPU device info: {err}") from err
            labels["nvidia.com/vgpu.host-driver-version"] = info.host_driver_version
            labels["nvidia.com/vgpu.host-driver-branch"] = info.host_driver_branch
        return labels