import io
import os
import stat
import time
from dataclasses import dataclass

import pytest

from gpufeatures.labels import (
    Empty,
    Labeler,
    LabelerError,
    LabelerList,
    Labels,
    VGPULabeler,
    get_machine_type,
    merge,
    mig_strategy_labeler,
    new_machine_type_labeler,
    new_timestamp_labeler,
    write_file_atomically,
)
from gpufeatures.spec import Config, Flags, GFDFlags


def _parse(text):
    return dict(line.split("=", 1) for line in text.splitlines())


@dataclass
class _Info:
    host_driver_version: str
    host_driver_branch: str


class _VDevice:
    def __init__(self, info=None, fail=False):
        self._info = info
        self._fail = fail

    def get_info(self):
        if self._fail:
            raise RuntimeError("info failure")
        return self._info


class _VLib:
    def __init__(self, devices=None, fail=False):
        self._devices = devices or []
        self._fail = fail

    def devices(self):
        if self._fail:
            raise RuntimeError("lib failure")
        return self._devices


class _Failing:
    def labels(self):
        raise RuntimeError("boom")


def test_labels_returns_itself():
    labels = Labels({"a": "1"})
    assert labels.labels() is labels
    assert isinstance(labels, Labeler)


def test_write_to_round_trip():
    labels = Labels({"nvidia.com/gpu.count": "2", "nvidia.com/mig.strategy": "single"})
    buffer = io.StringIO()
    written = labels.write_to(buffer)
    assert written == len(buffer.getvalue())
    assert _parse(buffer.getvalue()) == dict(labels)


def test_update_file_writes_labels(tmp_path):
    target = tmp_path / "labels.txt"
    labels = Labels({"nvidia.com/gpu.count": "1"})
    labels.update_file(str(target))
    assert _parse(target.read_text()) == dict(labels)
    assert stat.S_IMODE(os.stat(target).st_mode) == 0o644


def test_update_file_empty_path_writes_stdout(capsys):
    Labels({"nvidia.com/gpu.count": "1"}).update_file("")
    assert capsys.readouterr().out == "nvidia.com/gpu.count=1\n"


def test_write_file_atomically_replaces_contents(tmp_path):
    target = tmp_path / "out"
    target.write_text("old")
    write_file_atomically(str(target), b"new contents", 0o600)
    assert target.read_bytes() == b"new contents"
    assert stat.S_IMODE(os.stat(target).st_mode) == 0o600


def test_write_file_atomically_error_on_missing_target_dir(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    with pytest.raises(LabelerError):
        write_file_atomically(str(blocker / "sub" / "out"), b"data", 0o644)


def test_empty_labeler_has_no_labels():
    assert Empty().labels() == {}


def test_merge_later_overrides_earlier():
    merged = merge(Labels({"a": "1", "b": "2"}), Empty(), Labels({"b": "3"}))
    assert isinstance(merged, LabelerList)
    assert merged.labels() == {"a": "1", "b": "3"}


def test_merge_of_nothing_is_empty():
    assert merge().labels() == {}


def test_list_wraps_errors():
    with pytest.raises(LabelerError, match="error generating labels"):
        merge(Labels({"a": "1"}), _Failing()).labels()


def test_get_machine_type_empty_path():
    assert get_machine_type("") == "unknown"


def test_get_machine_type_reads_and_strips(tmp_path):
    path = tmp_path / "product_name"
    path.write_text("  DGX A100 \n")
    assert get_machine_type(str(path)) == "DGX A100"


def test_get_machine_type_missing_file(tmp_path):
    with pytest.raises(LabelerError, match="could not open machine type file"):
        get_machine_type(str(tmp_path / "missing"))


def test_machine_type_labeler_replaces_spaces(tmp_path):
    path = tmp_path / "product_name"
    path.write_text("DGX A100\n")
    assert new_machine_type_labeler(str(path)).labels() == {"nvidia.com/gpu.machine": "DGX-A100"}


def test_machine_type_labeler_falls_back_to_unknown(tmp_path):
    labels = new_machine_type_labeler(str(tmp_path / "missing")).labels()
    assert labels == {"nvidia.com/gpu.machine": "unknown"}


def test_mig_strategy_labeler_none_is_empty():
    assert mig_strategy_labeler("none").labels() == {}


@pytest.mark.parametrize("strategy", ["single", "mixed"])
def test_mig_strategy_labeler(strategy):
    assert mig_strategy_labeler(strategy).labels() == {"nvidia.com/mig.strategy": strategy}


def test_timestamp_labeler_disabled():
    config = Config(flags=Flags(gfd=GFDFlags(no_timestamp=True)))
    assert new_timestamp_labeler(config).labels() == {}


def test_timestamp_labeler_current_time():
    before = int(time.time())
    labels = new_timestamp_labeler(Config()).labels()
    after = int(time.time())
    assert set(labels) == {"nvidia.com/gfd.timestamp"}
    assert before <= int(labels["nvidia.com/gfd.timestamp"]) <= after


def test_vgpu_labeler_no_devices():
    assert VGPULabeler(_VLib()).labels() == {}


def test_vgpu_labeler_with_devices():
    lib = _VLib([_VDevice(_Info("535.1", "r535")), _VDevice(_Info("535.2", "r535"))])
    assert VGPULabeler(lib).labels() == {
        "nvidia.com/vgpu.present": "true",
        "nvidia.com/vgpu.host-driver-version": "535.2",
        "nvidia.com/vgpu.host-driver-branch": "r535",
    }


def test_vgpu_labeler_device_list_error():
    with pytest.raises(LabelerError, match="unable to get vGPU devices"):
        VGPULabeler(_VLib(fail=True)).labels()


def test_vgpu_labeler_info_error():
    with pytest.raises(LabelerError, match="error getting vGPU device info"):
        VGPULabeler(_VLib([_VDevice(fail=True)])).labels()