"""Result codes and device attributes of the CUDA driver API."""

from __future__ import annotations

import enum


class Result(enum.IntEnum):
    """A CUresult return code."""

    SUCCESS = 0
    ERROR_INVALID_VALUE = 1
    ERROR_OUT_OF_MEMORY = 2
    ERROR_NOT_INITIALIZED = 3
    ERROR_DEINITIALIZED = 4
    ERROR_PROFILER_DISABLED = 5
    ERROR_PROFILER_NOT_INITIALIZED = 6
    ERROR_PROFILER_ALREADY_STARTED = 7
    ERROR_PROFILER_ALREADY_STOPPED = 8
    ERROR_NO_DEVICE = 100
    ERROR_INVALID_DEVICE = 101
    ERROR_INVALID_IMAGE = 200
    ERROR_INVALID_CONTEXT = 201
    ERROR_CONTEXT_ALREADY_CURRENT = 202
    ERROR_MAP_FAILED = 205
    ERROR_UNMAP_FAILED = 206
    ERROR_ARRAY_IS_MAPPED = 207
    ERROR_ALREADY_MAPPED = 208
    ERROR_NO_BINARY_FOR_GPU = 209
    ERROR_ALREADY_ACQUIRED = 210
    ERROR_NOT_MAPPED = 211
    ERROR_NOT_MAPPED_AS_ARRAY = 212
    ERROR_NOT_MAPPED_AS_POINTER = 213
    ERROR_ECC_UNCORRECTABLE = 214
    ERROR_UNSUPPORTED_LIMIT = 215
    ERROR_CONTEXT_ALREADY_IN_USE = 216
    ERROR_PEER_ACCESS_UNSUPPORTED = 217
    ERROR_INVALID_PTX = 218
    ERROR_INVALID_GRAPHICS_CONTEXT = 219
    ERROR_NVLINK_UNCORRECTABLE = 220
    ERROR_JIT_COMPILER_NOT_FOUND = 221
    ERROR_INVALID_SOURCE = 300
    ERROR_FILE_NOT_FOUND = 301
    ERROR_SHARED_OBJECT_SYMBOL_NOT_FOUND = 302
    ERROR_SHARED_OBJECT_INIT_FAILED = 303
    ERROR_OPERATING_SYSTEM = 304
    ERROR_INVALID_HANDLE = 400
    ERROR_NOT_FOUND = 500
    ERROR_NOT_READY = 600
    ERROR_ILLEGAL_ADDRESS = 700
    ERROR_LAUNCH_OUT_OF_RESOURCES = 701
    ERROR_LAUNCH_TIMEOUT = 702
    ERROR_LAUNCH_INCOMPATIBLE_TEXTURING = 703
    ERROR_PEER_ACCESS_ALREADY_ENABLED = 704
    ERROR_PEER_ACCESS_NOT_ENABLED = 705
    ERROR_PRIMARY_CONTEXT_ACTIVE = 708
    ERROR_CONTEXT_IS_DESTROYED = 709
    ERROR_ASSERT = 710
    ERROR_TOO_MANY_PEERS = 711
    ERROR_HOST_MEMORY_ALREADY_REGISTERED = 712
    ERROR_HOST_MEMORY_NOT_REGISTERED = 713
    ERROR_HARDWARE_STACK_ERROR = 714
    ERROR_ILLEGAL_INSTRUCTION = 715
    ERROR_MISALIGNED_ADDRESS = 716
    ERROR_INVALID_ADDRESS_SPACE = 717
    ERROR_INVALID_PC = 718
    ERROR_LAUNCH_FAILED = 719
    ERROR_COOPERATIVE_LAUNCH_TOO_LARGE = 720
    ERROR_NOT_PERMITTED = 800
    ERROR_NOT_SUPPORTED = 801
    ERROR_UNKNOWN = 99

    def __str__(self) -> str:
        return result_string(self)


class DeviceAttribute(enum.IntEnum):
    """A CUdevice_attribute value."""

    COMPUTE_CAPABILITY_MAJOR = 75
    COMPUTE_CAPABILITY_MINOR = 76


def result_string(value: int) -> str:
    """Return the symbolic name of a result code."""
    try:
        return "CUDA_" + Result(value).name
    except ValueError:
        return f"Unknown return value: {int(value)}"


class CudaError(Exception):
    """Raised when a CUDA call reports a result other than success."""

    def __init__(self, result: int) -> None:
        self.result = result
        super().__init__(result_string(result))


def check(value: int) -> None:
    """Raise CudaError unless the result code signals success."""
    if value != Result.SUCCESS:
        raise CudaError(value)