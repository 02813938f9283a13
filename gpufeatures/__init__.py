"""Kubernetes node labels for NVIDIA GPUs, MIG devices and sharing settings."""

__version__ = "0.14.4"

__all__ = [
    "cudaresult",
    "version",
    "kube",
    "spec",
    "migcaps",
    "mig",
    "labels",
    "resource",
    "mig_strategy",
    "nvml",
]