# gpufeatures

`gpufeatures` builds Kubernetes node labels from what a node knows about its
GPUs: full GPUs, MIG-enabled GPUs and their MIG devices, driver and CUDA
versions, vGPU host information, and time-slicing or MPS sharing settings.

The library does not talk to hardware itself. You pass it a *manager* object
that reports devices, following the `gpufeatures.mig.Manager` and
`gpufeatures.mig.Device` protocols, together with a `gpufeatures.spec.Config`.
What comes back are labelers whose `labels()` method returns `Labels`, a
`dict` of label names to string values.

## Installation

```
pip install gpufeatures
```

To run the tests:

```
pip install "gpufeatures[test]"
pytest
```

## Building labels

```python
from gpufeatures.spec import Config
from gpufeatures.nvml import new_labelers

config = Config()
labeler = new_labelers(manager, vgpu_lib, config)
labels = labeler.labels()

labels.update_file("/etc/kubernetes/node-feature-discovery/features.d/gfd")
```

`new_labelers` initialises the manager, collects its labels and shuts it down
again. `vgpu_lib` is any object whose `devices()` returns vGPU devices with a
`get_info()` method; the returned info needs `host_driver_version` and
`host_driver_branch` attributes.

`Labels.update_file` writes `key=value` lines atomically (through a temporary
file in a `gfd-tmp` directory next to the target, then a rename); with an
empty path the labels go to standard output. `Labels.write_to` writes the same
lines to any text stream.

Failures while producing or writing labels raise
`gpufeatures.labels.LabelerError`.

## Modules

- `gpufeatures.spec`: `Config`, `Flags`, `GFDFlags`, `Sharing`,
  `ReplicatedResources`, `ReplicatedResource` and `SharingStrategy`.
  `Sharing.sharing_strategy()` reports MPS if any MPS resource has more than
  one replica, otherwise time-slicing if any time-slicing resource does,
  otherwise none.
- `gpufeatures.labels`: `Labels`, `Empty`, `LabelerList`, `merge`,
  `VGPULabeler`, `new_machine_type_labeler`, `get_machine_type`,
  `mig_strategy_labeler`, `new_timestamp_labeler`, `write_file_atomically`.
  In a merged labeler, later labels override earlier ones.
- `gpufeatures.resource`: `new_gpu_resource_labeler`,
  `new_gpu_resource_labeler_without_sharing`, `new_mig_resource_labeler`,
  `get_arch_family` and `ResourceLabeler`.
- `gpufeatures.mig_strategy`: `new_resource_labeler`, which applies the
  `none`, `single` or `mixed` MIG strategy named in `config.flags.mig_strategy`.
- `gpufeatures.nvml`: `new_labelers`, `new_nvml_labeler`,
  `new_version_labeler`, `new_mig_capability_labeler`, `new_sharing_labeler`.
- `gpufeatures.mig`: `DeviceInfo` groups devices by MIG mode and lists MIG
  devices.
- `gpufeatures.migcaps`: `get_mig_capability_device_paths` reads the MIG
  minors file and maps capability paths to `/dev/nvidia-caps` device nodes;
  `parse_mig_minors_line` parses a single line.
- `gpufeatures.cudaresult`: `Result` codes, `DeviceAttribute`,
  `result_string`, and `check`, which raises `CudaError` for anything but
  success.
- `gpufeatures.kube`: `node_name` (from `NODE_NAME`) and
  `get_kubernetes_namespace` (from the service-account file, falling back to
  `KUBERNETES_NAMESPACE`).
- `gpufeatures.version`: `get_version_parts` and `get_version_string`.

## Label examples

A node with one GPU of compute capability 8.0 and no sharing gets, among
others:

```
nvidia.com/gpu.count=1
nvidia.com/gpu.replicas=1
nvidia.com/gpu.product=EXAMPLE-GPU
nvidia.com/gpu.family=ampere
nvidia.com/gpu.compute.major=8
nvidia.com/gpu.compute.minor=0
```

With time-slicing set to two replicas for `nvidia.com/gpu`, the product gets
a `-SHARED` suffix (unless the resource is renamed) and `gpu.replicas`
becomes `2`.

## What this package does not do

- It has no command-line program and no daemon loop; you call the functions
  from your own code.
- It does not query GPUs, NVML or the CUDA driver. Device and driver
  information must come from the manager object you supply.
- It does not talk to the Kubernetes API. Labels can be written to a file or
  a stream, but not to a NodeFeature custom resource.