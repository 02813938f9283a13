[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gpufeatures"
version = "0.14.4"
description = "Generate Kubernetes node labels describing NVIDIA GPUs, MIG devices and sharing configuration"
requires-python = ">=3.10"
dependencies = []
keywords = ["gpu", "kubernetes", "node-labels", "mig", "nvidia", "feature-discovery"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gpufeatures"]

[tool.pytest.ini_options]
addopts = "-ra"
