"""Facts about the Kubernetes environment the process runs in."""

from __future__ import annotations

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

KUBERNETES_NAMESPACE_FILE = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"


def node_name() -> str:
    """Return the name of the Kubernetes node, taken from NODE_NAME."""
    return os.environ.get("NODE_NAME", "")


def get_kubernetes_namespace(namespace_file: str | os.PathLike = KUBERNETES_NAMESPACE_FILE) -> str:
    """Return the namespace the process runs under, or "" if it cannot be found."""
    path = Path(namespace_file)
    if path.exists():
        try:
            return path.read_text().strip()
        except OSError:
            pass
    namespace = os.environ.get("KUBERNETES_NAMESPACE", "")
    if not namespace:
        logger.warning("KUBERNETES_NAMESPACE environment variable not set")
    return namespace