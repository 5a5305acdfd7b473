"""Facts about the pod the process runs in."""

import os

DEFAULT_NAMESPACE = "eraser-system"


def get_namespace() -> str:
    """Return the pod namespace from ``POD_NAMESPACE``, or the default."""
    return os.environ.get("POD_NAMESPACE", DEFAULT_NAMESPACE)