"""Select and remove unused and vulnerable container images on Kubernetes nodes."""

__version__ = "1.0.0b3"

__all__ = ["__version__"]