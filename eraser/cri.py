"""Clients for the container runtime's image and runtime services."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any, Optional, Protocol

from eraser.runtime_types import (
    Container,
    RuntimeImage,
    convert_container,
    convert_image,
)


class RuntimeVersion(str, Enum):
    V1 = "v1"
    V1ALPHA2 = "v1alpha2"


class NotFoundError(LookupError):
    """Raised by an image service when the image to remove does not exist."""


class CriErrors(Exception):
    """Several errors gathered while trying each runtime API version."""

    def __init__(self, errors: Iterable[BaseException] = ()):
        self.errors: list[BaseException] = list(errors)
        super().__init__()

    def append(self, err: Optional[BaseException]) -> None:
        if err is not None:
            self.errors.append(err)

    def __str__(self) -> str:
        return "\n".join(str(err) for err in self.errors)


class ImageService(Protocol):
    def list_images(self) -> Iterable[Any]: ...

    def remove_image(self, image: str) -> None: ...


class RuntimeService(Protocol):
    def list_containers(self) -> Iterable[Any]: ...


class Collector(ABC):
    """Lists the images and containers present on a node."""

    @abstractmethod
    def list_images(self) -> list[RuntimeImage]: ...

    @abstractmethod
    def list_containers(self) -> list[Container]: ...


class Eraser(Collector):
    """A collector that can also remove images."""

    @abstractmethod
    def delete_image(self, image: str) -> None: ...


def _remove(images: ImageService, image: str) -> None:
    if not image:
        return
    try:
        images.remove_image(image)
    except NotFoundError:
        return


class V1Client(Eraser):
    """Client for services that speak the current runtime API."""

    def __init__(self, images: ImageService, runtime: RuntimeService):
        self.images = images
        self.runtime = runtime

    def list_images(self) -> list[RuntimeImage]:
        return list(self.images.list_images())

    def list_containers(self) -> list[Container]:
        return list(self.runtime.list_containers())

    def delete_image(self, image: str) -> None:
        _remove(self.images, image)


class V1Alpha2Client(Eraser):
    """Client for services that speak the older runtime API; results are converted."""

    def __init__(self, images: ImageService, runtime: RuntimeService):
        self.images = images
        self.runtime = runtime

    def list_images(self) -> list[RuntimeImage]:
        return [convert_image(item) for item in self.images.list_images()]

    def list_containers(self) -> list[Container]:
        return [convert_container(item) for item in self.runtime.list_containers()]

    def delete_image(self, image: str) -> None:
        _remove(self.images, image)


def client_for_version(
    version: str, images: ImageService, runtime: RuntimeService
) -> Eraser:
    """Build the client matching a runtime API version string."""
    if version == RuntimeVersion.V1.value:
        return V1Client(images, runtime)
    if version == RuntimeVersion.V1ALPHA2.value:
        return V1Alpha2Client(images, runtime)
    raise ValueError(f"unrecognized CRI version: '{version}'")


Probe = Callable[[], "tuple[str, ImageService, RuntimeService]"]


def client_with_fallback(probes: Iterable[Probe]) -> Eraser:
    """Try each probe in turn and return a client for the first that works.

    A probe returns ``(version, image_service, runtime_service)`` or raises.
    """
    errors = CriErrors()
    for probe in probes:
        try:
            version, images, runtime = probe()
        except Exception as err:  # noqa: BLE001 - every failure is collected
            errors.append(err)
            continue
        try:
            return client_for_version(version, images, runtime)
        except ValueError as err:
            errors.append(err)
    raise errors


def _mapping_or_none(value: Any) -> Optional[Mapping]:
    return value if isinstance(value, Mapping) else None