"""Container runtime records and conversion from older API messages."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional


class ContainerState(IntEnum):
    CREATED = 0
    RUNNING = 1
    EXITED = 2
    UNKNOWN = 3

    @classmethod
    def from_value(cls, value: Any) -> "ContainerState":
        if isinstance(value, ContainerState):
            return value
        if isinstance(value, str):
            name = value.upper().removeprefix("CONTAINER_")
            try:
                return cls[name]
            except KeyError:
                raise ValueError(f"unknown container state: {value!r}") from None
        return cls(int(value))


@dataclass
class ImageSpec:
    image: str = ""
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class ContainerMetadata:
    name: str = ""
    attempt: int = 0


@dataclass
class Container:
    id: str = ""
    pod_sandbox_id: str = ""
    metadata: Optional[ContainerMetadata] = None
    image: Optional[ImageSpec] = None
    image_ref: str = ""
    state: ContainerState = ContainerState.CREATED
    created_at: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)


@dataclass
class RuntimeImage:
    id: str = ""
    repo_tags: list[str] = field(default_factory=list)
    repo_digests: list[str] = field(default_factory=list)
    size: int = 0
    uid: Optional[int] = None
    username: str = ""
    spec: Optional[ImageSpec] = None
    pinned: bool = False


def _image_spec(data: Optional[Mapping]) -> Optional[ImageSpec]:
    if data is None:
        return None
    return ImageSpec(
        image=data.get("image", ""),
        annotations=dict(data.get("annotations") or {}),
    )


def convert_image(image: Optional[Mapping]) -> Optional[RuntimeImage]:
    """Build a RuntimeImage from an older-API image message given as a mapping."""
    if image is None:
        return None
    uid = image.get("uid")
    return RuntimeImage(
        id=image.get("id", ""),
        repo_tags=list(image.get("repoTags") or []),
        repo_digests=list(image.get("repoDigests") or []),
        size=int(image.get("size", 0)),
        uid=None if uid is None else int(uid.get("value", 0)),
        username=image.get("username", ""),
        spec=_image_spec(image.get("spec")),
        pinned=bool(image.get("pinned", False)),
    )


def convert_container(container: Optional[Mapping]) -> Optional[Container]:
    """Build a Container from an older-API container message given as a mapping."""
    if container is None:
        return None
    metadata = container.get("metadata")
    return Container(
        id=container.get("id", ""),
        pod_sandbox_id=container.get("podSandboxId", ""),
        metadata=None
        if metadata is None
        else ContainerMetadata(
            name=metadata.get("name", ""), attempt=int(metadata.get("attempt", 0))
        ),
        image=_image_spec(container.get("image")),
        image_ref=container.get("imageRef", ""),
        state=ContainerState.from_value(container.get("state", 0)),
        created_at=int(container.get("createdAt", 0)),
        labels=dict(container.get("labels") or {}),
        annotations=dict(container.get("annotations") or {}),
    )