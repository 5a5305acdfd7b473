"""Image records and the rules that sort images into running, idle and excluded."""

import json
import logging
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from itertools import chain
from pathlib import Path
from typing import Any, Union

from eraser.runtime_types import Container, RuntimeImage

log = logging.getLogger(__name__)

EXCLUDE_PREFIX = "exclude-"


@dataclass
class Image:
    """An image on a node: its ID plus the names and digests that refer to it."""

    image_id: str
    names: list[str] = field(default_factory=list)
    digests: list[str] = field(default_factory=list)

    def refs(self) -> list[str]:
        return [*self.names, *self.digests]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"image_id": self.image_id}
        if self.names:
            data["names"] = list(self.names)
        if self.digests:
            data["digests"] = list(self.digests)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Image":
        return cls(
            image_id=data.get("image_id", ""),
            names=list(data.get("names") or []),
            digests=list(data.get("digests") or []),
        )


def process_repo_digests(repo_digests: Iterable[str]) -> tuple[list[str], list[ValueError]]:
    """Extract unique digests from ``repo@digest`` strings, with an error per bad entry."""
    digests: dict[str, None] = {}
    errors: list[ValueError] = []
    for repo_digest in repo_digests:
        parts = repo_digest.split("@")
        if len(parts) < 2:
            errors.append(ValueError(f"repoDigest not formatted correctly: {repo_digest}"))
            continue
        digests[parts[1]] = None
    return list(digests), errors


def index_images(
    runtime_images: Iterable[RuntimeImage],
) -> tuple[list[Image], dict[str, Image]]:
    """Return every image and a map from image ID to image."""
    all_images: list[Image] = []
    id_to_image: dict[str, Image] = {}
    for runtime_image in runtime_images:
        digests, errors = process_repo_digests(runtime_image.repo_digests)
        for err in errors:
            log.error("error processing digest: %s", err)
        image = Image(
            image_id=runtime_image.id,
            names=list(runtime_image.repo_tags),
            digests=digests,
        )
        all_images.append(image)
        id_to_image[runtime_image.id] = image
    return all_images, id_to_image


def _known_refs(image_id: str, id_to_image: Mapping[str, Image]) -> list[str]:
    image = id_to_image.get(image_id)
    return image.refs() if image else []


def get_running_images(
    containers: Iterable[Container], id_to_image: Mapping[str, Image]
) -> dict[str, str]:
    """Map every ID, name and digest of an image used by a container to its image ID."""
    running: dict[str, str] = {}
    for container in containers:
        image_id = container.image.image if container.image else ""
        running[image_id] = image_id
        for ref in _known_refs(image_id, id_to_image):
            running[ref] = image_id
    return running


def get_non_running_images(
    running_images: Mapping[str, str],
    all_images: Iterable[Image],
    id_to_image: Mapping[str, Image],
) -> dict[str, str]:
    """Map every ID, name and digest of an image no container uses to its image ID."""
    idle: dict[str, str] = {}
    for image in all_images:
        image_id = image.image_id
        if image_id in running_images:
            continue
        idle[image_id] = image_id
        for ref in _known_refs(image_id, id_to_image):
            idle[ref] = image_id
    return idle


def is_excluded(
    excluded: Collection[str], img: str, id_to_image: Mapping[str, Image]
) -> bool:
    """Whether ``img`` matches the exclusion list by ID, name, digest or wildcard."""
    if not excluded:
        return False

    refs = _known_refs(img, id_to_image)
    if img in excluded or any(ref in excluded for ref in refs):
        return True

    candidates = [img, *refs]
    for key in excluded:
        if key.endswith("/*"):
            prefix = key.split("*")[0]
        elif key.endswith(":*"):
            prefix = key.split(":")[0]
        else:
            continue
        if any(candidate.startswith(prefix) for candidate in candidates):
            return True
    return False


def _string_list(value: Any, what: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{what} must be a list of strings")
    return list(value)


def parse_image_list(path: Union[str, Path]) -> list[str]:
    """Read a JSON array of image references from ``path``."""
    data = json.loads(Path(path).read_text())
    return _string_list(data, "image list")


def _read_config_map(path: Path) -> list[str]:
    json_file = next(
        (name for name in sorted(p.name for p in path.iterdir()) if name.endswith(".json")),
        None,
    )
    if json_file is None:
        raise IsADirectoryError(f"no JSON file found in {path}")
    data = json.loads((path / json_file).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"exclusion list in {path} must be a JSON object")
    return _string_list(data.get("excluded"), "excluded")


def parse_excluded(directory: Union[str, Path] = ".") -> set[str]:
    """Collect excluded images from every ``exclude-*`` config map under ``directory``."""
    excluded: set[str] = set()
    for entry in sorted(Path(directory).iterdir(), key=lambda p: p.name):
        if entry.name.startswith(EXCLUDE_PREFIX):
            excluded.update(_read_config_map(entry))
    return excluded