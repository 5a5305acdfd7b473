"""Named pipes shared by the collector, scanner and eraser containers."""

import json
import os
import time
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional, Union

from eraser.images import Image

SHARED_DATA_DIR = "/run/eraser.sh/shared-data"
PIPE_MODE = 0o644
ERASE_COMPLETE_MESSAGE = "complete"


@dataclass(frozen=True)
class PipePaths:
    """Locations of the pipes the job containers talk through."""

    scan_erase: str = f"{SHARED_DATA_DIR}/scanErase"
    collect_scan: str = f"{SHARED_DATA_DIR}/collectScan"
    erase_complete_collect: str = f"{SHARED_DATA_DIR}/eraseCompleteCollect"
    erase_complete_scan: str = f"{SHARED_DATA_DIR}/eraseCompleteScan"

    @classmethod
    def from_dir(cls, directory: Union[str, os.PathLike]) -> "PipePaths":
        base = os.fspath(directory)
        return cls(
            scan_erase=os.path.join(base, "scanErase"),
            collect_scan=os.path.join(base, "collectScan"),
            erase_complete_collect=os.path.join(base, "eraseCompleteCollect"),
            erase_complete_scan=os.path.join(base, "eraseCompleteScan"),
        )


def encode_images(images: Iterable[Image]) -> bytes:
    """Serialise images to the JSON payload passed through the pipes."""
    return json.dumps([image.to_dict() for image in images], separators=(",", ":")).encode()


def decode_images(data: Union[bytes, str]) -> list[Image]:
    """Parse a JSON payload of images."""
    parsed = json.loads(data)
    if parsed is None:
        return []
    if not isinstance(parsed, list) or not all(isinstance(item, dict) for item in parsed):
        raise ValueError("image payload must be a JSON array of objects")
    return [Image.from_dict(item) for item in parsed]


def make_pipe(path: Union[str, os.PathLike]) -> None:
    """Create a named pipe at ``path``."""
    os.mkfifo(path, PIPE_MODE)


def read_collect_scan_pipe(
    path: Optional[Union[str, os.PathLike]] = None,
    timeout: Optional[float] = None,
    poll_interval: float = 1.0,
) -> list[Image]:
    """Wait for the collect-scan pipe to appear, then read the images from it."""
    path = path if path is not None else PipePaths().collect_scan
    deadline = None if timeout is None else time.monotonic() + timeout
    while True:
        try:
            handle = open(path, "rb")
        except FileNotFoundError:
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"timed out waiting for pipe {path}") from None
                time.sleep(min(poll_interval, remaining))
            else:
                time.sleep(poll_interval)
            continue
        with handle:
            data = handle.read()
        return decode_images(data)


def write_scan_erase_pipe(
    images: Iterable[Image], path: Optional[Union[str, os.PathLike]] = None
) -> None:
    """Create the scan-erase pipe and write the images into it."""
    path = path if path is not None else PipePaths().scan_erase
    data = encode_images(images)
    make_pipe(path)
    with open(path, "wb") as handle:
        handle.write(data)