"""The collector job: publish the idle images on a node to the next stage."""

import logging
import os
from collections.abc import Collection
from typing import Optional, Union

from eraser.collection import collect_images
from eraser.cri import Collector
from eraser.images import Image, parse_excluded
from eraser.pipes import ERASE_COMPLETE_MESSAGE, PipePaths, encode_images, make_pipe

log = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


class GarbageInPipeError(RuntimeError):
    """The completion pipe held something other than the completion message."""

    def __init__(self, path: str, content: str):
        self.path = path
        self.content = content
        super().__init__(f"garbage in pipe {path}: {content!r}")


def _load_excluded(directory: PathLike) -> Collection[str]:
    try:
        excluded = parse_excluded(directory)
    except FileNotFoundError:
        log.info("configmaps for exclusion do not exist")
        return set()
    if not excluded:
        log.info("no images to exclude")
    return excluded


def run(
    client: Collector,
    paths: Optional[PipePaths] = None,
    exclusion_dir: PathLike = ".",
    scan_disabled: bool = False,
) -> list[Image]:
    """Collect idle images, send them on, and wait for the eraser to finish.

    The images go to the scanner, or straight to the eraser when scanning is
    disabled. Returns the images sent.
    """
    paths = paths or PipePaths()
    excluded = _load_excluded(exclusion_dir)
    images = collect_images(client, excluded)
    log.info("images collected: %s", images)

    data = encode_images(images)
    target = paths.scan_erase if scan_disabled else paths.collect_scan
    make_pipe(target)
    with open(target, "wb") as handle:
        handle.write(data)

    make_pipe(paths.erase_complete_collect)
    with open(paths.erase_complete_collect, "rb") as handle:
        message = handle.read().decode(errors="replace")

    if message != ERASE_COMPLETE_MESSAGE:
        raise GarbageInPipeError(paths.erase_complete_collect, message)
    return images