"""The eraser job: remove target images from a node and signal completion."""

import logging
import os
import time
from collections.abc import Collection
from pathlib import Path
from typing import Optional, Union

from eraser.cri import Eraser
from eraser.images import parse_excluded, parse_image_list
from eraser.pipes import ERASE_COMPLETE_MESSAGE, PipePaths, decode_images
from eraser.removal import remove_images

log = logging.getLogger(__name__)

_POLL_INTERVAL = 1.0

PathLike = Union[str, os.PathLike]


def _load_excluded(directory: PathLike) -> Collection[str]:
    try:
        excluded = parse_excluded(directory)
    except FileNotFoundError:
        log.info("configmaps for exclusion do not exist")
        return set()
    if not excluded:
        log.info("no images to exclude")
    return excluded


def read_target_images(
    paths: Optional[PipePaths] = None, image_list: Optional[PathLike] = None
) -> list[str]:
    """Return the image references to remove.

    With ``image_list`` the references come from that JSON file; otherwise the
    job waits for the scan-erase pipe and removes the image IDs the scanner sent.
    """
    if image_list:
        images = parse_image_list(image_list)
        log.info("successfully parsed image list file")
        return images

    paths = paths or PipePaths()
    while True:
        try:
            handle = open(paths.scan_erase, "rb")
        except FileNotFoundError:
            time.sleep(_POLL_INTERVAL)
            continue
        break
    with handle:
        data = handle.read()
    targets = [image.image_id for image in decode_images(data)]
    log.info("successfully created imagelist from scanned non-compliant images")
    return targets


def _write_message(path: PathLike) -> None:
    fd = os.open(path, os.O_WRONLY)
    with os.fdopen(fd, "w") as handle:
        handle.write(ERASE_COMPLETE_MESSAGE)


def signal_complete(paths: Optional[PipePaths] = None) -> bool:
    """Tell the collector, and the scanner if one runs, that erasing is done.

    Returns whether the scanner was notified; a missing scanner pipe means the
    scanner is disabled.
    """
    paths = paths or PipePaths()
    _write_message(paths.erase_complete_collect)
    try:
        _write_message(paths.erase_complete_scan)
    except FileNotFoundError:
        return False
    return True


def run(
    client: Eraser,
    paths: Optional[PipePaths] = None,
    image_list: Optional[PathLike] = None,
    exclusion_dir: PathLike = ".",
) -> int:
    """Remove the target images and return how many were removed."""
    paths = paths or PipePaths()
    targets = read_target_images(paths, image_list)
    excluded = _load_excluded(Path(exclusion_dir))
    removed = remove_images(client, targets, excluded)
    if not image_list:
        signal_complete(paths)
    return removed