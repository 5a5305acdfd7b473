"""The protocol a scanner follows to receive images and report findings."""

import logging
import os
from collections.abc import Callable, Iterable
from typing import Optional

from eraser.images import Image
from eraser.pipes import (
    ERASE_COMPLETE_MESSAGE,
    PipePaths,
    make_pipe,
    read_collect_scan_pipe,
    write_scan_erase_pipe,
)


class ImageProvider:
    """Connects a scanner to the collector before it and the eraser after it."""

    def __init__(
        self,
        paths: Optional[PipePaths] = None,
        logger: Optional[logging.Logger] = None,
        delete_scan_failed_images: bool = True,
        metrics: Optional[Callable[[int], None]] = None,
        timeout: Optional[float] = None,
    ):
        self.paths = paths or PipePaths()
        self.log = logger or logging.getLogger("eraser.scanner")
        self.delete_scan_failed_images = delete_scan_failed_images
        self.metrics = metrics
        self.timeout = timeout

    def receive_images(self) -> list[Image]:
        """Open the completion pipe for the eraser and read the collected images."""
        pipe = self.paths.erase_complete_scan
        try:
            make_pipe(pipe)
        except OSError:
            self.log.error("failed to create pipe %s", pipe)
            raise
        try:
            os.chmod(pipe, 0o666)
        except OSError:
            self.log.error("unable to enable pipe %s for writing", pipe)
            raise
        try:
            return read_collect_scan_pipe(self.paths.collect_scan, self.timeout)
        except (OSError, ValueError):
            self.log.error("unable to read images from collect scan pipe")
            raise

    def send_images(
        self, non_compliant_images: Iterable[Image], failed_images: Iterable[Image]
    ) -> list[Image]:
        """Send non-compliant images, plus failed ones if so configured, to the eraser."""
        to_send = list(non_compliant_images)
        if self.delete_scan_failed_images:
            to_send.extend(failed_images)
        try:
            write_scan_erase_pipe(to_send, self.paths.scan_erase)
        except OSError:
            self.log.error("unable to write non-compliant images to scan erase pipe")
            raise
        if self.metrics is not None:
            self.metrics(len(to_send))
        return to_send

    def finish(self) -> bool:
        """Wait for the eraser's completion message; return whether it arrived intact."""
        pipe = self.paths.erase_complete_scan
        with open(pipe, "rb") as handle:
            message = handle.read().decode(errors="replace")
        if message != ERASE_COMPLETE_MESSAGE:
            self.log.info("garbage in pipe %s: %r", pipe, message)
            return False
        self.log.info("scanning complete, exiting")
        return True