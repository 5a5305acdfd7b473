"""Removal of target images from a node."""

import logging
from collections.abc import Collection, Iterable

from eraser.cri import Eraser
from eraser.images import (
    get_non_running_images,
    get_running_images,
    index_images,
    is_excluded,
)

log = logging.getLogger(__name__)

PRUNE = "*"


def remove_images(
    client: Eraser, target_images: Iterable[str], excluded: Collection[str] = ()
) -> int:
    """Remove the target images that no container uses; ``*`` removes all of them.

    Returns the number of images removed.
    """
    all_images, id_to_image = index_images(client.list_images())
    containers = client.list_containers()

    running = get_running_images(containers, id_to_image)
    non_running = get_non_running_images(running, all_images, id_to_image)

    log.debug("non-running images: %s", non_running)
    log.debug("running images: %s", running)
    log.debug("image id to image: %s", id_to_image)

    def names(image_id: str) -> list[str]:
        image = id_to_image.get(image_id)
        return image.names if image else []

    removed = 0
    prune = False
    deleted: set[str] = set()

    for target in target_images:
        if target == PRUNE:
            prune = True
            continue

        if target in non_running:
            image_id = non_running[target]
            if is_excluded(excluded, target, id_to_image):
                log.info("image is excluded: given=%s imageID=%s name=%s",
                         target, image_id, names(image_id))
                continue
            try:
                client.delete_image(image_id)
            except Exception as err:  # noqa: BLE001 - failures are logged and skipped
                log.error("error removing image: given=%s imageID=%s name=%s: %s",
                          target, image_id, names(image_id), err)
                continue
            deleted.add(target)
            log.info("removed image: given=%s imageID=%s name=%s",
                     target, image_id, names(image_id))
            removed += 1
            continue

        if target in running:
            image_id = running[target]
            log.info("image is running: given=%s imageID=%s name=%s",
                     target, image_id, names(image_id))
            continue

        log.info("image is not on node: given=%s", target)

    if prune:
        success = True
        for image_id in list(non_running.values()):
            if image_id in deleted:
                continue
            if is_excluded(excluded, image_id, id_to_image):
                log.info("image is excluded: imageID=%s name=%s", image_id, names(image_id))
                continue
            try:
                client.delete_image(image_id)
            except Exception as err:  # noqa: BLE001 - failures are logged and skipped
                success = False
                log.error("error removing image: imageID=%s name=%s: %s",
                          image_id, names(image_id), err)
                continue
            log.info("removed image: digest=%s", image_id)
            deleted.add(image_id)
            removed += 1
        log.info("prune successful" if success else "error during prune")

    return removed