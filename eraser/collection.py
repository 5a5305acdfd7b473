"""Collection of the idle, non-excluded images on a node."""

import logging
from collections.abc import Collection

from eraser.cri import Collector
from eraser.images import (
    Image,
    get_non_running_images,
    get_running_images,
    index_images,
    is_excluded,
)

log = logging.getLogger(__name__)


def collect_images(client: Collector, excluded: Collection[str] = ()) -> list[Image]:
    """Return each image no container uses and the exclusion list does not cover."""
    all_images, id_to_image = index_images(client.list_images())
    containers = client.list_containers()

    running = get_running_images(containers, id_to_image)
    non_running = get_non_running_images(running, all_images, id_to_image)

    final: list[Image] = []
    checked: set[str] = set()
    for image_id in non_running.values():
        if image_id in checked:
            continue
        checked.add(image_id)
        known = id_to_image[image_id]
        image = Image(image_id=image_id, names=known.names, digests=known.digests)
        if not is_excluded(excluded, image.image_id, id_to_image):
            final.append(image)
    return final