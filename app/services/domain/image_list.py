"""
Domain service: reconciliation of a tree's photo list.

Every mutation reads the whole list, computes the new list here and writes
it back with a single overwrite. The functions are pure; the current list is
never modified in place.
"""
from typing import List, Sequence

from app.domain.errors import ImageLimitExceededError, ImageNotFoundError
from app.domain.models import ImageEntry


def remaining_slots(existing: Sequence[ImageEntry], limit: int) -> int:
    return max(limit - len(existing), 0)


def check_capacity(existing: Sequence[ImageEntry], incoming: int, limit: int) -> None:
    """
    Reject an upload before any bytes are sent to the media host.

    Raises:
        ImageLimitExceededError: If ``incoming`` entries do not fit
    """
    remaining = remaining_slots(existing, limit)
    if remaining <= 0 or incoming > remaining:
        raise ImageLimitExceededError(remaining, limit)


def append_images(
    existing: Sequence[ImageEntry],
    new_images: Sequence[ImageEntry],
    limit: int,
) -> List[ImageEntry]:
    """
    Append entries to the list.

    Args:
        existing: Current list, in stored order
        new_images: Entries to add, in upload order
        limit: Maximum list length

    Returns:
        New list with ``new_images`` at the end; entries whose URL is
        already present are not added twice

    Raises:
        ImageLimitExceededError: If the result would exceed ``limit``
    """
    check_capacity(existing, len(new_images), limit)
    fresh = [image for image in new_images if not contains_image(existing, image.url)]
    return list(existing) + fresh


def remove_image(existing: Sequence[ImageEntry], url: str) -> List[ImageEntry]:
    """
    Remove the first entry whose URL equals ``url`` exactly.

    Args:
        existing: Current list
        url: URL of the photo to drop

    Returns:
        New list with the relative order of the other entries kept

    Raises:
        ImageNotFoundError: If no entry has that URL
    """
    for index, image in enumerate(existing):
        if image.url == url:
            return list(existing[:index]) + list(existing[index + 1:])
    raise ImageNotFoundError(url)


def contains_image(existing: Sequence[ImageEntry], url: str) -> bool:
    return any(image.url == url for image in existing)


def to_store(images: Sequence[ImageEntry]) -> List[dict]:
    return [image.to_store() for image in images]
