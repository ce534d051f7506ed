"""
Domain service: human-facing public IDs for tree records.

A public ID is a slug of the tree's common name plus a random 4-digit
suffix, e.g. ``rain-tree-0427``. It is printed on QR labels and PDFs.
"""
import random
import re
from typing import Optional

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")

SEPARATOR = "-"


def slugify(name: str) -> str:
    """
    Reduce a free-text name to ``[a-z0-9-]``.

    Runs of characters outside ``[a-zA-Z0-9]`` (including non-ASCII letters)
    collapse into one separator; leading and trailing separators are dropped.

    Args:
        name: Any text

    Returns:
        Lowercase slug, possibly empty
    """
    slug = _NON_ALNUM.sub(SEPARATOR, name)
    return slug.strip(SEPARATOR).lower()


def random_suffix(rng: Optional[random.Random] = None) -> str:
    """Zero-padded random number in 0000..9999."""
    rng = rng or random
    return f"{rng.randrange(10000):04d}"


def generate_public_id(name: str, rng: Optional[random.Random] = None) -> str:
    """
    Build a candidate public ID for a tree name.

    Uniqueness is not checked here; see ``TreeService.ensure_public_id``.
    """
    slug = slugify(name)
    suffix = random_suffix(rng)
    return f"{slug}{SEPARATOR}{suffix}" if slug else suffix
