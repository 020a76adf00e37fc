import re
from typing import Callable

MAX_SLUG_ATTEMPTS = 100


def slugify(name: str) -> str:
    """'Web  Development!' -> 'web-development'; falls back to 'tag'."""
    slug = name.strip().lower()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    slug = re.sub(r"-+", "-", slug)
    slug = slug.strip("-")
    return slug or "tag"


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """Append -1, -2, ... to ``base`` until ``exists`` says the slug is free."""
    slug = base
    counter = 1
    while exists(slug):
        slug = f"{base}-{counter}"
        counter += 1
        if counter > MAX_SLUG_ATTEMPTS:
            raise RuntimeError("Unable to generate unique slug")
    return slug
