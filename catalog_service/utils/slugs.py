"""
Slug helpers for category URLs
"""
import re
from typing import Container


def slugify(text: str) -> str:
    """
    Lowercase, hyphen-separated slug
    Args:
        text: Display name, e.g. "Brake Pads & Discs"
    Returns:
        "brake-pads-discs"
    """
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug)
    slug = re.sub(r"-{2,}", "-", slug)
    return slug.strip("-")


def unique_slug(base: str, taken: Container[str]) -> str:
    """Append -1, -2, ... to base until it is not in taken"""
    candidate = base
    counter = 1
    while candidate in taken:
        candidate = f"{base}-{counter}"
        counter += 1
    return candidate
