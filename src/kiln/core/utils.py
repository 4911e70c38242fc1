"""Slug helpers shared by the loader and the assembler."""

import re
from unicodedata import normalize

DEFAULT_SLUG_MAX_LEN = 60


def slugify(text: str, max_len: int = DEFAULT_SLUG_MAX_LEN) -> str:
    """Convert text to a safe URL-friendly slug.

    Args:
        text: Input text to slugify
        max_len: Maximum length of output slug (default 60)

    Returns:
        Slug made of lowercase ASCII letters, digits and single hyphens.
        Empty when nothing slug-worthy remains.

    Examples:
        >>> slugify("Hello World")
        'hello-world'
        >>> slugify("Café")
        'cafe'
        >>> slugify("c++")
        'c'
        >>> slugify("A" * 100, max_len=20)
        'aaaaaaaaaaaaaaaaaaaa'

    """
    # Normalize unicode (NFKD) and convert to ASCII
    normalized = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")

    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower()).strip("-")

    if len(slug) > max_len:
        slug = slug[:max_len].rstrip("-")

    return slug
