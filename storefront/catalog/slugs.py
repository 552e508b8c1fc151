"""Slug derivation.

Subcollections have no persisted slug. Every lookup and every generated
route must call ``derive_slug`` so both sides agree on the same string.
"""

import re

_WHITESPACE_RUN = re.compile(r"\s+")


def derive_slug(name: str) -> str:
    """Derive a URL slug from a display name.

    Lowercases the name and replaces each run of whitespace with a single
    hyphen. Leading/trailing whitespace therefore becomes a leading/trailing
    hyphen, matching slugs already published under this rule.

    Args:
        name: Display name.

    Returns:
        Derived slug.

    Example:
        >>> derive_slug("Hand  Tools")
        'hand-tools'
    """
    return _WHITESPACE_RUN.sub("-", name.lower())
