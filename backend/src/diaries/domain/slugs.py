import re
from collections.abc import Container

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def normalize_name(name: str) -> str:
    return _NON_ALNUM_RE.sub("-", name.strip().lower()).strip("-")


def derive_base_slug(name1: str, name2: str) -> str:
    """Join two normalized names with ``-``.

    Blank or symbol-only names normalize to an empty string, so two blank
    names give the degenerate slug ``"-"``.
    """
    return f"{normalize_name(name1)}-{normalize_name(name2)}"


def next_available_slug(base: str, taken: Container[str]) -> str:
    if base not in taken:
        return base
    suffix = 1
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
