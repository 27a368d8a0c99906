"""Pure helpers for ``/``-delimited item namespace paths."""

from typing import Optional


SEPARATOR = "/"


def depth_of(full_name: Optional[str]) -> int:
    if not full_name or not full_name.strip():
        return 0
    return full_name.count(SEPARATOR)


def parent_of(full_name: Optional[str]) -> Optional[str]:
    if full_name is None:
        return None
    idx = full_name.rfind(SEPARATOR)
    if idx <= 0:
        return None
    return full_name[:idx]


def leaf_name(full_name: Optional[str]) -> str:
    if full_name is None:
        return ""
    return full_name.rsplit(SEPARATOR, 1)[-1]


def ancestors_of(full_name: str) -> list[str]:
    """Return every ancestor path, nearest first."""
    result: list[str] = []
    parent = parent_of(full_name)
    while parent:
        result.append(parent)
        parent = parent_of(parent)
    return result


def is_same_or_descendant(candidate: str, prefix: str) -> bool:
    return candidate == prefix or candidate.startswith(prefix + SEPARATOR)


def sort_key(full_name: Optional[str], is_container: bool) -> str:
    name = full_name or ""
    if is_container and not name.endswith(SEPARATOR):
        name += SEPARATOR
    return name.lower()


def hierarchy_order(full_name: str) -> tuple[int, str]:
    return depth_of(full_name), full_name.lower()


def tree_order(full_name: str, is_container: bool) -> tuple[str, str]:
    return sort_key(full_name, is_container), full_name.lower()
