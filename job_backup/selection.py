from typing import Iterable, Optional

from job_backup.paths import SEPARATOR, hierarchy_order


def normalize_selection(raw: Optional[Iterable[Optional[str]]]) -> list[str]:
    if raw is None:
        return []
    result: list[str] = []
    seen: set[str] = set()
    for item in raw:
        if item is None:
            continue
        value = item.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        result.append(value)
    return result


def expand_selection(
    raw: Optional[Iterable[Optional[str]]], known_keys: Iterable[str]
) -> list[str]:
    """Expand selected paths into every known key at or below them.

    Selections are prefixes: ``A/B`` picks ``A/B`` itself and anything under
    ``A/B/``. Tokens matching nothing are dropped. The result is ordered by
    depth, then case-insensitive name, so ancestors precede descendants.
    """
    selected = normalize_selection(raw)
    if not selected:
        return []

    keys = list(known_keys)
    expanded: dict[str, None] = {}
    for token in selected:
        prefix = token if token.endswith(SEPARATOR) else token + SEPARATOR
        for key in keys:
            if key == token or key.startswith(prefix):
                expanded.setdefault(key, None)

    return sorted(expanded, key=hierarchy_order)
