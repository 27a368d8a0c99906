from job_backup.paths import depth_of
from job_backup.selection import expand_selection, normalize_selection


KEYS = ["A", "A/B", "A/B/C", "A/BC", "Z"]


def test_normalize_drops_blank_and_duplicates() -> None:
    assert normalize_selection([" A ", None, "", "  ", "A", "B"]) == ["A", "B"]
    assert normalize_selection(None) == []


def test_expand_prefix_example() -> None:
    assert expand_selection(["A/B"], KEYS) == ["A/B", "A/B/C"]


def test_expand_empty_selection_is_empty() -> None:
    assert expand_selection([], KEYS) == []
    assert expand_selection(None, KEYS) == []
    assert expand_selection(["  "], KEYS) == []


def test_expand_drops_unknown_tokens() -> None:
    assert expand_selection(["missing", "Z"], KEYS) == ["Z"]


def test_expand_overlapping_tokens_without_duplicates() -> None:
    result = expand_selection(["A", "A/B", "A/B/C"], KEYS)

    assert len(result) == len(set(result))
    assert set(result) == {"A", "A/B", "A/B/C", "A/BC"}


def test_expand_is_subset_ordered_by_depth() -> None:
    keys = ["x/y/z", "X", "x/y", "w"]

    result = expand_selection(["X", "x", "w"], keys)

    assert set(result) <= set(keys)
    depths = [depth_of(item) for item in result]
    assert depths == sorted(depths)


def test_expand_accepts_trailing_separator() -> None:
    assert expand_selection(["A/B/"], KEYS) == ["A/B/C"]
