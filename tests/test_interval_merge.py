import pytest

from zwavewatch.detection.merge import format_durations, merge_intervals
from zwavewatch.detection.types import DetectionInterval


def _pairs(intervals):
    return [(iv.start_s, iv.end_s) for iv in intervals]


def test_merge_empty() -> None:
    assert merge_intervals([]) == []


def test_merge_single_interval_unchanged() -> None:
    assert _pairs(merge_intervals([(0, 1)])) == [(0, 1)]


def test_merge_within_gap_collapses() -> None:
    assert _pairs(merge_intervals([(0, 1), (2, 3)])) == [(0, 3)]


def test_merge_gap_boundary_is_inclusive() -> None:
    assert _pairs(merge_intervals([(0, 1), (6, 7)])) == [(0, 7)]
    assert _pairs(merge_intervals([(0, 1), (7, 8)])) == [(0, 1), (7, 8)]


def test_merge_far_apart_kept_separate() -> None:
    assert _pairs(merge_intervals([(0, 1), (10, 11)])) == [(0, 1), (10, 11)]


def test_merge_sorts_out_of_order_input() -> None:
    assert _pairs(merge_intervals([(5, 6), (0, 1)])) == [(0, 6)]
    assert _pairs(merge_intervals([(20, 21), (0, 1), (10, 11)])) == [(0, 1), (10, 11), (20, 21)]


def test_merge_fully_overlapping_collapse_to_one() -> None:
    assert _pairs(merge_intervals([(0, 10), (2, 3), (4, 9)])) == [(0, 10)]


def test_merge_keeps_longest_end() -> None:
    assert _pairs(merge_intervals([(0, 10), (3, 4)])) == [(0, 10)]


def test_merge_custom_gap() -> None:
    intervals = [(0, 1), (2, 3)]
    assert _pairs(merge_intervals(intervals, gap_s=0)) == [(0, 1), (2, 3)]
    assert _pairs(merge_intervals([(0, 1), (1, 2)], gap_s=0)) == [(0, 2)]
    with pytest.raises(ValueError):
        merge_intervals(intervals, gap_s=-1)


def test_merge_does_not_modify_input() -> None:
    raw = [DetectionInterval(3, 4), DetectionInterval(0, 1)]
    merge_intervals(raw)
    assert raw == [DetectionInterval(3, 4), DetectionInterval(0, 1)]


def test_merge_is_idempotent() -> None:
    samples = [
        [],
        [(0, 1)],
        [(0, 1), (2, 3), (30, 31), (33, 34), (50, 51)],
        [(9, 10), (0, 1), (4, 5), (100, 120), (110, 111)],
    ]
    for raw in samples:
        once = merge_intervals(raw)
        assert merge_intervals(once) == once


def test_merged_neighbours_are_separated_by_more_than_gap() -> None:
    merged = merge_intervals([(s, s + 1) for s in (0, 3, 8, 15, 40, 44, 52)])
    for prev, nxt in zip(merged, merged[1:]):
        assert prev.start_s <= nxt.start_s
        assert nxt.start_s > prev.end_s + 5


def test_interval_rejects_inverted_bounds() -> None:
    with pytest.raises(ValueError):
        DetectionInterval(5, 4)


def test_format_durations() -> None:
    assert format_durations([]) == ""
    assert format_durations([DetectionInterval(2, 7)]) == "2-7"
    assert format_durations([(0, 1), (10, 12)]) == "0-1,10-12"
