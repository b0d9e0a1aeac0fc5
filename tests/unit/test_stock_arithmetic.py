"""
Unit tests for pure stock arithmetic (relief_kernel.domain.stock).

No database: these functions work on plain mappings.
"""

from relief_kernel.domain.dtos import DistributionLine
from relief_kernel.domain.stock import (
    Shortfall,
    combine_lines,
    find_shortfalls,
    scale_requirements,
)


class TestCombineLines:
    def test_sums_repeated_items(self):
        lines = [DistributionLine(1, 5), DistributionLine(2, 3), DistributionLine(1, 4)]
        assert combine_lines(lines) == {1: 9, 2: 3}

    def test_keeps_first_seen_order(self):
        lines = [DistributionLine(9, 1), DistributionLine(3, 1), DistributionLine(9, 1)]
        assert list(combine_lines(lines)) == [9, 3]

    def test_empty(self):
        assert combine_lines([]) == {}


class TestScaleRequirements:
    def test_multiplies_by_recipient_count(self):
        lines = [DistributionLine(1, 2), DistributionLine(2, 5)]
        assert scale_requirements(lines, 4) == {1: 8, 2: 20}

    def test_single_recipient_matches_combine(self):
        lines = [DistributionLine(1, 2), DistributionLine(1, 3)]
        assert scale_requirements(lines, 1) == combine_lines(lines)


class TestFindShortfalls:
    def test_no_shortfall_when_exactly_enough(self):
        assert find_shortfalls({1: 10}, {1: 10}) == []

    def test_reports_item_over_stock(self):
        assert find_shortfalls({1: 11, 2: 1}, {1: 10, 2: 5}) == [Shortfall(1, 10, 11)]

    def test_missing_item_counts_as_zero(self):
        assert find_shortfalls({3: 1}, {}) == [Shortfall(3, 0, 1)]

    def test_preserves_requirement_order(self):
        shortfalls = find_shortfalls({2: 5, 1: 5}, {1: 0, 2: 0})
        assert [s.item_id for s in shortfalls] == [2, 1]
