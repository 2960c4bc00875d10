import itertools

import pytest

from kansoku.config import SyncConfig
from kansoku.timeline.aggregate import (
    AggregationState,
    analyze_hit_rates,
    combine,
    merge,
    median,
    summarize_hit_rates,
    vote_damage_type,
)
from kansoku.timeline.models import CanonicalAction, DamageMapping, HitRateResult

ACTIONS = [
    CanonicalAction("Big Bang", 10.0),
    CanonicalAction("Deep Cut", 20.0),
    CanonicalAction("Big Bang", 40.0),
]


def _hit(code, key, damage, damage_type="magical", targets=8, hits=8):
    return DamageMapping(
        report_code=code, action_key=key, matched=True, damage=damage,
        damage_type=damage_type, target_count=targets, hit_count=hits,
    )


def _miss(code, key):
    return DamageMapping(report_code=code, action_key=key, matched=False)


REPORTS = {
    "AAA": [_hit("AAA", "big bang_1", 800_000), _hit("AAA", "deep cut_1", 90_000,
            "physical", 1, 1), _miss("AAA", "big bang_2")],
    "BBB": [_hit("BBB", "big bang_1", 720_000, "physical"), _miss("BBB", "deep cut_1"),
            _miss("BBB", "big bang_2")],
    "CCC": [_hit("CCC", "big bang_1", 880_000), _hit("CCC", "deep cut_1", 110_000,
            "physical", 2, 2), _hit("CCC", "big bang_2", 10_000)],
    "DDD": [_miss("DDD", "big bang_1"), _miss("DDD", "deep cut_1"),
            _miss("DDD", "big bang_2")],
}


def _fold(order):
    state = AggregationState()
    for code in order:
        state = merge(state, code, REPORTS[code])
    return state


class TestMerge:
    def test_unmatched_mappings_only_count_the_report(self):
        state = merge(AggregationState(), "DDD", REPORTS["DDD"])
        assert state.reports == frozenset({"DDD"})
        assert state.buckets == {}

    def test_derived_lists_in_report_order(self):
        state = _fold(["CCC", "AAA", "BBB"])
        bucket = state.bucket("big bang_1")
        assert bucket.damage_values == [800_000, 720_000, 880_000]
        assert bucket.damage_types == ["magical", "physical", "magical"]
        assert bucket.matched_reports == 3

    def test_merge_does_not_mutate_input(self):
        empty = AggregationState()
        merge(empty, "AAA", REPORTS["AAA"])
        assert empty.reports == frozenset()
        assert empty.buckets == {}

    def test_merge_order_does_not_matter(self):
        expected = analyze_hit_rates(ACTIONS, _fold(REPORTS), SyncConfig())
        for order in itertools.permutations(REPORTS):
            state = _fold(order)
            assert analyze_hit_rates(ACTIONS, state, SyncConfig()) == expected
            assert state == _fold(sorted(REPORTS))

    def test_combine_matches_sequential_fold(self):
        left = _fold(["AAA", "DDD"])
        right = _fold(["CCC", "BBB"])
        assert combine(left, right) == _fold(REPORTS)
        assert combine(right, left) == _fold(REPORTS)

    def test_combine_is_associative(self):
        a, b, c = _fold(["AAA"]), _fold(["BBB"]), _fold(["CCC", "DDD"])
        assert combine(combine(a, b), c) == combine(a, combine(b, c))


class TestAnalyzeHitRates:
    def test_hit_rate_and_statistics(self):
        results = analyze_hit_rates(ACTIONS, _fold(REPORTS), SyncConfig())
        by_key = {r.action_key: r for r in results}

        first = by_key["big bang_1"]
        assert first.hit_rate == 0.75
        assert first.matched_reports == 3
        assert first.total_reports == 4
        assert first.representative_damage == 800_000
        assert first.median_target_count == 8
        assert first.hits_per_target == 1
        assert first.average_damage_per_target == 100_000
        assert first.damage_type == "magical"
        assert not first.is_dodgeable

        deep_cut = by_key["deep cut_1"]
        assert deep_cut.hit_rate == 0.5
        assert deep_cut.representative_damage == 100_000
        assert deep_cut.median_target_count == 1.5
        assert deep_cut.average_damage_per_target == 72_500
        assert deep_cut.is_dodgeable

        second = by_key["big bang_2"]
        assert second.hit_rate == 0.25
        assert second.occurrence == 2
        assert second.time == 40.0

    def test_results_in_time_order(self):
        results = analyze_hit_rates(ACTIONS, _fold(REPORTS), SyncConfig())
        assert [r.action_key for r in results] == ["big bang_1", "deep cut_1", "big bang_2"]

    def test_hit_rate_rounded_to_two_places(self):
        state = AggregationState()
        state = merge(state, "A", [_hit("A", "big bang_1", 1)])
        state = merge(state, "B", [])
        state = merge(state, "C", [])
        [result, *_] = analyze_hit_rates(ACTIONS, state, SyncConfig())
        assert result.hit_rate == 0.33
        assert result.exact_hit_rate == pytest.approx(1 / 3)

    def test_dodgeable_uses_unrounded_rate(self):
        state = AggregationState()
        for i in range(23):
            code = f"R{i:02d}"
            mappings = [_hit(code, "big bang_1", 800_000)] if i < 16 else []
            state = merge(state, code, mappings)

        [result, *_] = analyze_hit_rates(ACTIONS, state, SyncConfig())

        assert result.hit_rate == 0.7
        assert result.exact_hit_rate < 0.7
        assert result.is_dodgeable

    def test_below_confidence_floor_is_not_dodgeable(self):
        state = _fold(["AAA", "BBB"])
        config = SyncConfig(min_reports_for_confidence=3)
        by_key = {r.action_key: r for r in analyze_hit_rates(ACTIONS, state, config)}
        assert by_key["big bang_2"].hit_rate == 0.0
        assert not by_key["big bang_2"].is_dodgeable

    def test_default_floor_scales_with_small_samples(self):
        state = _fold(["AAA"])
        by_key = {r.action_key: r for r in analyze_hit_rates(ACTIONS, state, SyncConfig())}
        assert by_key["big bang_2"].is_dodgeable

    def test_never_dodgeable_list(self):
        config = SyncConfig(never_dodgeable=["Deep Cut x2"])
        by_key = {
            r.action_key: r
            for r in analyze_hit_rates(ACTIONS, _fold(REPORTS), config)
        }
        assert not by_key["deep cut_1"].is_dodgeable
        assert by_key["big bang_2"].is_dodgeable

    @pytest.mark.parametrize("threshold,dodgeable", [(0.5, False), (0.51, True)])
    def test_threshold_is_strict(self, threshold, dodgeable):
        config = SyncConfig(dodgeable_threshold=threshold)
        by_key = {
            r.action_key: r
            for r in analyze_hit_rates(ACTIONS, _fold(REPORTS), config)
        }
        assert by_key["deep cut_1"].is_dodgeable is dodgeable

    def test_no_reports(self):
        results = analyze_hit_rates(ACTIONS, AggregationState(), SyncConfig())
        assert all(r.hit_rate == 0.0 and not r.is_dodgeable for r in results)
        assert all(r.representative_damage is None for r in results)


class TestVoteDamageType:
    def test_majority(self):
        assert vote_damage_type(["physical", "magical", "magical"]) == "magical"

    def test_tie_goes_to_first_seen(self):
        assert vote_damage_type(["physical", "magical"]) == "physical"
        assert vote_damage_type(["magical", "physical"]) == "magical"

    def test_empty(self):
        assert vote_damage_type([]) is None


def test_median_helper():
    assert median([]) is None
    assert median([3, 1, 2]) == 2
    assert median([100, 300]) == 200


def _result(hit_rate, dodgeable=False):
    return HitRateResult(
        action_key="x_1", name="X", occurrence=1, time=0.0, matched_reports=0,
        total_reports=10, hit_rate=hit_rate, is_dodgeable=dodgeable,
    )


class TestSummarizeHitRates:
    def test_buckets(self):
        summary = summarize_hit_rates([
            _result(1.0), _result(1.0), _result(0.85), _result(0.6),
            _result(0.3, True), _result(0.05, True),
        ])
        assert "Total actions analyzed: 6" in summary
        assert "Dodgeable (hit rate < threshold): 2" in summary
        assert "Average hit rate: 63%" in summary
        assert "  100%: 2 actions" in summary
        assert "  80-99%: 1 actions" in summary
        assert "  50-79%: 1 actions" in summary
        assert "  20-49%: 1 actions" in summary
        assert "  <20%: 1 actions" in summary

    def test_empty_bucket_omitted(self):
        assert "80-99%" not in summarize_hit_rates([_result(1.0)])

    def test_no_results(self):
        assert summarize_hit_rates([]) == "No actions analyzed"
