from kansoku.config import SyncConfig
from kansoku.timeline.models import HitRateResult
from kansoku.timeline.synthesize import (
    build_final_timeline,
    resolve_hit_count,
    unique_id,
)


def _result(name, time, occurrence=1, **kwargs):
    defaults = dict(
        action_key=f"{name.lower()}_{occurrence}", name=name, occurrence=occurrence,
        time=time, matched_reports=0, total_reports=5, hit_rate=0.0, is_dodgeable=False,
    )
    defaults.update(kwargs)
    return HitRateResult(**defaults)


class TestResolveHitCount:
    def test_explicit_suffix(self):
        assert resolve_hit_count(_result("Mousse Drip x4", 0), set()) == 4

    def test_listed_ability_uses_observed_hits(self):
        result = _result("Octuple Lariat", 0, hits_per_target=8)
        assert resolve_hit_count(result, {"octuple lariat"}) == 8

    def test_listed_ability_single_observed_hit(self):
        result = _result("Octuple Lariat", 0, hits_per_target=1)
        assert resolve_hit_count(result, {"octuple lariat"}) is None

    def test_unlisted_ability_ignores_observed_hits(self):
        assert resolve_hit_count(_result("Deep Cut", 0, hits_per_target=3), set()) is None


def test_unique_id_suffixes_collisions():
    taken: set[str] = set()
    assert unique_id("Big Bang", 1, taken) == "big_bang_1"
    assert unique_id("Big-Bang", 1, taken) == "big_bang_1_2"
    assert unique_id("Big Bang!", 1, taken) == "big_bang_1_3"


class TestBuildFinalTimeline:
    def test_per_player_damage_from_median_targets(self):
        [action] = build_final_timeline([
            _result("Big Bang", 10.0, representative_damage=800_000,
                    median_target_count=8, hit_rate=1.0, matched_reports=5,
                    average_damage_per_target=100_000, damage_type="magical"),
        ], SyncConfig())

        assert action.id == "big_bang_1"
        assert action.unmitigated_damage == 100_000
        assert action.per_hit_damage is None
        assert action.importance == "high"
        assert not action.is_tank_buster
        assert action.description == "Magical raidwide damage."
        assert action.icon == "⚔️"
        assert action.sample_count == 5

    def test_default_target_count_when_unknown(self):
        [action] = build_final_timeline([
            _result("Big Bang", 10.0, representative_damage=400_000, hit_rate=1.0),
        ], SyncConfig())
        assert action.unmitigated_damage == 50_000

    def test_multi_hit_per_hit_damage(self):
        [action] = build_final_timeline([
            _result("Mousse Drip x4", 30.0, representative_damage=1_000_000,
                    median_target_count=8, hit_rate=1.0),
        ], SyncConfig())
        assert action.hit_count == 4
        assert action.unmitigated_damage == 125_000
        assert action.per_hit_damage == 31_250
        assert action.description.startswith("4 hits of")

    def test_configured_multi_hit_ability(self):
        config = SyncConfig(multi_hit_abilities=["Octuple Lariat"])
        [action] = build_final_timeline([
            _result("Octuple Lariat", 30.0, representative_damage=640_000,
                    median_target_count=8, hits_per_target=8, hit_rate=1.0),
        ], config)
        assert action.hit_count == 8
        assert action.per_hit_damage == 10_000

    def test_damage_shape_tank_buster(self):
        [action] = build_final_timeline([
            _result("Brutal Claw", 5.0, representative_damage=180_000,
                    median_target_count=2, average_damage_per_target=90_000,
                    hit_rate=1.0),
        ], SyncConfig())
        assert action.is_tank_buster
        assert action.is_dual_tank_buster
        assert action.icon == "🛡️"
        assert action.importance == "high"

    def test_unmatched_action_has_no_damage(self):
        [action] = build_final_timeline([_result("Spread Out", 50.0)], SyncConfig())
        assert action.unmitigated_damage is None
        assert action.damage_type is None
        assert action.importance == "low"
        assert action.description == "Spread marker damage."

    def test_importance_uses_unrounded_rate(self):
        [action] = build_final_timeline([
            _result("Mouser", 30.0, hit_rate=0.5, exact_hit_rate=0.496),
        ], SyncConfig())
        assert action.importance == "low"

    def test_canonical_time_order_and_unique_ids(self):
        actions = build_final_timeline([
            _result("Big Bang", 40.0, occurrence=2),
            _result("Big Bang", 10.0, occurrence=1),
            _result("Big Bang x3", 70.0, occurrence=3),
        ], SyncConfig())
        assert [a.id for a in actions] == ["big_bang_1", "big_bang_2", "big_bang_x3_3"]

    def test_dodgeable_kept_by_default(self):
        results = [_result("Puddle", 5.0, is_dodgeable=True), _result("Raidwide", 9.0)]
        assert len(build_final_timeline(results, SyncConfig())) == 2

    def test_dodgeable_dropped_when_excluded(self):
        results = [_result("Puddle", 5.0, is_dodgeable=True), _result("Raidwide", 9.0)]
        actions = build_final_timeline(results, SyncConfig(include_dodgeable=False))
        assert [a.name for a in actions] == ["Raidwide"]
