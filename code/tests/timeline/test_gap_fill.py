from kansoku.timeline.gap_fill import donor_total, fill_gaps
from kansoku.timeline.models import FinalAction


def _action(name, time, damage=None, *, hit_count=None, per_hit=None,
            samples=1, importance="medium"):
    return FinalAction(
        id=f"{name}_{time}", name=name, time=time, importance=importance,
        icon="⚔️", description="Damage mechanic.", unmitigated_damage=damage,
        hit_count=hit_count, per_hit_damage=per_hit, sample_count=samples,
    )


class TestDonorTotal:
    def test_per_hit_times_hits(self):
        assert donor_total(_action("A", 0, 999, hit_count=3, per_hit=100)) == 300

    def test_falls_back_to_total(self):
        assert donor_total(_action("A", 0, 500)) == 500
        assert donor_total(_action("A", 0)) is None


class TestFillGaps:
    def test_single_donor_stays_unfilled(self):
        target = _action("Big Bang", 40)
        fill_gaps([_action("Big Bang", 10, 100), target])
        assert target.unmitigated_damage is None
        assert not target.gap_filled

    def test_two_donors_take_the_median(self):
        target = _action("Big Bang", 70)
        fill_gaps([_action("Big Bang", 10, 100), _action("Big Bang", 40, 300), target])
        assert target.unmitigated_damage == 200
        assert target.gap_filled

    def test_donor_weighted_by_supporting_reports(self):
        target = _action("Big Bang", 40, importance="low")
        fill_gaps([_action("Big Bang", 10, 100_000, samples=3), target])
        assert target.unmitigated_damage == 100_000
        assert target.importance == "medium"

    def test_single_donor_from_two_reports_fills(self):
        target = _action("Big Bang", 40)
        fill_gaps([_action("Big Bang", 10, 100, samples=2), target])
        assert target.unmitigated_damage == 100
        assert target.gap_filled

    def test_zero_sample_donor_counts_once(self):
        target = _action("Big Bang", 40)
        fill_gaps([_action("Big Bang", 10, 100, samples=0), target])
        assert target.unmitigated_damage is None

    def test_base_name_shared_across_suffixes(self):
        target = _action("Mousse Drip x2", 90, hit_count=2)
        fill_gaps([
            _action("Mousse Drip x4", 10, 120, hit_count=4, per_hit=30),
            _action("Mousse Drip (2)", 50, 120),
            target,
        ])
        assert target.unmitigated_damage == 120
        assert target.per_hit_damage == 60

    def test_other_abilities_are_not_donors(self):
        target = _action("Big Bang", 40)
        fill_gaps([_action("Deep Cut", 10, 100), _action("Deep Cut", 20, 300), target])
        assert target.unmitigated_damage is None

    def test_filled_actions_do_not_donate(self):
        first_gap = _action("Big Bang", 40)
        second_gap = _action("Big Bang", 70)
        fill_gaps([_action("Big Bang", 10, 100, samples=2), first_gap, second_gap])
        assert first_gap.unmitigated_damage == 100
        assert second_gap.unmitigated_damage == 100

    def test_only_low_importance_is_promoted(self):
        high = _action("Big Bang", 40, importance="high")
        fill_gaps([_action("Big Bang", 10, 100, samples=2), high])
        assert high.importance == "high"

    def test_classification_fields_untouched(self):
        target = _action("Big Bang", 40, importance="low")
        fill_gaps([_action("Big Bang", 10, 500_000, samples=2), target])
        assert target.icon == "⚔️"
        assert target.description == "Damage mechanic."
        assert not target.is_tank_buster

    def test_returns_same_list(self):
        actions = [_action("A", 0)]
        assert fill_gaps(actions) is actions
