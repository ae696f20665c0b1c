from nbadfs.config import SlotKind
from nbadfs.optimizer.eligibility import eligible_slots, max_slot_matching, unfillable_slots


def test_eligible_slots_follow_roster_rules():
    assert eligible_slots(["PG"]) == {SlotKind.PG, SlotKind.G, SlotKind.UTIL}
    assert eligible_slots(["SF", "PF"]) == {SlotKind.SF, SlotKind.PF, SlotKind.F, SlotKind.UTIL}
    assert eligible_slots(["c"]) == {SlotKind.C, SlotKind.UTIL}


def test_unknown_tags_are_unplaceable():
    assert eligible_slots(["QB"]) == frozenset()
    assert eligible_slots([]) == frozenset()


def test_matching_covers_roster_when_possible():
    slot_sets = [
        eligible_slots(tags)
        for tags in (["PG"], ["SG"], ["SF"], ["PF"], ["C"], ["PG", "SG"], ["SF", "PF"], ["C"])
    ]
    matching = max_slot_matching(slot_sets)
    assert len(matching) == 8
    assert sorted(matching.values()) == list(range(8))


def test_matching_reports_conflicts():
    slot_sets = [eligible_slots(["C"]) for _ in range(3)]
    matching = max_slot_matching(slot_sets)
    assert set(matching) == {SlotKind.C, SlotKind.UTIL}


def test_unfillable_slots_lists_empty_positions():
    slot_sets = [eligible_slots(["PG"]), eligible_slots(["SF"])]
    assert SlotKind.C in unfillable_slots(slot_sets)
    assert SlotKind.PG not in unfillable_slots(slot_sets)
