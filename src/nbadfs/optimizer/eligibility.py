"""Map raw position tags onto roster slots."""

from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Sequence

from nbadfs.config.roster import CLASSIC_RULES, SlotKind


def eligible_slots(tags: Iterable[str]) -> FrozenSet[SlotKind]:
    """Return the slots a player with ``tags`` may fill.

    Unknown tags contribute nothing, so a player without a recognised
    position is simply unplaceable.
    """

    normalized = {tag.strip().upper() for tag in tags if tag and tag.strip()}
    return frozenset(
        slot
        for slot in CLASSIC_RULES.roster_order
        if normalized & CLASSIC_RULES.slot_positions[slot]
    )


def slot_pool_counts(slot_sets: Iterable[FrozenSet[SlotKind]]) -> Dict[SlotKind, int]:
    counts = {slot: 0 for slot in CLASSIC_RULES.roster_order}
    for slots in slot_sets:
        for slot in slots:
            counts[slot] += 1
    return counts


def max_slot_matching(
    slot_sets: Sequence[FrozenSet[SlotKind]],
    *,
    slots: Sequence[SlotKind] = CLASSIC_RULES.roster_order,
    slot_order: Optional[Mapping[SlotKind, int]] = None,
) -> Dict[SlotKind, int]:
    """Maximum bipartite matching of players (by index) to ``slots``.

    Returns ``{slot: player_index}`` for every matched slot. ``slot_order``
    ranks slots per player so that each player is first offered the slot
    with the lowest rank (used to push locks into scarce slots).
    """

    match: Dict[SlotKind, int] = {}
    wanted = set(slots)

    def ranked(idx: int) -> list[SlotKind]:
        options = [slot for slot in slots if slot in slot_sets[idx] and slot in wanted]
        if slot_order is not None:
            options.sort(key=lambda slot: slot_order.get(slot, 0))
        return options

    def augment(idx: int, visited: set[SlotKind]) -> bool:
        for slot in ranked(idx):
            if slot in visited:
                continue
            visited.add(slot)
            holder = match.get(slot)
            if holder is None or augment(holder, visited):
                match[slot] = idx
                return True
        return False

    for idx in range(len(slot_sets)):
        if len(match) == len(wanted):
            break
        augment(idx, set())
    return match


def unfillable_slots(slot_sets: Sequence[FrozenSet[SlotKind]]) -> list[SlotKind]:
    """Slots no player in ``slot_sets`` can fill."""

    counts = slot_pool_counts(slot_sets)
    return [slot for slot in CLASSIC_RULES.roster_order if counts[slot] == 0]
