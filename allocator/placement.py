"""Greedy placement with depth-1 local backtracking.

This module provides the allocation engine used by the exam scheduler. It is
problem-agnostic: it places abstract *items* (exams) into (day, slot, room)
cells, where every item has a demand (head count) and a set of *members*
(students) that must never collide.

Everything is addressed by dense integer indices:

- items ``0..n-1``, rooms ``0..r-1``, members ``0..m-1``
- days ``0..days-1`` and slots ``0..slots_per_day-1`` (slot *offsets*)

Occupancy is kept in Python ints used as bitsets:

- ``taken[member][day]``   -> bitmask of slots the member sits that day
- ``room_busy[day][slot]`` -> bitmask of rooms in use
- ``forbidden[day][slot]`` -> bitmask of members that may not sit there

``forbidden`` is always re-derived from ``taken`` for the (member, day) pairs
touched by a commit or a release, so releasing a placement can never leave
stale entries behind.

Search order
------------
Items are processed in the order given to :meth:`PlacementEngine.run`. For
each item the engine scans day ascending, then candidate room (rooms that fit
the demand, in the order the caller supplied them), then slot ascending, and
commits the first free cell.

Limitation
----------
When an item cannot be placed the engine releases only the *immediately
preceding* placement, swaps the two items and retries from there. It never
un-commits anything earlier, so it can fail on inputs that do have a feasible
assignment. The number of such corrections per run is bounded by
``backtrack_factor * item_count``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import logging


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementConfig:
    """Grid dimensions and per-member rules.

    Attributes:
        days: Number of days in the period.
        slots_per_day: Number of slots in each day.
        max_per_day: Maximum placements a member may hold on one day.
        min_gap: Two placements of a member on the same day must be more than
            ``min_gap`` slots apart.
        backtrack_factor: Backtrack budget per run, as a multiple of the item count.
    """

    days: int
    slots_per_day: int
    max_per_day: int = 2
    min_gap: int = 1
    backtrack_factor: int = 2


@dataclass(frozen=True)
class Placement:
    item: int
    day: int
    slot: int
    room: int


@dataclass(frozen=True)
class PlacementOutcome:
    order: Tuple[int, ...]
    placements: Tuple[Placement, ...]  # aligned with `order`
    backtracks: int


class UnplaceableError(Exception):
    """An item could not be placed within one run."""

    def __init__(self, item: int, backtracks: int) -> None:
        super().__init__(f"item {item} could not be placed (backtracks used: {backtracks})")
        self.item = item
        self.backtracks = backtracks


def _popcount(mask: int) -> int:
    return bin(mask).count("1")


class PlacementEngine:
    """Index-based allocator.

    The static problem (demands, members, room capacities) is fixed at
    construction; all mutable occupancy state is rebuilt at the start of every
    :meth:`run`, so one engine can serve several attempts.
    """

    def __init__(
        self,
        demands: Sequence[int],
        members: Sequence[Sequence[int]],
        room_capacities: Sequence[int],
        config: PlacementConfig,
    ) -> None:
        if len(demands) != len(members):
            raise ValueError("demands and members must have the same length")

        self.config = config
        self.demands = [int(d) for d in demands]
        self.members = [tuple(sorted(set(int(m) for m in ms))) for ms in members]
        self.room_capacities = [int(c) for c in room_capacities]
        self.member_count = 1 + max((m for ms in self.members for m in ms), default=-1)

        self.member_masks: List[int] = []
        for ms in self.members:
            mask = 0
            for m in ms:
                mask |= 1 << m
            self.member_masks.append(mask)

        # Candidate rooms keep the caller's room order.
        self.candidate_rooms: List[Tuple[int, ...]] = [
            tuple(r for r, cap in enumerate(self.room_capacities) if cap >= demand)
            for demand in self.demands
        ]

        self._full_day = (1 << config.slots_per_day) - 1
        self._reset()

    # ----------------------------
    # State
    # ----------------------------

    def _reset(self) -> None:
        days = self.config.days
        spd = self.config.slots_per_day
        self.taken = [[0] * days for _ in range(self.member_count)]
        self.room_busy = [[0] * spd for _ in range(days)]
        self.forbidden = [[0] * spd for _ in range(days)]
        self.placements: List[Optional[Placement]] = [None] * len(self.demands)

    def _gap_window(self, slot: int) -> int:
        """Bitmask of slots within `min_gap` of `slot` (inclusive)."""

        g = self.config.min_gap
        lo = max(0, slot - g)
        hi = min(self.config.slots_per_day - 1, slot + g)
        return ((1 << (hi - lo + 1)) - 1) << lo

    def _forbidden_slots_for(self, taken_mask: int) -> int:
        """Slots a member may not use on a day, given the slots already taken."""

        if _popcount(taken_mask) >= self.config.max_per_day:
            return self._full_day
        # each taken slot blocks itself and both neighbours
        blocked = taken_mask | (taken_mask << 1) | (taken_mask >> 1)
        return blocked & self._full_day

    def _refresh_forbidden(self, member: int, day: int) -> None:
        blocked = self._forbidden_slots_for(self.taken[member][day])
        bit = 1 << member
        row = self.forbidden[day]
        for slot in range(self.config.slots_per_day):
            if blocked >> slot & 1:
                row[slot] |= bit
            else:
                row[slot] &= ~bit

    # ----------------------------
    # Checks / updates
    # ----------------------------

    def is_free(self, item: int, day: int, slot: int, room: int) -> bool:
        if self.room_busy[day][slot] >> room & 1:
            return False
        if self.forbidden[day][slot] & self.member_masks[item]:
            return False

        window = self._gap_window(slot)
        for m in self.members[item]:
            day_mask = self.taken[m][day]
            if not day_mask:
                continue
            if _popcount(day_mask) >= self.config.max_per_day:
                return False
            if day_mask & window:
                return False
        return True

    def find_cell(self, item: int) -> Optional[Placement]:
        for day in range(self.config.days):
            for room in self.candidate_rooms[item]:
                for slot in range(self.config.slots_per_day):
                    if self.is_free(item, day, slot, room):
                        return Placement(item=item, day=day, slot=slot, room=room)
        return None

    def commit(self, placement: Placement) -> None:
        day, slot = placement.day, placement.slot
        self.room_busy[day][slot] |= 1 << placement.room
        for m in self.members[placement.item]:
            self.taken[m][day] |= 1 << slot
            self._refresh_forbidden(m, day)
        self.placements[placement.item] = placement

    def release(self, item: int) -> Placement:
        placement = self.placements[item]
        if placement is None:
            raise ValueError(f"item {item} is not placed")

        day, slot = placement.day, placement.slot
        self.room_busy[day][slot] &= ~(1 << placement.room)
        for m in self.members[item]:
            self.taken[m][day] &= ~(1 << slot)
            self._refresh_forbidden(m, day)
        self.placements[item] = None
        return placement

    # ----------------------------
    # Run
    # ----------------------------

    def run(self, order: Sequence[int]) -> PlacementOutcome:
        """Place every item in `order`, backtracking one step at a time.

        Raises:
            UnplaceableError: if an item cannot be placed and either it is the
                first item in the order or the backtrack budget is spent.
        """

        self._reset()
        order = list(order)
        limit = self.config.backtrack_factor * len(order)
        backtracks = 0

        i = 0
        while i < len(order):
            item = order[i]
            cell = self.find_cell(item)
            if cell is not None:
                self.commit(cell)
                i += 1
                continue

            if i == 0 or backtracks >= limit:
                raise UnplaceableError(item, backtracks)

            backtracks += 1
            previous = order[i - 1]
            self.release(previous)
            order[i - 1], order[i] = item, previous
            logger.debug("backtrack %d/%d: released item %d to retry item %d", backtracks, limit, previous, item)
            i -= 1

        placements = tuple(self.placements[item] for item in order)
        return PlacementOutcome(order=tuple(order), placements=placements, backtracks=backtracks)
