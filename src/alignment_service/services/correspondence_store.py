"""
Bijective bookkeeping of keypoints and their pairings.

Two ordered point lists (left and right) and one pairing list are mutated
together so that every pairing index stays valid and no point belongs to
more than one pairing. During manual placement the last pairing may be
half-open while the point of the other side is awaited.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from alignment_service.core.exceptions import InvalidIndexError, WaitingForOtherSideError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence


class Side(StrEnum):
    """Image side a point belongs to."""

    LEFT = "left"
    RIGHT = "right"

    @property
    def other(self) -> Side:
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


@dataclass
class Point:
    """Keypoint in image coordinates of its side."""

    x: float
    y: float
    size: float = 10.0
    is_matched: bool | None = None
    """Set by bulk loads: whether a candidate pairing uses this point."""
    is_good_match: bool | None = None
    """Set by the robust filter: whether an inlier pairing uses this point."""


@dataclass(frozen=True)
class Pairing:
    """Association of one left and one right point (or a half-open placeholder)."""

    left_idx: int | None
    right_idx: int | None
    distance: float = 0.0

    @property
    def is_complete(self) -> bool:
        return self.left_idx is not None and self.right_idx is not None

    def index(self, side: Side) -> int | None:
        return self.left_idx if side is Side.LEFT else self.right_idx

    def with_index(self, side: Side, index: int | None) -> Pairing:
        if side is Side.LEFT:
            return replace(self, left_idx=index)
        return replace(self, right_idx=index)


@dataclass(frozen=True)
class PointPair:
    """A resolved pairing: both points, ready for estimation."""

    left: Point
    right: Point


class StoreEventType(StrEnum):
    POINT_ADDED = "point_added"
    POINT_UPDATED = "point_updated"
    POINT_REMOVED = "point_removed"
    MATCHES_UPDATED = "matches_updated"
    RESET = "reset"


@dataclass(frozen=True)
class StoreEvent:
    """Change notification; point events carry the side and index."""

    type: StoreEventType
    side: Side | None = None
    index: int | None = None


class StoreObserver(Protocol):
    def on_store_event(self, event: StoreEvent) -> None: ...


class CorrespondenceStore:
    """Keeps left points, right points and their pairings mutually consistent."""

    def __init__(self) -> None:
        self._points: dict[Side, list[Point]] = {Side.LEFT: [], Side.RIGHT: []}
        self._pairings: list[Pairing] = []
        self._pending_side: Side | None = None
        self._observers: list[StoreObserver] = []

    # --- Read access ---

    @property
    def pending_side(self) -> Side | None:
        """Side whose point is awaited to close the open pairing."""
        return self._pending_side

    @property
    def pairings(self) -> tuple[Pairing, ...]:
        return tuple(self._pairings)

    def points(self, side: Side) -> tuple[Point, ...]:
        return tuple(self._points[side])

    def point(self, side: Side, index: int) -> Point:
        self._check_index(side, index)
        return self._points[side][index]

    def resolved_pairings(self) -> list[PointPair]:
        """
        Return the complete pairings as point pairs.

        A pairing whose left point carries an ``is_good_match`` tag is kept
        only when the tag is true, so a filter result restricts the output
        while untagged manual pairings are all included.
        """
        pairs: list[PointPair] = []
        for pairing in self._pairings:
            if not pairing.is_complete:
                continue
            left = self._points[Side.LEFT][pairing.left_idx]  # type: ignore[index]
            right = self._points[Side.RIGHT][pairing.right_idx]  # type: ignore[index]
            if left.is_good_match is not None and not left.is_good_match:
                continue
            pairs.append(PointPair(left=left, right=right))
        return pairs

    # --- Mutations ---

    def add_point(self, side: Side, x: float, y: float) -> int:
        """
        Place a point and open or close a pairing with it.

        Args:
            side: Side the point is placed on
            x: Image x coordinate
            y: Image y coordinate

        Returns:
            Index of the new point within its side

        Raises:
            WaitingForOtherSideError: If the open pairing awaits the other side
        """
        if self._pending_side is not None and self._pending_side is not side:
            raise WaitingForOtherSideError(side=side.value, pending_side=self._pending_side.value)

        points = self._points[side]
        index = len(points)
        points.append(Point(x=x, y=y))

        if self._pending_side is None:
            self._pairings.append(Pairing(left_idx=None, right_idx=None).with_index(side, index))
            self._pending_side = side.other
        else:
            self._pairings[-1] = self._pairings[-1].with_index(side, index)
            self._pending_side = None

        self._notify(StoreEvent(StoreEventType.POINT_ADDED, side, index))
        return index

    def remove_point(self, side: Side, index: int) -> None:
        """
        Remove a point together with its paired counterpart.

        Both point lists shrink independently, so the indices of every
        remaining pairing are shifted on each side past its removed index.

        Raises:
            InvalidIndexError: If index is out of range
        """
        self._check_index(side, index)
        other = side.other

        del self._points[side][index]
        self._notify(StoreEvent(StoreEventType.POINT_REMOVED, side, index))

        position = self._find_pairing(side, index)
        if position is None:
            self._pairings = [_shift(p, side, index) for p in self._pairings]
            return

        pairing = self._pairings.pop(position)
        partner = pairing.index(other)
        if partner is None:
            # The open pairing lost its only point.
            self._pending_side = None
        else:
            del self._points[other][partner]

        remaining = []
        for p in self._pairings:
            p = _shift(p, side, index)
            if partner is not None:
                p = _shift(p, other, partner)
            remaining.append(p)
        self._pairings = remaining

        if partner is not None:
            self._notify(StoreEvent(StoreEventType.POINT_REMOVED, other, partner))

    def update_point(self, side: Side, index: int, x: float, y: float) -> None:
        """Move a point in place; pairings are untouched."""
        point = self.point(side, index)
        point.x = x
        point.y = y
        self._notify(StoreEvent(StoreEventType.POINT_UPDATED, side, index))

    def bulk_load(
        self,
        left_points: Sequence[Point],
        right_points: Sequence[Point],
        pairings: Iterable[Pairing],
    ) -> None:
        """
        Replace the whole state with detector output.

        Points referenced by a pairing are tagged ``is_matched``.

        Raises:
            InvalidIndexError: If a pairing is half-open, out of range or
                reuses a point
        """
        left = list(left_points)
        right = list(right_points)
        loaded = list(pairings)
        check_pairings(loaded, len(left), len(right))

        matched_left = {p.left_idx for p in loaded}
        matched_right = {p.right_idx for p in loaded}
        for i, point in enumerate(left):
            point.is_matched = i in matched_left
        for i, point in enumerate(right):
            point.is_matched = i in matched_right

        self._points = {Side.LEFT: left, Side.RIGHT: right}
        self._pairings = loaded
        self._pending_side = None
        self._notify(StoreEvent(StoreEventType.MATCHES_UPDATED))

    def mark_good_matches(self, inliers: Iterable[Pairing]) -> None:
        """
        Keep only the given pairings and tag their points as good matches.

        Every other point is tagged ``is_good_match=False``.

        Raises:
            InvalidIndexError: If the inliers are not valid complete pairings
        """
        kept = list(inliers)
        check_pairings(kept, len(self._points[Side.LEFT]), len(self._points[Side.RIGHT]))

        for points in self._points.values():
            for point in points:
                point.is_good_match = False
        for pairing in kept:
            self._points[Side.LEFT][pairing.left_idx].is_good_match = True  # type: ignore[index]
            self._points[Side.RIGHT][pairing.right_idx].is_good_match = True  # type: ignore[index]

        self._pairings = kept
        self._notify(StoreEvent(StoreEventType.MATCHES_UPDATED))

    def reset(self) -> None:
        """Drop every point and pairing."""
        self._points = {Side.LEFT: [], Side.RIGHT: []}
        self._pairings = []
        self._pending_side = None
        self._notify(StoreEvent(StoreEventType.RESET))

    # --- Observers ---

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """
        Register an observer for store events.

        Returns:
            Callable that unsubscribes the observer
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, event: StoreEvent) -> None:
        for observer in list(self._observers):
            observer.on_store_event(event)

    # --- Helpers ---

    def _check_index(self, side: Side, index: int) -> None:
        size = len(self._points[side])
        if not 0 <= index < size:
            raise InvalidIndexError(
                f"No {side.value} point at index {index}",
                details={"side": side.value, "index": index, "size": size},
            )

    def _find_pairing(self, side: Side, index: int) -> int | None:
        """Position of the pairing that references (side, index), if any."""
        if not self._pairings:
            return None
        last = len(self._pairings) - 1
        if self._pairings[last].index(side) == index:
            return last
        for position, pairing in enumerate(self._pairings):
            if pairing.index(side) == index:
                return position
        return None


def _shift(pairing: Pairing, side: Side, removed: int) -> Pairing:
    """Decrement the side index of a pairing that lies past a removed point."""
    current = pairing.index(side)
    if current is not None and current > removed:
        return pairing.with_index(side, current - 1)
    return pairing


def check_pairings(
    pairings: Sequence[Pairing],
    n_left: int,
    n_right: int,
    bijective: bool = True,
) -> None:
    """
    Validate that pairings are complete and reference existing points.

    Args:
        pairings: Pairings to check
        n_left: Number of left points
        n_right: Number of right points
        bijective: Also reject pairings that reuse a point

    Raises:
        InvalidIndexError: On the first offending pairing
    """
    seen_left: set[int] = set()
    seen_right: set[int] = set()
    for position, pairing in enumerate(pairings):
        if not pairing.is_complete:
            raise InvalidIndexError(
                f"Pairing {position} is half-open",
                details={"position": position},
            )
        left, right = pairing.left_idx, pairing.right_idx
        if not 0 <= left < n_left or not 0 <= right < n_right:  # type: ignore[operator]
            raise InvalidIndexError(
                f"Pairing {position} references a missing point",
                details={"position": position, "left_idx": left, "right_idx": right},
            )
        if bijective and (left in seen_left or right in seen_right):
            raise InvalidIndexError(
                f"Pairing {position} reuses an already paired point",
                details={"position": position, "left_idx": left, "right_idx": right},
            )
        seen_left.add(left)  # type: ignore[arg-type]
        seen_right.add(right)  # type: ignore[arg-type]
