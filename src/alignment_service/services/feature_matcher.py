"""
Candidate pairings from brute-force descriptor matching.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from alignment_service.services.correspondence_store import Pairing

if TYPE_CHECKING:
    from numpy.typing import NDArray


class BFFeatureMatcher:
    """Match descriptors by nearest neighbour, optionally cross-checked."""

    def __init__(self, cross_check: bool, max_matches: int) -> None:
        """
        Initialize feature matcher.

        Args:
            cross_check: Keep only mutual nearest neighbours (bijective output)
            max_matches: Maximum number of candidates returned
        """
        self.cross_check = cross_check
        self.max_matches = max_matches

    def match(
        self,
        left_desc: NDArray[np.uint8] | NDArray[np.float32] | None,
        right_desc: NDArray[np.uint8] | NDArray[np.float32] | None,
    ) -> list[Pairing]:
        """
        Match left descriptors against right descriptors.

        Args:
            left_desc: Descriptors of the left image (N1, D)
            right_desc: Descriptors of the right image (N2, D)

        Returns:
            Candidate pairings sorted by ascending descriptor distance.
        """
        if left_desc is None or right_desc is None:
            return []

        if len(left_desc) == 0 or len(right_desc) == 0:
            return []

        # Binary descriptors use Hamming distance, float ones L2.
        norm = cv2.NORM_L2 if left_desc.dtype == np.float32 else cv2.NORM_HAMMING
        matcher = cv2.BFMatcher(norm, crossCheck=self.cross_check)

        try:
            matches = matcher.match(left_desc, right_desc)
        except cv2.error:
            return []

        matches = sorted(matches, key=lambda m: m.distance)[: self.max_matches]
        pairings = [
            Pairing(left_idx=m.queryIdx, right_idx=m.trainIdx, distance=float(m.distance))
            for m in matches
        ]
        if self.cross_check:
            return pairings
        return _first_per_right(pairings)


def _first_per_right(pairings: list[Pairing]) -> list[Pairing]:
    """Drop pairings reusing a right point, keeping the closest one."""
    seen: set[int | None] = set()
    unique = []
    for pairing in pairings:
        if pairing.right_idx in seen:
            continue
        seen.add(pairing.right_idx)
        unique.append(pairing)
    return unique
