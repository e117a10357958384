"""
RANSAC-based outlier rejection for candidate pairings.

The hypothesis model is restricted to scale + translation
(``right = s * left + T``): two samples fix it exactly, which is enough to
discriminate gross outliers before the full similarity fit.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from alignment_service.services.correspondence_store import Pairing, Point


def top_candidates(pairings: Sequence[Pairing], limit: int) -> list[Pairing]:
    """
    Keep the ``limit`` pairings with the smallest descriptor distance.

    Args:
        pairings: Candidate pairings
        limit: Maximum number of candidates to keep

    Returns:
        Candidates sorted by ascending distance
    """
    return sorted(pairings, key=lambda p: p.distance)[:limit]


class RANSACMatchFilter:
    """Select the pairing subset consistent with one scale + translation model."""

    def __init__(
        self,
        iterations: int = 400,
        inlier_threshold: float = 5.0,
        min_pair_distance: float = 5.0,
        scale_range: tuple[float, float] = (0.1, 10.0),
        rng: np.random.Generator | None = None,
    ) -> None:
        """
        Initialize RANSAC match filter.

        Args:
            iterations: Number of sampling attempts
            inlier_threshold: Maximum prediction error (pixels) to count as inlier
            min_pair_distance: Minimum left-side distance between the two samples
            scale_range: Accepted (min, max) scale of a hypothesis
            rng: Random source; a fresh unseeded generator when omitted
        """
        self.iterations = iterations
        self.inlier_threshold = inlier_threshold
        self.min_pair_distance = min_pair_distance
        self.scale_range = scale_range
        self.rng = rng if rng is not None else np.random.default_rng()

    def filter(
        self,
        candidates: Sequence[Pairing],
        left_points: Sequence[Point],
        right_points: Sequence[Point],
    ) -> list[Pairing]:
        """
        Return the largest consensus set among the candidates.

        Args:
            candidates: Complete candidate pairings
            left_points: Points the left indices refer to
            right_points: Points the right indices refer to

        Returns:
            Inlier pairings in candidate order; the input itself when fewer
            than two candidates are given, an empty list when no hypothesis
            survived the sampling guards
        """
        if len(candidates) < 2:
            return list(candidates)

        left = np.array(
            [(left_points[c.left_idx].x, left_points[c.left_idx].y) for c in candidates],  # type: ignore[index]
            dtype=np.float64,
        )
        right = np.array(
            [(right_points[c.right_idx].x, right_points[c.right_idx].y) for c in candidates],  # type: ignore[index]
            dtype=np.float64,
        )

        min_scale, max_scale = self.scale_range
        n = len(candidates)
        best_mask: np.ndarray | None = None
        best_count = 0

        for _ in range(self.iterations):
            idx1, idx2 = (int(i) for i in self.rng.integers(0, n, size=2))
            if idx1 == idx2:
                continue

            dist1 = math.hypot(*(left[idx1] - left[idx2]))
            dist2 = math.hypot(*(right[idx1] - right[idx2]))
            # Near-coincident samples make the scale unstable.
            if dist1 < self.min_pair_distance:
                continue

            s = dist2 / dist1
            if s < min_scale or s > max_scale:
                continue

            translation = right[idx1] - s * left[idx1]
            errors = np.hypot(*(right - (s * left + translation)).T)
            mask = errors < self.inlier_threshold
            count = int(mask.sum())

            if count > best_count:
                best_count = count
                best_mask = mask

        if best_mask is None:
            return []
        return [c for c, keep in zip(candidates, best_mask, strict=True) if keep]
