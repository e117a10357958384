"""Unit tests for RANSAC match filtering."""

from __future__ import annotations

import numpy as np
import pytest

from alignment_service.services.correspondence_store import Pairing, Point
from alignment_service.services.match_filter import RANSACMatchFilter, top_candidates
from tests.factories import scale_translation_candidates


def seeded_filter(seed: int = 42, **kwargs: object) -> RANSACMatchFilter:
    return RANSACMatchFilter(rng=np.random.default_rng(seed), **kwargs)  # type: ignore[arg-type]


@pytest.mark.unit
class TestRANSACMatchFilter:
    """Tests for RANSACMatchFilter."""

    @pytest.mark.parametrize("seed", [0, 1, 2, 3, 4])
    def test_recovers_inliers_among_outliers(self, seed: int) -> None:
        """With 80% inliers the consensus set is the inlier set."""
        left, right, candidates, inlier_left = scale_translation_candidates(
            n_inliers=80, n_outliers=20, scale=2.0, translation=(10.0, 10.0), seed=seed
        )

        inliers = seeded_filter(seed=seed).filter(candidates, left, right)
        kept = {p.left_idx for p in inliers}

        assert len(kept & inlier_left) >= 0.95 * len(inlier_left)
        assert not kept - inlier_left

    def test_preserves_candidate_order(self) -> None:
        """Inliers are returned in candidate order."""
        left, right, candidates, _ = scale_translation_candidates(n_inliers=30, n_outliers=10)

        inliers = seeded_filter().filter(candidates, left, right)
        positions = [candidates.index(p) for p in inliers]

        assert positions == sorted(positions)

    def test_same_seed_same_result(self) -> None:
        """A seeded generator makes runs reproducible."""
        left, right, candidates, _ = scale_translation_candidates(n_inliers=20, n_outliers=20)

        first = seeded_filter(seed=7).filter(candidates, left, right)
        second = seeded_filter(seed=7).filter(candidates, left, right)

        assert first == second

    @pytest.mark.parametrize("count", [0, 1])
    def test_fewer_than_two_candidates_returned_unchanged(self, count: int) -> None:
        """Too few candidates are returned as given."""
        left = [Point(x=0.0, y=0.0)]
        right = [Point(x=5.0, y=5.0)]
        candidates = [Pairing(0, 0)][:count]

        assert seeded_filter().filter(candidates, left, right) == candidates

    def test_no_valid_hypothesis_returns_empty(self) -> None:
        """Samples closer than the minimum distance never form a hypothesis."""
        left = [Point(x=0.0, y=0.0), Point(x=1.0, y=1.0), Point(x=2.0, y=0.0)]
        right = [Point(x=0.0, y=0.0), Point(x=1.0, y=1.0), Point(x=2.0, y=0.0)]
        candidates = [Pairing(i, i) for i in range(3)]

        result = seeded_filter(min_pair_distance=50.0).filter(candidates, left, right)

        assert result == []

    def test_scale_out_of_range_rejected(self) -> None:
        """Hypotheses outside the scale range are discarded."""
        left, right, candidates, _ = scale_translation_candidates(
            n_inliers=20, n_outliers=0, scale=20.0
        )

        result = seeded_filter(scale_range=(0.1, 10.0)).filter(candidates, left, right)

        assert result == []

    def test_identity_all_inliers(self) -> None:
        """Identical point sets are entirely inliers."""
        points = [Point(x=float(10 * i), y=float(7 * i % 50)) for i in range(15)]
        candidates = [Pairing(i, i) for i in range(15)]

        result = seeded_filter().filter(candidates, points, points)

        assert result == candidates

    def test_threshold_is_strict(self) -> None:
        """A prediction error equal to the threshold is not an inlier."""
        left = [Point(x=0.0, y=0.0), Point(x=100.0, y=0.0), Point(x=50.0, y=0.0)]
        right = [Point(x=0.0, y=0.0), Point(x=100.0, y=0.0), Point(x=50.0, y=5.0)]
        candidates = [Pairing(i, i) for i in range(3)]

        result = seeded_filter(inlier_threshold=5.0).filter(candidates, left, right)

        assert Pairing(2, 2) not in result
        assert len(result) == 2

    def test_default_generator(self) -> None:
        """An unseeded filter creates its own generator."""
        assert isinstance(RANSACMatchFilter().rng, np.random.Generator)


@pytest.mark.unit
class TestTopCandidates:
    """Tests for candidate preselection."""

    def test_keeps_smallest_distances(self) -> None:
        """Candidates are sorted by distance and truncated."""
        pairings = [Pairing(i, i, distance=d) for i, d in enumerate([30.0, 10.0, 20.0, 5.0])]

        result = top_candidates(pairings, limit=2)

        assert [p.distance for p in result] == [5.0, 10.0]

    def test_limit_above_count(self) -> None:
        """A limit above the count keeps everything."""
        pairings = [Pairing(0, 0, 3.0), Pairing(1, 1, 1.0)]

        assert len(top_candidates(pairings, limit=100)) == 2

    def test_stable_for_ties(self) -> None:
        """Equal distances keep their input order."""
        pairings = [Pairing(0, 1, 1.0), Pairing(1, 0, 1.0)]

        assert top_candidates(pairings, limit=2) == pairings
