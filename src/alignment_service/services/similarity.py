"""
Closed-form similarity transform estimation.

Fits ``left = scale * R(angle) * right + t`` to point pairs in the least
squares sense (2D Umeyama without reflection handling). Outliers are not
rejected here; the robust match filter runs upstream.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from alignment_service.core.exceptions import DegenerateEstimateError, InsufficientPairsError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from alignment_service.services.correspondence_store import PointPair

# Sum of squared centered distances below which right points are coincident.
DEGENERATE_EPSILON = 1e-12


@dataclass(frozen=True)
class Transform:
    """Similarity transform mapping right-image points into left-image space."""

    scale: float
    angle_deg: float
    tx: float
    ty: float

    @property
    def angle_rad(self) -> float:
        return math.radians(self.angle_deg)

    def apply(self, x: float, y: float) -> tuple[float, float]:
        """Map a right-image point into left-image space."""
        cos_a, sin_a = math.cos(self.angle_rad), math.sin(self.angle_rad)
        return (
            self.scale * (cos_a * x - sin_a * y) + self.tx,
            self.scale * (sin_a * x + cos_a * y) + self.ty,
        )

    def inverse(self) -> Transform:
        """Transform mapping left-image points back into right-image space."""
        scale = 1.0 / self.scale
        cos_a, sin_a = math.cos(-self.angle_rad), math.sin(-self.angle_rad)
        return Transform(
            scale=scale,
            angle_deg=-self.angle_deg,
            tx=-scale * (cos_a * self.tx - sin_a * self.ty),
            ty=-scale * (sin_a * self.tx + cos_a * self.ty),
        )

    def to_matrix(self) -> list[list[float]]:
        """Return the 2x3 affine matrix rows ``[[a, -b, tx], [b, a, ty]]``."""
        a = self.scale * math.cos(self.angle_rad)
        b = self.scale * math.sin(self.angle_rad)
        return [[a, -b, self.tx], [b, a, self.ty]]


@dataclass(frozen=True)
class Residual:
    """Displacement between a transformed right point and its left partner."""

    dx: float
    dy: float

    @property
    def magnitude(self) -> float:
        return math.hypot(self.dx, self.dy)


def _as_arrays(pairs: Sequence[PointPair]) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    left = np.array([(p.left.x, p.left.y) for p in pairs], dtype=np.float64).reshape(-1, 2)
    right = np.array([(p.right.x, p.right.y) for p in pairs], dtype=np.float64).reshape(-1, 2)
    return left, right


def estimate_similarity(pairs: Sequence[PointPair], min_pairs: int = 2) -> Transform:
    """
    Estimate the similarity transform that best maps right points onto left points.

    Args:
        pairs: Resolved point pairs
        min_pairs: Minimum number of pairs the caller requires (at least 2)

    Returns:
        Best-fit transform

    Raises:
        InsufficientPairsError: If fewer than ``min_pairs`` pairs are given
        DegenerateEstimateError: If all right points coincide or the fit
            is not finite
    """
    required = max(min_pairs, 2)
    if len(pairs) < required:
        raise InsufficientPairsError(available=len(pairs), required=required)

    left, right = _as_arrays(pairs)

    # Overflow surfaces as inf/nan and is rejected below.
    with np.errstate(over="ignore", invalid="ignore"):
        mean_left = left.mean(axis=0)
        mean_right = right.mean(axis=0)
        d_left = left - mean_left
        d_right = right - mean_right
        num = float(np.sum(d_right[:, 0] * d_left[:, 0] + d_right[:, 1] * d_left[:, 1]))
        r_num = float(np.sum(d_right[:, 0] * d_left[:, 1] - d_right[:, 1] * d_left[:, 0]))
        den = float(np.sum(d_right**2))

    if not math.isfinite(den) or not (math.isfinite(num) and math.isfinite(r_num)):
        raise DegenerateEstimateError(
            denominator=den,
            message="Point coordinates overflow the estimate",
        )
    if den < DEGENERATE_EPSILON:
        raise DegenerateEstimateError(denominator=den)

    scale = math.hypot(num, r_num) / den
    angle_rad = math.atan2(r_num, num)
    cos_a, sin_a = math.cos(angle_rad), math.sin(angle_rad)

    # Translation maps the right centroid onto the left centroid.
    lx, ly = float(mean_left[0]), float(mean_left[1])
    rx, ry = float(mean_right[0]), float(mean_right[1])
    tx = lx - scale * (cos_a * rx - sin_a * ry)
    ty = ly - scale * (sin_a * rx + cos_a * ry)

    if not all(math.isfinite(v) for v in (scale, tx, ty)):
        raise DegenerateEstimateError(
            denominator=den,
            message="Point coordinates overflow the estimate",
        )

    return Transform(
        scale=scale,
        angle_deg=math.degrees(angle_rad),
        tx=tx,
        ty=ty,
    )


def pair_residuals(pairs: Sequence[PointPair], transform: Transform) -> list[Residual]:
    """Per-pair displacement ``transform(right) - left``."""
    residuals = []
    for pair in pairs:
        px, py = transform.apply(pair.right.x, pair.right.y)
        residuals.append(Residual(dx=px - pair.left.x, dy=py - pair.left.y))
    return residuals


def rms_error(residuals: Sequence[Residual]) -> float:
    """Root mean square of residual magnitudes (0.0 for no residuals)."""
    if not residuals:
        return 0.0
    return math.sqrt(sum(r.dx**2 + r.dy**2 for r in residuals) / len(residuals))


def sample_error_field(
    pairs: Sequence[PointPair],
    transform: Transform,
    width: float,
    height: float,
    spacing: float,
) -> list[tuple[float, float, float, float]]:
    """
    Interpolate the residual drift over a regular grid in left-image space.

    Each node receives the inverse-square-distance weighted mean of the
    pair residuals, weighting by ``1 / (dist + 1) ** 2`` from the left point.

    Args:
        pairs: Resolved point pairs the transform was fitted on
        transform: Transform whose residuals are interpolated
        width: Grid extent along x
        height: Grid extent along y
        spacing: Distance between grid nodes (> 0)

    Returns:
        List of ``(x, y, drift_x, drift_y)`` per grid node, row by row
    """
    if spacing <= 0:
        raise ValueError("spacing must be positive")
    if not pairs:
        return []

    left, _ = _as_arrays(pairs)
    drift = np.array([(r.dx, r.dy) for r in pair_residuals(pairs, transform)])

    xs = np.arange(0.0, width, spacing)
    ys = np.arange(0.0, height, spacing)
    grid_x, grid_y = np.meshgrid(xs, ys)
    nodes = np.column_stack([grid_x.ravel(), grid_y.ravel()])

    dist = np.hypot(
        nodes[:, 0, None] - left[None, :, 0],
        nodes[:, 1, None] - left[None, :, 1],
    )
    weights = 1.0 / (dist + 1.0) ** 2
    interpolated = (weights @ drift) / weights.sum(axis=1, keepdims=True)

    return [
        (float(x), float(y), float(dx), float(dy))
        for (x, y), (dx, dy) in zip(nodes, interpolated, strict=True)
    ]
