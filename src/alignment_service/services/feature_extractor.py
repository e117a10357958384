"""
ORB keypoint detection on raw image bytes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import cv2
import numpy as np

from alignment_service.core.exceptions import ServiceError
from alignment_service.services.correspondence_store import Point

if TYPE_CHECKING:
    from numpy.typing import NDArray


class ORBFeatureExtractor:
    """Detect ORB keypoints and compute their binary descriptors."""

    def __init__(
        self,
        max_features: int,
        scale_factor: float,
        n_levels: int,
        edge_threshold: int,
        patch_size: int,
        fast_threshold: int,
    ) -> None:
        """
        Initialize ORB feature extractor.

        Args:
            max_features: Maximum number of features to retain
            scale_factor: Pyramid decimation ratio (> 1.0)
            n_levels: Number of pyramid levels
            edge_threshold: Border pixels excluded from detection
            patch_size: Size of patch used for descriptor
            fast_threshold: FAST corner detection threshold
        """
        self.orb = cv2.ORB_create(
            nfeatures=max_features,
            scaleFactor=scale_factor,
            nlevels=n_levels,
            edgeThreshold=edge_threshold,
            patchSize=patch_size,
            fastThreshold=fast_threshold,
        )

    def extract(
        self, image_bytes: bytes
    ) -> tuple[list[Point], NDArray[np.uint8] | None, tuple[int, int]]:
        """
        Detect keypoints in encoded image bytes.

        Args:
            image_bytes: Raw image bytes (JPEG, PNG, or WebP)

        Returns:
            Tuple of:
            - keypoints: Points with x, y and size in image coordinates
            - descriptors: numpy array (N, 32) or None if no features
            - image_size: (width, height)

        Raises:
            ServiceError: If image cannot be decoded
        """
        image = cv2.imdecode(np.frombuffer(image_bytes, np.uint8), cv2.IMREAD_GRAYSCALE)
        if image is None:
            raise ServiceError(
                error="invalid_image",
                message="Failed to decode image data",
                status_code=400,
                details=None,
            )

        height, width = image.shape[:2]
        cv_keypoints, descriptors = self.orb.detectAndCompute(image, None)

        keypoints = [
            Point(x=float(kp.pt[0]), y=float(kp.pt[1]), size=float(kp.size))
            for kp in cv_keypoints
        ]
        return keypoints, descriptors, (width, height)
