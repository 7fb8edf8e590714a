"""
Face detection for still frames.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from .config import DETECTOR_INPUT_SIZE, DETECTOR_SCORE_THRESHOLD, FACE_DETECTOR_FILE

log = logging.getLogger(__name__)


def bundled_cascade_path(name: str = FACE_DETECTOR_FILE) -> Path:
    """Path of a Haar cascade shipped inside the OpenCV wheel."""
    return Path(cv2.data.haarcascades) / name


@dataclass(frozen=True)
class DetectorOptions:
    """Detector tuning, passed through unchanged from the caller."""

    input_size: int = DETECTOR_INPUT_SIZE
    score_threshold: float = DETECTOR_SCORE_THRESHOLD
    scale_factor: float = 1.1
    min_neighbors: int = 5
    min_face_size: int = 48


@dataclass(frozen=True)
class FaceBox:
    """Face bounding box in original frame coordinates."""

    x: int
    y: int
    width: int
    height: int
    score: float


class FaceDetector:
    """Face detection using an OpenCV Haar cascade."""

    def __init__(self, cascade_path: str):
        """
        Load the cascade.

        Args:
            cascade_path: Path to a Haar cascade XML file

        Raises:
            FileNotFoundError: if the cascade cannot be loaded
        """
        self.cascade_path = str(cascade_path)
        self.face_cascade = cv2.CascadeClassifier(self.cascade_path)

        if self.face_cascade.empty():
            raise FileNotFoundError(f"Haar cascade could not be loaded from {self.cascade_path}")

    def detect_single_face(self, image: np.ndarray, options: DetectorOptions) -> Optional[FaceBox]:
        """
        Find the most confident face in an image.

        Args:
            image: RGB frame
            options: Detector options

        Returns:
            FaceBox of the highest-scoring face above the threshold, None otherwise
        """
        gray = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY) if image.ndim == 3 else image

        # Downscale so the longer side matches input_size
        scale = 1.0
        longest = max(gray.shape[:2])
        if options.input_size and longest > options.input_size:
            scale = options.input_size / float(longest)
            gray = cv2.resize(gray, None, fx=scale, fy=scale, interpolation=cv2.INTER_AREA)

        min_side = max(1, int(round(options.min_face_size * scale)))
        faces, _, weights = self.face_cascade.detectMultiScale3(
            gray,
            scaleFactor=options.scale_factor,
            minNeighbors=options.min_neighbors,
            minSize=(min_side, min_side),
            outputRejectLevels=True
        )

        if len(faces) == 0:
            return None

        candidates = [
            (float(np.ravel(weight)[0]), face)
            for face, weight in zip(faces, weights)
            if float(np.ravel(weight)[0]) >= options.score_threshold
        ]
        if not candidates:
            log.debug("%d face(s) below score threshold %.2f", len(faces), options.score_threshold)
            return None

        score, (x, y, w, h) = max(candidates, key=lambda c: c[0])
        return FaceBox(
            x=int(round(x / scale)),
            y=int(round(y / scale)),
            width=int(round(w / scale)),
            height=int(round(h / scale)),
            score=score
        )

    @staticmethod
    def extract_face_roi(image: np.ndarray, box: FaceBox, padding: int = 20) -> np.ndarray:
        """
        Crop the face region with some padding, clamped to the frame.

        Args:
            image: Frame the box was detected in
            box: Face bounding box
            padding: Pixels added on each side

        Returns:
            Face ROI as numpy array
        """
        x1 = max(0, box.x - padding)
        y1 = max(0, box.y - padding)
        x2 = min(image.shape[1], box.x + box.width + padding)
        y2 = min(image.shape[0], box.y + box.height + padding)

        return image[y1:y2, x1:x2]
