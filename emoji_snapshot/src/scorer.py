"""
Expression scorer: single-face detection plus expression probabilities.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .config import CLASSIFIER_FILE, FACE_DETECTOR_FILE
from .emotions import Expression
from .errors import ModelLoadError
from .face_detector import DetectorOptions, FaceBox, FaceDetector, bundled_cascade_path
from .model_loader import ExpressionClassifier, ModelSource

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Detection:
    """The chosen face and its expression probabilities."""

    box: FaceBox
    expressions: Dict[Expression, float]


class SingleFaceQuery:
    """Pending single-face detection; ``with_face_expressions`` runs it."""

    def __init__(self, scorer: 'ExpressionScorer', image: np.ndarray, options: DetectorOptions):
        self.scorer = scorer
        self.image = image
        self.options = options

    async def with_face_expressions(self) -> Optional[Detection]:
        return await asyncio.to_thread(self.scorer.score, self.image, self.options)


class ExpressionScorer:
    """
    Face detector and expression classifier loaded from one model source.

    Both artifacts are loaded separately so the readiness gate can fetch them
    concurrently.
    """

    def __init__(self, source: ModelSource, classifier: Optional[ExpressionClassifier] = None):
        self.source = source
        self.detector = None
        self.classifier = classifier or ExpressionClassifier()

    @property
    def ready(self) -> bool:
        return self.detector is not None and self.classifier.loaded

    def load_detector(self) -> None:
        if self.detector is not None:
            return
        try:
            path = self.source.resolve(FACE_DETECTOR_FILE)
        except ModelLoadError:
            path = bundled_cascade_path(FACE_DETECTOR_FILE)
            if not path.exists():
                raise
            log.info("Face detector not in %r, using the OpenCV bundled cascade", self.source)
        self.detector = FaceDetector(str(path))
        log.info("Face detector ready (%s)", path.name)

    def load_classifier(self) -> None:
        if self.classifier.loaded:
            return
        self.classifier.load(self.source.resolve(CLASSIFIER_FILE))

    def detect_single_face(self, image: np.ndarray, options: DetectorOptions) -> SingleFaceQuery:
        return SingleFaceQuery(self, image, options)

    def score(self, image: np.ndarray, options: DetectorOptions) -> Optional[Detection]:
        """
        Blocking detection + classification of the most confident face.

        Returns:
            Detection, or None when no face passes the detector
        """
        if not self.ready:
            raise RuntimeError("Scorer used before models were loaded")

        box = self.detector.detect_single_face(image, options)
        if box is None:
            return None

        face = FaceDetector.extract_face_roi(image, box)
        expressions = self.classifier.predict(face)
        log.debug("Face at (%d, %d) score %.2f", box.x, box.y, box.score)

        return Detection(box=box, expressions=expressions)
