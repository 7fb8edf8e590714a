"""
Model artifact fetching and the expression classifier wrapper.
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Union
from urllib.parse import urlparse

import numpy as np
import torch
import torch.nn.functional as F

from ..models import get_model
from .config import CACHE_DIR, CLASSIFIER_ARCH
from .emotions import Expression
from .errors import ModelLoadError
from .image_processor import ImageProcessor

log = logging.getLogger(__name__)

# Output index order of trained checkpoints (FER2013 class folders)
CLASSIFIER_LABELS = (
    Expression.ANGRY,
    Expression.DISGUSTED,
    Expression.FEARFUL,
    Expression.HAPPY,
    Expression.SAD,
    Expression.SURPRISED,
    Expression.NEUTRAL,
)


class ModelSource:
    """Base URL or local directory the model artifacts are read from."""

    def __init__(self, location: Union[str, Path], cache_dir: Union[str, Path] = CACHE_DIR):
        self.location = str(location)
        self.cache_dir = Path(cache_dir)

    @property
    def is_remote(self) -> bool:
        return urlparse(self.location).scheme in ('http', 'https')

    @property
    def source_cache_dir(self) -> Path:
        """Cache directory for this source, keyed by host and path."""
        parsed = urlparse(self.location)
        parts = [parsed.netloc.replace(':', '_')] + [p for p in parsed.path.split('/') if p not in ('', '.', '..')]
        return self.cache_dir.joinpath(*parts)

    def resolve(self, artifact: str) -> Path:
        """
        Return a local path for ``artifact``, downloading it if the source is remote.

        Raises:
            ModelLoadError: if the artifact is missing or the download fails
        """
        if not self.is_remote:
            path = Path(self.location) / artifact
            if not path.exists():
                raise ModelLoadError(artifact, f"not found at {path}")
            return path

        target = self.source_cache_dir / artifact
        if target.exists():
            log.info("Using cached %s", target)
            return target

        url = f"{self.location.rstrip('/')}/{artifact}"
        log.info("Downloading %s from %s", artifact, url)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            torch.hub.download_url_to_file(url, str(target), progress=False)
        except Exception as e:
            raise ModelLoadError(artifact, str(e)) from e
        return target

    def __repr__(self) -> str:
        return f"ModelSource({self.location!r})"


class ExpressionClassifier:
    """Wrapper around the expression network: face crop in, label probabilities out."""

    def __init__(self, model_name: str = CLASSIFIER_ARCH, device: Optional[torch.device] = None):
        self.model_name = model_name
        self.device = device or torch.device('cuda' if torch.cuda.is_available() else 'cpu')
        self.processor = ImageProcessor()
        self.model = None

    @property
    def loaded(self) -> bool:
        return self.model is not None

    def load(self, checkpoint_path: Union[str, Path]) -> None:
        """
        Load weights from a checkpoint.

        Accepts either a training checkpoint dict with ``model_state_dict`` or a
        bare state dict.
        """
        log.info("Loading %s from %s", self.model_name, checkpoint_path)
        model = get_model(self.model_name, num_classes=len(CLASSIFIER_LABELS))

        checkpoint = torch.load(checkpoint_path, map_location=self.device)
        state_dict = checkpoint.get('model_state_dict', checkpoint)
        model.load_state_dict(state_dict)

        self.use_model(model)
        log.info("Model loaded on %s", self.device)

    def use_model(self, model: torch.nn.Module) -> None:
        """Adopt an already-built network."""
        model.to(self.device)
        model.eval()
        self.model = model

    def predict(self, face: np.ndarray) -> Dict[Expression, float]:
        """
        Score a face crop.

        Args:
            face: Face crop (RGB or grayscale numpy array)

        Returns:
            Expression -> probability, in Expression declaration order
        """
        if self.model is None:
            raise RuntimeError("Model not loaded. Call load() first.")

        image_tensor = self.processor.preprocess(face).to(self.device)

        with torch.no_grad():
            probs = F.softmax(self.model(image_tensor), dim=1)[0].cpu().tolist()

        by_label = dict(zip(CLASSIFIER_LABELS, probs))
        return {expression: float(by_label[expression]) for expression in Expression}
