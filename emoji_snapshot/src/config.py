"""
Configuration constants for Emoji Snapshot.

Values marked with an environment variable can be overridden at launch, e.g.
``EMOJI_SNAPSHOT_MODEL_SOURCE=https://host/models streamlit run emoji_snapshot/app.py``.
"""

import logging
import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

# Model source: base URL or local directory holding both artifacts
MODEL_SOURCE = os.getenv('EMOJI_SNAPSHOT_MODEL_SOURCE', str(PROJECT_ROOT / 'checkpoints'))
CACHE_DIR = Path(os.getenv('EMOJI_SNAPSHOT_CACHE_DIR', str(Path.home() / '.cache' / 'emoji_snapshot')))
FACE_DETECTOR_FILE = 'haarcascade_frontalface_default.xml'
CLASSIFIER_FILE = 'attention_cnn_best.pth'
CLASSIFIER_ARCH = 'attention_cnn'

# Webcam capture
CAMERA_INDEX = int(os.getenv('EMOJI_SNAPSHOT_CAMERA_INDEX', '0'))
FRAME_WIDTH = 440
FRAME_HEIGHT = 250
MIRRORED = True
JPEG_QUALITY = 92

# Face detector defaults (passed through to the detector untouched)
DETECTOR_INPUT_SIZE = 416
DETECTOR_SCORE_THRESHOLD = 0.5

# Classifier input (FER2013 geometry)
CLASSIFIER_INPUT_SIZE = (48, 48)

LOG_LEVEL = os.getenv('EMOJI_SNAPSHOT_LOG_LEVEL', 'INFO')
LOG_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Install the root log handler once per process."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)
