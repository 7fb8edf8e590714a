"""
Webcam access: live preview frames and JPEG still capture.
"""

import logging
import threading
from typing import Optional

import cv2
import numpy as np

from .config import CAMERA_INDEX, FRAME_HEIGHT, FRAME_WIDTH, JPEG_QUALITY, MIRRORED

log = logging.getLogger(__name__)


class WebcamCapturer:
    """
    Owns one cv2.VideoCapture stream.

    The instance is shared by every browser session, so device reads are
    serialized through ``_lock``.
    """

    def __init__(
        self,
        camera_index: int = CAMERA_INDEX,
        width: int = FRAME_WIDTH,
        height: int = FRAME_HEIGHT,
        mirrored: bool = MIRRORED,
        jpeg_quality: int = JPEG_QUALITY
    ):
        self.camera_index = camera_index
        self.mirrored = mirrored
        self.jpeg_quality = jpeg_quality
        self._lock = threading.Lock()

        self.video_capture = cv2.VideoCapture(camera_index)
        if self.video_capture.isOpened():
            self.video_capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            self.video_capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        else:
            log.warning("Could not open webcam %d", camera_index)

    def is_active(self) -> bool:
        return self.video_capture is not None and self.video_capture.isOpened()

    def _read(self, fresh: bool = False) -> Optional[np.ndarray]:
        with self._lock:
            if not self.is_active():
                return None
            if fresh:
                # Drop the frame buffered since the last preview
                self.video_capture.grab()
            ret, frame = self.video_capture.read()
        if not ret or frame is None:
            return None
        if self.mirrored:
            frame = cv2.flip(frame, 1)
        return frame

    def read_preview(self) -> Optional[np.ndarray]:
        """Current frame as RGB for display, None if the camera gave nothing."""
        frame = self._read()
        if frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

    def get_still_frame(self) -> Optional[bytes]:
        """Grab one frame and encode it as JPEG, None if nothing was captured."""
        frame = self._read(fresh=True)
        if frame is None:
            return None

        ok, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
        if not ok:
            log.warning("JPEG encoding failed")
            return None
        return buffer.tobytes()

