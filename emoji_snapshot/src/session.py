"""
Capture session state machine.

One CaptureSession per browser session drives the cycle
capture -> decode -> score -> reduce -> result, and turns every failure
into a FAILED state carrying a single user-facing message.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import numpy as np

from .emotions import Expression, parse_expression, reduce_dominant
from .errors import CaptureError, ErrorKind, ImageDecodeError
from .face_detector import DetectorOptions
from .image_processor import decode_image

log = logging.getLogger(__name__)


class Phase(Enum):
    LOADING = 'loading'
    IDLE = 'idle'
    ANALYZING = 'analyzing'
    RESULT = 'result'
    FAILED = 'failed'


@dataclass
class SessionState:
    ready: bool = False
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    captured_label: Optional[Expression] = None
    show_live: bool = True
    analyzing: bool = False


class CaptureSession:
    """
    Holds the SessionState and performs its transitions.

    ``capturer`` needs ``is_active()`` and ``get_still_frame()``; ``scorer``
    needs ``detect_single_face(image, options).with_face_expressions()``.
    """

    def __init__(self, capturer, scorer, detector_options: Optional[DetectorOptions] = None):
        self.capturer = capturer
        self.scorer = scorer
        self.detector_options = detector_options or DetectorOptions()
        self.state = SessionState()

    @property
    def phase(self) -> Phase:
        state = self.state
        if state.analyzing:
            return Phase.ANALYZING
        if state.error is not None:
            return Phase.FAILED
        if not state.ready:
            return Phase.LOADING
        if state.captured_label is not None:
            return Phase.RESULT
        return Phase.IDLE

    def snapshot(self) -> SessionState:
        return replace(self.state)

    @property
    def can_capture(self) -> bool:
        return self.state.ready and not self.state.analyzing and self.state.show_live

    def set_ready(self) -> None:
        self.state.ready = True
        if self.state.error_kind is ErrorKind.MODEL_LOAD_FAILED:
            self._clear_error()

    def set_init_error(self, message: str) -> None:
        self.state.ready = False
        self.state.captured_label = None
        self.state.error = message
        self.state.error_kind = ErrorKind.MODEL_LOAD_FAILED

    def reset(self) -> None:
        self.state.captured_label = None
        self._clear_error()
        self.state.show_live = True

    async def request_capture(self) -> bool:
        """
        Run one capture cycle.

        Returns:
            False if the request was ignored (not ready, already analyzing, or a
            result is showing), True once a cycle has run to completion.
        """
        if not self.can_capture:
            log.debug("Capture ignored in phase %s", self.phase.value)
            return False

        self.state.analyzing = True
        try:
            label = await self._run_cycle()
        except CaptureError as e:
            log.warning("Capture failed: %s", e)
            self._fail(e.kind)
        except Exception:
            log.exception("Unexpected error during capture")
            self._fail(ErrorKind.SCORING_FAILED)
        else:
            self._commit(label)
        finally:
            self.state.analyzing = False

        return True

    async def _run_cycle(self) -> Expression:
        if not self.capturer.is_active():
            raise CaptureError(ErrorKind.CAMERA_NOT_READY)

        try:
            data = self.capturer.get_still_frame()
        except Exception as e:
            raise CaptureError(ErrorKind.CAPTURE_FAILED, str(e)) from e
        if not data:
            raise CaptureError(ErrorKind.CAPTURE_FAILED)

        image = await self._decode(data)

        try:
            detection = await self.scorer.detect_single_face(
                image, self.detector_options
            ).with_face_expressions()
        except Exception as e:
            log.exception("Expression scorer failed")
            raise CaptureError(ErrorKind.SCORING_FAILED, str(e)) from e

        if detection is None:
            raise CaptureError(ErrorKind.NO_FACE_DETECTED)

        label = parse_expression(reduce_dominant(detection.expressions))
        if label is None:
            raise CaptureError(ErrorKind.SCORING_FAILED, "Scorer returned an unknown expression label")
        return label

    @staticmethod
    async def _decode(data: bytes) -> np.ndarray:
        try:
            return await asyncio.to_thread(decode_image, data)
        except ImageDecodeError as e:
            raise CaptureError(ErrorKind.DECODE_FAILED, str(e)) from e

    def _commit(self, label: Expression) -> None:
        self.state.captured_label = label
        self.state.show_live = False
        self._clear_error()
        log.info("Dominant expression: %s", label.value)

    def _fail(self, kind: ErrorKind) -> None:
        self.state.captured_label = None
        self.state.error = kind.message
        self.state.error_kind = kind

    def _clear_error(self) -> None:
        self.state.error = None
        self.state.error_kind = None
