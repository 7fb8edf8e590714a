"""
One-time model loading gate run before capture is allowed.
"""

import asyncio
import logging
from typing import Callable

from .errors import ErrorKind

log = logging.getLogger(__name__)


class ReadinessGate:
    """
    Loads the face detector and the expression classifier concurrently.

    Each loader is a blocking callable executed in a worker thread. The gate
    settles exactly once: ``set_ready`` when both loaders succeed,
    ``set_init_error`` as soon as either fails. There is no retry.
    """

    def __init__(self, load_detector: Callable[[], None], load_classifier: Callable[[], None]):
        self.load_detector = load_detector
        self.load_classifier = load_classifier
        self.opened = False

    async def open(self, session) -> bool:
        """
        Run both loaders and settle ``session``.

        Returns:
            True if the session became ready
        """
        if self.opened:
            raise RuntimeError("Readiness gate already opened")
        self.opened = True

        try:
            await asyncio.gather(
                asyncio.to_thread(self.load_detector),
                asyncio.to_thread(self.load_classifier),
            )
        except Exception:
            log.exception("Error loading models")
            session.set_init_error(ErrorKind.MODEL_LOAD_FAILED.message)
            return False

        session.set_ready()
        log.info("Models ready")
        return True
