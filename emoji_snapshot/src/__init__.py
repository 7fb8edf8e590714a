"""
Emoji Snapshot source modules.
"""

from .emotions import Expression, map_to_glyph, reduce_dominant
from .errors import ErrorKind
from .readiness import ReadinessGate
from .session import CaptureSession, Phase, SessionState

__all__ = [
    'Expression',
    'map_to_glyph',
    'reduce_dominant',
    'ErrorKind',
    'ReadinessGate',
    'CaptureSession',
    'Phase',
    'SessionState',
]
