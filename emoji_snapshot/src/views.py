"""
Streamlit render functions, one per session phase.

Each renderer draws its phase and returns the action the user clicked
(CAPTURE, RESET) or None.
"""

from typing import Callable, Dict, Optional

import numpy as np
import streamlit as st

from .emotions import map_to_glyph
from .errors import ErrorKind
from .session import Phase, SessionState

CAPTURE = 'capture'
RESET = 'reset'

PAGE_CSS = """
<style>
    .main-header {
        font-size: 3.5rem;
        font-weight: 800;
        text-align: center;
        margin-bottom: 0.5rem;
        background: linear-gradient(90deg, #67e8f9 0%, #3b82f6 100%);
        -webkit-background-clip: text;
        -webkit-text-fill-color: transparent;
    }
    .sub-header {
        text-align: center;
        color: #9ca3af;
        margin-bottom: 2rem;
    }
    .emoji-display {
        font-size: 10rem;
        line-height: 1;
        text-align: center;
        margin: 1rem 0;
    }
    .label-display {
        font-size: 2rem;
        font-weight: 600;
        text-align: center;
        color: #22d3ee;
        text-transform: capitalize;
    }
    .error-box {
        margin-top: 1.5rem;
        padding: 1rem;
        border: 1px solid rgba(239, 68, 68, 0.5);
        border-radius: 10px;
        background: rgba(220, 38, 38, 0.1);
        color: #ef4444;
    }
    .stButton>button {
        width: 100%;
        background: linear-gradient(90deg, #06b6d4 0%, #2563eb 100%);
        color: white;
        font-weight: bold;
        border: none;
        border-radius: 9999px;
        padding: 0.75rem;
    }
</style>
"""


def render_header() -> None:
    st.markdown(PAGE_CSS, unsafe_allow_html=True)
    st.markdown('<h1 class="main-header">TechXpression AI</h1>', unsafe_allow_html=True)
    st.markdown('<p class="sub-header">🔍 Advanced Emotion Recognition System</p>', unsafe_allow_html=True)


def _live_preview(preview: Optional[np.ndarray]) -> None:
    if preview is None:
        st.warning("📷 Waiting for camera...")
    else:
        st.image(preview, channels="RGB", width="stretch")


def _error_box(message: str) -> None:
    st.markdown(f'<div class="error-box">{message}</div>', unsafe_allow_html=True)


def _capture_button(disabled: bool = False, label: str = "📸 Capture Emotion") -> Optional[str]:
    if st.button(label, type="primary", disabled=disabled, key="capture"):
        return CAPTURE
    return None


def render_loading(state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    st.info("🧠 Initializing Neural Network...")
    return None


def render_idle(state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    _live_preview(preview)
    return _capture_button()


def render_analyzing(state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    _live_preview(preview)
    _capture_button(disabled=True, label="⏳ Analyzing...")
    return None


def render_result(state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    label = state.captured_label
    st.markdown(f'<div class="emoji-display">{map_to_glyph(label)}</div>', unsafe_allow_html=True)
    st.markdown(f'<div class="label-display">{label.value}</div>', unsafe_allow_html=True)
    if st.button("🔄 Try Again", key="reset"):
        return RESET
    return None


def render_failed(state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    if state.error_kind is ErrorKind.MODEL_LOAD_FAILED:
        # Reload is the only recovery
        _error_box(state.error)
        return None

    if state.show_live:
        _live_preview(preview)
    _error_box(state.error)
    return _capture_button(disabled=not state.ready)


RENDERERS: Dict[Phase, Callable[[SessionState, Optional[np.ndarray]], Optional[str]]] = {
    Phase.LOADING: render_loading,
    Phase.IDLE: render_idle,
    Phase.ANALYZING: render_analyzing,
    Phase.RESULT: render_result,
    Phase.FAILED: render_failed,
}


def render(phase: Phase, state: SessionState, preview: Optional[np.ndarray]) -> Optional[str]:
    """Draw the view for ``phase`` and return the clicked action, if any."""
    return RENDERERS[phase](state, preview)
