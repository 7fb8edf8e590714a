"""
Emoji Snapshot - capture one webcam frame and show the dominant facial expression as an emoji.

Run with:
    streamlit run emoji_snapshot/app.py
"""

import asyncio
import sys
from pathlib import Path

import streamlit as st

# Add project root to path so the app also runs from a plain checkout
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from emoji_snapshot.src.camera import WebcamCapturer
from emoji_snapshot.src.config import (
    CAMERA_INDEX, DETECTOR_INPUT_SIZE, DETECTOR_SCORE_THRESHOLD, MODEL_SOURCE, configure_logging
)
from emoji_snapshot.src.face_detector import DetectorOptions
from emoji_snapshot.src.model_loader import ModelSource
from emoji_snapshot.src.readiness import ReadinessGate
from emoji_snapshot.src.scorer import ExpressionScorer
from emoji_snapshot.src.session import CaptureSession, Phase
from emoji_snapshot.src.views import CAPTURE, RESET, render, render_header

configure_logging()

st.set_page_config(
    page_title="TechXpression AI",
    page_icon="🎭",
    layout="centered",
)


@st.cache_resource
def load_scorer(source: str) -> ExpressionScorer:
    """Scorer shared by all sessions; models load lazily through the readiness gate."""
    return ExpressionScorer(ModelSource(source))


@st.cache_resource
def open_camera(camera_index: int) -> WebcamCapturer:
    return WebcamCapturer(camera_index=camera_index)


def get_session(scorer: ExpressionScorer, capturer: WebcamCapturer) -> CaptureSession:
    """Per-browser-session state machine; its readiness gate opens once."""
    if 'capture_session' not in st.session_state:
        session = CaptureSession(capturer, scorer)
        gate = ReadinessGate(scorer.load_detector, scorer.load_classifier)
        with st.spinner("🧠 Initializing Neural Network..."):
            asyncio.run(gate.open(session))
        st.session_state.capture_session = session
    return st.session_state.capture_session


def sidebar_options() -> DetectorOptions:
    with st.sidebar:
        st.header("⚙️ Settings")
        input_size = st.select_slider(
            "Detector Input Size",
            options=[128, 160, 224, 320, 416, 512, 608],
            value=DETECTOR_INPUT_SIZE,
            help="Frames are downscaled to this size before face detection"
        )
        score_threshold = st.slider(
            "Face Score Threshold",
            min_value=0.0,
            max_value=5.0,
            value=DETECTOR_SCORE_THRESHOLD,
            step=0.1,
            help="Minimum detector confidence for a face to be scored"
        )
        st.markdown("---")
        st.caption(f"Model source: `{MODEL_SOURCE}`")
    return DetectorOptions(input_size=input_size, score_threshold=score_threshold)


def main():
    """Main application."""
    render_header()

    scorer = load_scorer(MODEL_SOURCE)
    capturer = open_camera(CAMERA_INDEX)
    session = get_session(scorer, capturer)
    session.detector_options = sidebar_options()

    phase = session.phase
    state = session.snapshot()
    preview = None
    if state.show_live and phase in (Phase.IDLE, Phase.ANALYZING, Phase.FAILED):
        preview = capturer.read_preview()

    action = render(phase, state, preview)

    if action == CAPTURE:
        with st.spinner("Analyzing facial expression..."):
            asyncio.run(session.request_capture())
        st.rerun()
    elif action == RESET:
        session.reset()
        st.rerun()


if __name__ == "__main__":
    main()
