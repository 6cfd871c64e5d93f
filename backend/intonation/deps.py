"""
FastAPI dependency providers.

The tuning state, estimator, recording session and microphone are
process-wide singletons created on first use.
"""

from typing import Optional

from fastapi import Depends

from .services.analyzer import FrameAnalyzer
from .services.capture import MicrophoneCapture
from .services.pitch import AubioEstimator, PitchEstimator
from .services.scale import TuningState
from .services.session import RecordingSession

_tuning: Optional[TuningState] = None
_estimator: Optional[PitchEstimator] = None
_session: Optional[RecordingSession] = None
_capture: Optional[MicrophoneCapture] = None


def get_tuning() -> TuningState:
    global _tuning
    if _tuning is None:
        _tuning = TuningState()
    return _tuning


def get_estimator() -> PitchEstimator:
    global _estimator
    if _estimator is None:
        _estimator = AubioEstimator()
    return _estimator


def get_analyzer(estimator: PitchEstimator = Depends(get_estimator)) -> FrameAnalyzer:
    return FrameAnalyzer(estimator)


def get_session() -> RecordingSession:
    """The one recording session of this process."""
    global _session
    if _session is None:
        _session = RecordingSession(FrameAnalyzer(get_estimator()), get_tuning())
    return _session


def get_capture_factory():
    return MicrophoneCapture


def get_capture() -> Optional[MicrophoneCapture]:
    return _capture


def set_capture(capture: Optional[MicrophoneCapture]) -> None:
    """Replace the active microphone capture, stopping the previous one."""
    global _capture
    if _capture is not None and _capture is not capture:
        _capture.stop()
    _capture = capture


def reset() -> None:
    """Drop every singleton (tests, reloads)."""
    global _tuning, _estimator, _session, _capture
    if _capture is not None:
        _capture.stop()
    _tuning = _estimator = _session = _capture = None
