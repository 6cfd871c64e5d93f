import threading
from typing import Any, Dict, Protocol, Tuple

import numpy as np

from ..config import ANALYSIS_BUFFER_SIZE


class PitchEstimator(Protocol):
    """estimate(window, samplerate) -> (frequency_hz, confidence in [0, 1])."""

    window_size: int

    def estimate(self, window: np.ndarray, samplerate: int) -> Tuple[float, float]:
        ...


class AubioEstimator:
    """
    YIN pitch estimate over a fixed-size window, backed by aubio.
    One aubio detector per sample rate, each with buffer == hop == window,
    so every call analyzes exactly the window it was given. Detectors keep
    state between the pitch call and get_confidence(), so calls are serialized.
    """

    def __init__(self, window_size: int = ANALYSIS_BUFFER_SIZE, method: str = "yin",
                 silence_db: float = -40.0, aubio_module: Any = None):
        self.window_size = window_size
        self.method = method
        self.silence_db = silence_db
        self._aubio = aubio_module
        self._detectors: Dict[int, Any] = {}
        self._lock = threading.Lock()

    def _get_aubio(self):
        if self._aubio is None:
            import aubio  # deferred so the API can start without the native extension
            self._aubio = aubio
        return self._aubio

    def _detector(self, samplerate: int):
        det = self._detectors.get(samplerate)
        if det is None:
            aubio = self._get_aubio()
            det = aubio.pitch(self.method, self.window_size, self.window_size, samplerate)
            det.set_unit("Hz")
            det.set_silence(self.silence_db)  # dB
            self._detectors[samplerate] = det
        return det

    def estimate(self, window: np.ndarray, samplerate: int) -> Tuple[float, float]:
        if len(window) != self.window_size:
            raise ValueError(f"expected window of {self.window_size} samples, got {len(window)}")
        # aubio expects contiguous float32
        vec = np.ascontiguousarray(window, dtype=np.float32)
        with self._lock:
            det = self._detector(int(samplerate))
            pitch_hz = float(det(vec)[0])
            confidence = float(det.get_confidence())
        return pitch_hz, confidence

