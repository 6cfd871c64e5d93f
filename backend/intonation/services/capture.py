import logging
import threading
from typing import Any, Callable, Optional

import numpy as np

from ..config import ANALYSIS_BUFFER_SIZE, LIVE_CHANNELS, LIVE_SAMPLE_RATE
from ..errors import DeviceUnavailable

logger = logging.getLogger(__name__)


class MicrophoneCapture:
    """
    Live microphone input at the fixed capture configuration (mono, 16 kHz, int16).
    Hands every block to callback(int16 ndarray) on the PortAudio thread.
    """

    def __init__(self, device: Optional[int] = None, samplerate: int = LIVE_SAMPLE_RATE,
                 blocksize: int = ANALYSIS_BUFFER_SIZE, channels: int = LIVE_CHANNELS,
                 sd_module: Any = None):
        self.device = device
        self.samplerate = samplerate
        self.blocksize = blocksize
        self.channels = channels
        self._sd = sd_module
        self._stream = None
        self._stop = threading.Event()
        self._callback: Optional[Callable[[np.ndarray], None]] = None

    @property
    def running(self) -> bool:
        return self._stream is not None

    def _get_sd(self):
        if self._sd is None:
            # PortAudio is loaded at import time; a missing library is an unavailable device
            import sounddevice
            self._sd = sounddevice
        return self._sd

    def start(self, callback: Callable[[np.ndarray], None]):
        self._callback = callback
        self._stop.clear()
        try:
            sd = self._get_sd()
            stream = sd.RawInputStream(
                device=self.device,
                channels=self.channels,
                samplerate=self.samplerate,
                blocksize=self.blocksize,
                dtype="int16",
                callback=self._audio_callback,
            )
            stream.start()
        except Exception as e:
            self._stream = None
            logger.error("capture device %s unavailable: %s", self.device, e)
            raise DeviceUnavailable(f"capture device unavailable: {e}") from e
        self._stream = stream
        logger.info("capture started on device %s (%d Hz)", self.device, self.samplerate)

    def _audio_callback(self, indata, frames, time_info, status):
        if self._stop.is_set():
            return
        if status:
            logger.debug("capture status: %s", status)
        block = np.frombuffer(indata, dtype=np.int16)
        if self.channels > 1:
            # mono: take channel 0
            block = block[::self.channels]
        if self._callback:
            try:
                self._callback(block)
            except Exception:
                logger.exception("capture callback failed")

    def stop(self):
        self._stop.set()
        try:
            if self._stream:
                self._stream.stop()
                self._stream.close()
        finally:
            self._stream = None
