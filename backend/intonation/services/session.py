import logging
import threading
from typing import List, Optional

import numpy as np

from ..config import DEFAULT_CONFIDENCE_GATE, LIVE_SAMPLE_RATE, RECORD_DURATION_S
from ..errors import InvalidInput
from .analyzer import FrameAnalyzer, FrameResult
from .history import HistoryBuffer, HistorySeries
from .scale import TuningState
from .wav import PcmBuffer, encode_live, to_pcm

logger = logging.getLogger(__name__)


class RecordingSession:
    """
    The single live recording of the process.

    Live chunks (int16, mono, 16 kHz) are stored for WAV export and analyzed
    window by window. Recording stops by itself after ``duration`` seconds
    of received audio. Starting again throws the previous recording away.
    """

    def __init__(self, analyzer: FrameAnalyzer, tuning: TuningState,
                 samplerate: int = LIVE_SAMPLE_RATE):
        self.analyzer = analyzer
        self.tuning = tuning
        self.samplerate = samplerate
        self._lock = threading.Lock()
        self._history = HistoryBuffer(samplerate=samplerate)
        self._pcm = PcmBuffer()
        self._pending = np.zeros(0, dtype=np.int16)
        self._analyzed = 0
        self._received = 0
        self._limit = 0
        self._gate = DEFAULT_CONFIDENCE_GATE
        self.recording = False
        self.source: Optional[str] = None
        self.last_series: Optional[HistorySeries] = None

    def start(self, duration: float = RECORD_DURATION_S, source: str = "relay",
              confidence_gate: Optional[float] = None):
        if duration <= 0:
            raise InvalidInput(f"duration must be positive, got {duration}")
        with self._lock:
            if self.recording:
                logger.info("discarding in-progress %s recording", self.source)
            self._history.start(samplerate=self.samplerate,
                                reference_pitch=self.tuning.reference_pitch, source=source)
            self._pcm = PcmBuffer()
            self._pending = np.zeros(0, dtype=np.int16)
            self._analyzed = 0
            self._received = 0
            self._limit = int(round(duration * self.samplerate))
            self._gate = self.tuning.confidence_gate if confidence_gate is None else confidence_gate
            self.source = source
            self.last_series = None
            self.recording = True
        logger.info("recording started (%s, %.1fs)", source, duration)

    def feed(self, chunk, source: Optional[str] = None) -> List[FrameResult]:
        """
        Take one live chunk; returns the frames analyzed from it. Chunks are
        ignored when idle or when they come from a source other than the
        one being recorded.
        """
        block = to_pcm(chunk, np.int16).ravel()
        with self._lock:
            if not self.recording or (source is not None and source != self.source):
                return []
            # audio past the recording length is dropped
            block = block[:self._limit - self._received]
            self._pcm.append(block)
            self._received += block.size
            self._pending = np.concatenate([self._pending, block])

            frames = []
            n = self.analyzer.window_size
            table = self.tuning.table
            while self._pending.size >= n:
                window, self._pending = self._pending[:n], self._pending[n:]
                result = self.analyzer.analyze(window, self.samplerate, table, self._gate)
                frames.append(self._history.append(result, self._analyzed / self.samplerate))
                self._analyzed += n

            if self._received >= self._limit:
                self._finish()
            return frames

    def feed_bytes(self, data: bytes, source: Optional[str] = None) -> List[FrameResult]:
        # relay frames are little-endian int16; a dangling odd byte is dropped
        usable = len(data) - (len(data) % 2)
        return self.feed(np.frombuffer(data[:usable], dtype="<i2"), source=source)

    def _finish(self) -> HistorySeries:
        self.recording = False
        self.last_series = self._history.finalize()
        logger.info("recording finished: %d frames, %.2fs of audio",
                    len(self.last_series), self._pcm.duration(self.samplerate))
        return self.last_series

    def stop(self) -> HistorySeries:
        with self._lock:
            if self.recording:
                return self._finish()
            if self.last_series is None:
                self.last_series = self._history.finalize()
            return self.last_series

    def recording_wav(self) -> bytes:
        with self._lock:
            pcm = self._pcm
        return encode_live(pcm)

    def status(self) -> dict:
        with self._lock:
            return {
                "recording": self.recording,
                "source": self.source,
                "seconds": self._received / float(self.samplerate),
                "frames": len(self._history),
            }
