"""Tests for services/pitch.py: the aubio-backed estimator."""

import threading
import time

import numpy as np
import pytest

from intonation.services.pitch import AubioEstimator


class FakeDetector:
    def __init__(self, method, buf_size, hop_size, samplerate):
        self.args = (method, buf_size, hop_size, samplerate)
        self.unit = None
        self.silence = None

    def set_unit(self, unit):
        self.unit = unit

    def set_silence(self, db):
        self.silence = db

    def __call__(self, vec):
        assert vec.dtype == np.float32
        return np.array([220.0], dtype=np.float32)

    def get_confidence(self):
        return 0.97


class FakeAubio:
    def __init__(self):
        self.created = []

    def pitch(self, *args):
        det = FakeDetector(*args)
        self.created.append(det)
        return det


def test_estimate_uses_window_sized_detector():
    aubio = FakeAubio()
    est = AubioEstimator(window_size=1024, aubio_module=aubio)
    freq, conf = est.estimate(np.zeros(1024, dtype=np.float64), 16000)
    assert (freq, conf) == (220.0, pytest.approx(0.97))
    det = aubio.created[0]
    assert det.args == ("yin", 1024, 1024, 16000)
    assert det.unit == "Hz"
    assert det.silence == -40.0


class StatefulDetector(FakeDetector):
    """Keeps the last window between the pitch call and get_confidence, like aubio."""

    def __call__(self, vec):
        self.last = float(vec[0])
        time.sleep(0.0005)
        return np.array([440.0 + self.last], dtype=np.float32)

    def get_confidence(self):
        return self.last


class StatefulAubio(FakeAubio):
    def pitch(self, *args):
        det = StatefulDetector(*args)
        self.created.append(det)
        return det


def test_concurrent_estimates_keep_pitch_and_confidence_paired():
    est = AubioEstimator(window_size=8, aubio_module=StatefulAubio())
    results = []

    def worker(level):
        window = np.full(8, level, dtype=np.float32)
        for _ in range(50):
            results.append((level,) + est.estimate(window, 16000))

    threads = [threading.Thread(target=worker, args=(level,)) for level in (0.25, 0.75)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == 100
    assert all(freq == 440.0 + level and conf == level for level, freq, conf in results)


def test_one_detector_per_samplerate():
    aubio = FakeAubio()
    est = AubioEstimator(window_size=8, aubio_module=aubio)
    est.estimate(np.zeros(8), 16000)
    est.estimate(np.zeros(8), 16000)
    est.estimate(np.zeros(8), 44100)
    assert [d.args[3] for d in aubio.created] == [16000, 44100]


def test_wrong_window_length_rejected():
    est = AubioEstimator(window_size=8, aubio_module=FakeAubio())
    with pytest.raises(ValueError):
        est.estimate(np.zeros(7), 16000)


def test_real_aubio_finds_sine_pitch():
    pytest.importorskip("aubio")
    sr = 16000
    t = np.arange(2048) / sr
    window = (0.5 * np.sin(2 * np.pi * 440.0 * t)).astype(np.float32)
    freq, conf = AubioEstimator().estimate(window, sr)
    assert freq == pytest.approx(440.0, rel=0.01)
    assert conf > 0.9
