"""
Shared fixtures for the test suite.

The aubio estimator is replaced by ``FakeEstimator`` so tests control the
(frequency, confidence) pair directly and never need the native extension.
"""

from typing import List, Tuple

import numpy as np
import pytest
from fastapi.testclient import TestClient

from intonation import deps
from intonation.main import app
from intonation.services.analyzer import FrameAnalyzer
from intonation.services.scale import TuningState, generate


class FakeEstimator:
    """Deterministic estimator: returns ``result`` and records every window it sees."""

    def __init__(self, result: Tuple[float, float] = (441.5, 0.95), window_size: int = 2048):
        self.result = result
        self.window_size = window_size
        self.calls: List[Tuple[np.ndarray, int]] = []

    def estimate(self, window: np.ndarray, samplerate: int) -> Tuple[float, float]:
        self.calls.append((np.array(window), samplerate))
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


@pytest.fixture()
def estimator() -> FakeEstimator:
    return FakeEstimator()


@pytest.fixture()
def analyzer(estimator: FakeEstimator) -> FrameAnalyzer:
    return FrameAnalyzer(estimator)


@pytest.fixture()
def table_440():
    return generate(440.0)


@pytest.fixture()
def tuning() -> TuningState:
    return TuningState()


@pytest.fixture()
def client(estimator: FakeEstimator):
    deps.reset()
    deps._estimator = estimator
    with TestClient(app) as c:
        yield c
    deps.reset()
