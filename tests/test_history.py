"""Tests for services/history.py: session accumulation and the finalize policy."""

import pytest

from intonation.errors import InvalidInput
from intonation.services.analyzer import ConfidentFrame, LowConfidenceFrame
from intonation.services.history import HistoryBuffer, HistorySeries, format_line


def _hit(cents: float = 5.9, accuracy: float = 88.2) -> ConfidentFrame:
    return ConfidentFrame(frequency=441.5, note="A4", matched_frequency=440.0,
                          cents=cents, accuracy=accuracy, confidence=0.95)


def _gap(confidence: float = 0.3) -> LowConfidenceFrame:
    return LowConfidenceFrame(confidence=confidence)


class TestHistoryBuffer:
    def test_append_keeps_call_order_and_stamps_time(self):
        buf = HistoryBuffer()
        buf.append(_hit(), 0.0)
        buf.append(_gap(), 0.128)
        buf.append(_hit(cents=-3.0), 0.256)
        series = buf.finalize()
        assert [f.time_offset for f in series] == [0.0, 0.128, 0.256]
        assert [f.is_confident for f in series] == [True, False, True]

    def test_append_returns_stamped_frame(self):
        stamped = HistoryBuffer().append(_hit(), 1.5)
        assert stamped.time_offset == 1.5

    def test_negative_time_rejected(self):
        with pytest.raises(InvalidInput):
            HistoryBuffer().append(_hit(), -0.1)

    def test_start_discards_in_progress_series(self):
        buf = HistoryBuffer()
        buf.append(_hit(), 0.0)
        buf.start()
        assert len(buf) == 0
        assert len(buf.finalize()) == 0

    def test_finalized_series_is_a_snapshot(self):
        buf = HistoryBuffer()
        buf.append(_hit(), 0.0)
        first = buf.finalize()
        buf.append(_hit(), 0.5)
        assert len(first) == 1
        assert isinstance(first.frames, tuple)

    def test_append_after_finalize_continues_same_series(self):
        buf = HistoryBuffer()
        buf.append(_hit(), 0.0)
        buf.finalize()
        assert buf.finalized
        buf.append(_gap(), 0.5)
        second = buf.finalize()
        assert [f.time_offset for f in second] == [0.0, 0.5]

    def test_metadata_carried_into_series(self):
        buf = HistoryBuffer(samplerate=16000, reference_pitch=440.0)
        buf.start(source="take.wav", reference_pitch=442.0)
        series = buf.finalize()
        assert series.samplerate == 16000
        assert series.reference_pitch == 442.0
        assert series.source == "take.wav"

    def test_series_is_immutable(self):
        series = HistoryBuffer().finalize()
        with pytest.raises(AttributeError):
            series.frames = ()


class TestSummary:
    def test_counts_and_means_over_confident_frames(self):
        series = HistorySeries(frames=(_hit(cents=10.0, accuracy=80.0), _gap(),
                                       _hit(cents=-20.0, accuracy=60.0), _gap()))
        s = series.summary()
        assert s.frames == 4
        assert s.confident_frames == 2
        assert s.confident_ratio == 0.5
        assert s.mean_accuracy == pytest.approx(70.0)
        assert s.mean_abs_cents == pytest.approx(15.0)

    def test_no_confident_frames(self):
        s = HistorySeries(frames=(_gap(),)).summary()
        assert s.confident_frames == 0
        assert s.mean_accuracy is None
        assert s.mean_abs_cents is None

    def test_empty(self):
        assert HistorySeries().summary().frames == 0


class TestFormatLine:
    def test_confident(self):
        frame = HistoryBuffer().append(_hit(cents=5.891, accuracy=88.217), 0.128)
        assert format_line(frame) == (
            "Time: 0.13s | Freq: 441.5Hz | Note: A4 | Cents: 5.9 | Accuracy: 88%"
        )

    def test_gap(self):
        assert format_line(_gap()) == "Time: 0.00s | Note: N/A"
