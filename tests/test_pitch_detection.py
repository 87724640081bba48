from __future__ import annotations

import numpy as np
import pytest

from audio_capture import AudioCapture, StaticCapture
from errors import CapturePermissionError
from pitch_detection import EstimatorSettings, PitchDetector, PitchEstimator, SignalBuffer, sine_buffer


@pytest.mark.parametrize("frequency", [65.0, 110.0, 220.0, 440.0, 880.0, 1760.0])
def test_estimates_pure_tones_within_one_percent(frequency: float) -> None:
    estimate = PitchEstimator().estimate(sine_buffer(frequency))
    assert estimate is not None
    assert abs(estimate - frequency) / frequency < 0.01


def test_silence_returns_none() -> None:
    silent = SignalBuffer(samples=np.zeros(4096, dtype=np.float32), sample_rate=44100)
    assert silent.rms() == 0.0
    assert PitchEstimator().estimate(silent) is None


def test_empty_buffer_returns_none() -> None:
    empty = SignalBuffer(samples=np.zeros(0, dtype=np.float32), sample_rate=44100)
    assert PitchEstimator().estimate(empty) is None


def test_quiet_signal_is_gated() -> None:
    quiet = sine_buffer(440.0, amplitude=0.01)
    assert quiet.rms() < 0.015
    assert PitchEstimator().estimate(quiet) is None


def test_silence_threshold_is_configurable() -> None:
    estimator = PitchEstimator(EstimatorSettings(silence_threshold=0.5))
    assert estimator.estimate(sine_buffer(440.0, amplitude=0.5)) is None


def test_tone_below_range_returns_none() -> None:
    assert PitchEstimator().estimate(sine_buffer(40.0)) is None


def test_white_noise_has_no_pitch() -> None:
    rng = np.random.default_rng(1234)
    noise = SignalBuffer(samples=(0.3 * rng.standard_normal(4096)).astype(np.float32), sample_rate=44100)
    assert PitchEstimator().estimate(noise) is None


def test_static_capture_satisfies_capture_protocol() -> None:
    assert isinstance(StaticCapture(sine_buffer(440.0)), AudioCapture)


def test_detector_returns_none_until_started() -> None:
    detector = PitchDetector(StaticCapture(sine_buffer(440.0)))
    assert not detector.is_running()
    assert detector.detect() is None


def test_detector_maps_tone_to_note() -> None:
    capture = StaticCapture(sine_buffer(440.0))
    detector = PitchDetector(capture)
    detector.start()

    detected = detector.detect()
    assert detected is not None
    assert detected.full_name == "A4"
    assert (detected.note, detected.octave) == ("A", 4)
    assert abs(detected.frequency - 440.0) < 4.4
    assert detected.volume == pytest.approx(0.5 / np.sqrt(2.0), rel=0.01)
    assert abs(detected.cents) <= 17


def test_detector_reports_no_signal_for_silence() -> None:
    capture = StaticCapture(SignalBuffer(samples=np.zeros(4096, dtype=np.float32), sample_rate=44100))
    detector = PitchDetector(capture)
    detector.start()
    assert detector.detect() is None


def test_detector_start_and_stop_manage_capture() -> None:
    capture = StaticCapture(sine_buffer(440.0))
    detector = PitchDetector(capture)

    detector.start()
    detector.start()
    assert capture.acquire_count == 1
    assert capture.is_active()

    detector.stop()
    detector.stop()
    assert capture.release_count == 1
    assert not capture.is_active()
    assert detector.detect() is None


def test_detector_start_propagates_permission_error() -> None:
    detector = PitchDetector(StaticCapture(sine_buffer(440.0), fail_on_acquire=True))
    with pytest.raises(CapturePermissionError):
        detector.start()
    assert not detector.is_running()


def test_static_capture_returns_copies() -> None:
    capture = StaticCapture(sine_buffer(440.0))
    first = capture.sample()
    first.samples[:] = 0.0
    assert capture.sample().rms() > 0.3
