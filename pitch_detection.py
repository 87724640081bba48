# -*- coding: utf-8 -*-
########################
# pitch_detection.py
########################
# Purpose:
# - Estimate the fundamental frequency of a mono signal buffer with normalized autocorrelation.
# - Wrap an audio capture source and the estimator into a per-tick note detector.
#
# Design notes:
# - No Qt usage. The estimator is synchronous and bounded by the lag range, so it is safe to run every tick.
# - Every rejection path returns None ("no signal"). Silence and low confidence are normal outcomes.
#
########################
# Key Logic:
# - RMS gate: buffers quieter than silence_threshold are never correlated.
# - Lag range: floor(sample_rate / max_frequency) up to (excluding) floor(sample_rate / min_frequency).
# - corr(lag) = dot(x[:n-lag], x[lag:]) / sqrt(energy(x[:n-lag]) * energy(x[lag:])), 0 for zero energy.
# - Lags still on the falling edge of the zero-lag peak are never candidates. For low notes that edge
#   stays above strong_correlation well past min_lag.
# - Accept the best lag above strong_correlation and stop once correlation decays below decay_correlation
#   after that peak; otherwise take the best lag above fallback_correlation.
# - Parabolic interpolation around the best lag refines the period to a fractional lag.
#
########################
# Interfaces:
# Public dataclasses:
# - SignalBuffer(samples: numpy.ndarray, sample_rate: int)
#   - rms() -> float
# - EstimatorSettings(silence_threshold, min_frequency, max_frequency, strong_correlation,
#                     decay_correlation, fallback_correlation)
#
# Public classes:
# - class PitchEstimator
#   - estimate(buffer: SignalBuffer) -> Optional[float]
# - class PitchDetector
#   - __init__(capture: audio_capture.AudioCapture, estimator: Optional[PitchEstimator] = None)
#   - is_running() -> bool
#   - start() -> None              (raises CapturePermissionError)
#   - stop() -> None               (idempotent)
#   - detect() -> Optional[DetectedNote]
#
# Inputs:
# - SignalBuffer snapshots from an AudioCapture.
#
# Outputs:
# - Estimated frequency in Hz, or a gameplay_models.DetectedNote.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING, Optional

import numpy as np

import gameplay_models
import note_mapper

if TYPE_CHECKING:
    import audio_capture

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignalBuffer:
    samples: np.ndarray
    sample_rate: int

    def rms(self) -> float:
        if self.samples.size == 0:
            return 0.0
        samples = self.samples.astype(np.float64, copy=False)
        return float(np.sqrt(np.mean(samples * samples)))


@dataclass(frozen=True)
class EstimatorSettings:
    silence_threshold: float = 0.015
    min_frequency: float = 60.0
    max_frequency: float = 2000.0
    strong_correlation: float = 0.9
    decay_correlation: float = 0.85
    fallback_correlation: float = 0.7


class PitchEstimator:
    def __init__(self, settings: Optional[EstimatorSettings] = None) -> None:
        self._settings = settings if settings is not None else EstimatorSettings()

    @property
    def settings(self) -> EstimatorSettings:
        return self._settings

    def estimate(self, buffer: SignalBuffer) -> Optional[float]:
        settings = self._settings
        if buffer.rms() < float(settings.silence_threshold):
            return None

        samples = np.asarray(buffer.samples, dtype=np.float64).ravel()
        frequency = self._auto_correlate(samples, int(buffer.sample_rate))
        if frequency is None:
            return None
        if frequency < float(settings.min_frequency) or frequency > float(settings.max_frequency):
            return None
        return frequency

    @staticmethod
    def _correlation_at(samples: np.ndarray, lag: int) -> float:
        head = samples[: samples.size - lag]
        tail = samples[lag:]
        denominator = math.sqrt(float(np.dot(head, head)) * float(np.dot(tail, tail)))
        if denominator <= 0.0:
            return 0.0
        return float(np.dot(head, tail)) / denominator

    def _auto_correlate(self, samples: np.ndarray, sample_rate: int) -> Optional[float]:
        settings = self._settings
        size = int(samples.size)
        min_lag = max(1, int(math.floor(sample_rate / float(settings.max_frequency))))
        max_lag = int(math.floor(sample_rate / float(settings.min_frequency)))
        end_lag = min(max_lag, size)
        if min_lag >= end_lag:
            return None

        # Unscanned lags stay at 0 for the interpolation step.
        correlations = np.zeros(size + 1, dtype=np.float64)
        correlations[min_lag - 1] = self._correlation_at(samples, min_lag - 1)

        previous_correlation = float(correlations[min_lag - 1])
        in_zero_lag_peak = True
        first_candidate_lag = end_lag
        best_lag = -1
        best_correlation = 0.0
        found_strong = False

        for lag in range(min_lag, end_lag):
            correlation = self._correlation_at(samples, lag)
            correlations[lag] = correlation

            if in_zero_lag_peak:
                if correlation <= previous_correlation:
                    previous_correlation = correlation
                    continue
                in_zero_lag_peak = False
                first_candidate_lag = lag
            previous_correlation = correlation

            if correlation > settings.strong_correlation and correlation > best_correlation:
                best_correlation = correlation
                best_lag = lag
                found_strong = True
            elif found_strong and correlation < settings.decay_correlation:
                break

        if not found_strong:
            for lag in range(first_candidate_lag, end_lag):
                correlation = float(correlations[lag])
                if correlation > settings.fallback_correlation and correlation > best_correlation:
                    best_correlation = correlation
                    best_lag = lag

        if best_lag < 1 or best_correlation < settings.fallback_correlation:
            return None

        previous = float(correlations[best_lag - 1])
        current = float(correlations[best_lag])
        following = float(correlations[best_lag + 1])
        denominator = 2.0 * (previous - 2.0 * current + following)
        shift = (previous - following) / denominator if denominator != 0.0 else 0.0
        if not math.isfinite(shift):
            shift = 0.0

        logger.debug(f"Autocorrelation best_lag={best_lag} correlation={best_correlation:.4f} shift={shift:.4f}")
        return float(sample_rate) / (best_lag + shift)


class PitchDetector:
    def __init__(self, capture: "audio_capture.AudioCapture", estimator: Optional[PitchEstimator] = None) -> None:
        self._capture = capture
        self._estimator = estimator if estimator is not None else PitchEstimator()
        self._is_running = False

    def is_running(self) -> bool:
        return bool(self._is_running)

    def start(self) -> None:
        if self._is_running:
            return
        self._capture.acquire()
        self._is_running = True

    def stop(self) -> None:
        if not self._is_running:
            return
        self._is_running = False
        self._capture.release()

    def detect(self) -> Optional[gameplay_models.DetectedNote]:
        if not self._is_running:
            return None

        buffer = self._capture.sample()
        frequency = self._estimator.estimate(buffer)
        if frequency is None:
            return None

        position = note_mapper.frequency_to_note(frequency)
        return gameplay_models.DetectedNote(
            note=position.note,
            octave=position.octave,
            full_name=position.full_name,
            frequency=float(frequency),
            volume=buffer.rms(),
            cents=position.cents,
        )


def sine_buffer(frequency: float, *, sample_rate: int = 44100, size: int = 4096, amplitude: float = 0.5) -> SignalBuffer:
    """Synthetic pure tone, used by the self checks and by offline capture."""
    times = np.arange(size, dtype=np.float64) / float(sample_rate)
    samples = (amplitude * np.sin(2.0 * np.pi * float(frequency) * times)).astype(np.float32)
    return SignalBuffer(samples=samples, sample_rate=int(sample_rate))


def _run_unit_tests() -> None:
    estimator = PitchEstimator()

    for frequency in (65.0, 110.0, 220.0, 440.0, 880.0, 1760.0):
        estimate = estimator.estimate(sine_buffer(frequency))
        assert estimate is not None
        assert abs(estimate - frequency) / frequency < 0.01

    silent = SignalBuffer(samples=np.zeros(4096, dtype=np.float32), sample_rate=44100)
    assert estimator.estimate(silent) is None

    quiet = sine_buffer(440.0, amplitude=0.01)
    assert estimator.estimate(quiet) is None


if __name__ == "__main__":
    _run_unit_tests()
    print("pitch_detection.py: ok")
