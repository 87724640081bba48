# -*- coding: utf-8 -*-
########################
# audio_capture.py
########################
# Purpose:
# - Microphone capture that always has the most recent fixed-size window of mono samples ready.
# - Defines the capture contract consumed by PitchDetector: acquire / sample / release.
#
# Design notes:
# - No Qt usage.
# - sounddevice is imported on acquire so the pure gameplay modules and tests never need PortAudio.
# - The PortAudio callback thread only copies samples into a ring buffer under a lock. sample() returns a copy,
#   so the caller owns its SignalBuffer for the whole tick.
# - acquire() failures surface as CapturePermissionError. release() is idempotent.
#
########################
# Interfaces:
# Public protocols:
# - AudioCapture
#   - acquire() -> None
#   - sample() -> pitch_detection.SignalBuffer
#   - release() -> None
#
# Public classes:
# - class SoundDeviceCapture(AudioCapture)
#   - __init__(*, sample_rate: int, buffer_size: int, device: Optional[int | str] = None, channels: int = 1)
#   - is_active() -> bool
# - class StaticCapture(AudioCapture)
#   - Replays a caller-supplied SignalBuffer. Used for offline runs and tests.
#
# Inputs:
# - Audio frames from the default or configured input device.
#
# Outputs:
# - SignalBuffer snapshots with the configured sample rate.
#
########################

from __future__ import annotations

import logging
import threading
from typing import Any, Optional, Protocol, Union, runtime_checkable

import numpy as np

from errors import CapturePermissionError
import pitch_detection

logger = logging.getLogger(__name__)


@runtime_checkable
class AudioCapture(Protocol):
    def acquire(self) -> None:
        ...

    def sample(self) -> pitch_detection.SignalBuffer:
        ...

    def release(self) -> None:
        ...


class SoundDeviceCapture:
    def __init__(
        self,
        *,
        sample_rate: int = 44100,
        buffer_size: int = 4096,
        device: Optional[Union[int, str]] = None,
        channels: int = 1,
    ) -> None:
        self._sample_rate = int(sample_rate)
        self._buffer_size = int(buffer_size)
        self._device = device
        self._channels = max(1, int(channels))

        self._lock = threading.Lock()
        self._ring = np.zeros(self._buffer_size, dtype=np.float32)
        self._write_index = 0
        self._stream: Optional[Any] = None

    def is_active(self) -> bool:
        return self._stream is not None

    def acquire(self) -> None:
        if self._stream is not None:
            return

        import sounddevice as sd

        try:
            stream = sd.InputStream(
                device=self._device,
                samplerate=self._sample_rate,
                channels=self._channels,
                dtype="float32",
                callback=self._audio_callback,
            )
            stream.start()
        except (sd.PortAudioError, ValueError, OSError) as exc:
            logger.error(f"Failed to open audio input device {self._device!r}: {exc}")
            raise CapturePermissionError(f"Microphone could not be opened: {exc}") from exc

        with self._lock:
            self._ring[:] = 0.0
            self._write_index = 0
        self._stream = stream
        logger.info(f"Audio capture started: sample_rate={self._sample_rate}Hz buffer_size={self._buffer_size}")

    def release(self) -> None:
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            stream.stop()
        finally:
            stream.close()
        logger.info("Audio capture released")

    def sample(self) -> pitch_detection.SignalBuffer:
        with self._lock:
            ordered = np.concatenate((self._ring[self._write_index :], self._ring[: self._write_index]))
        return pitch_detection.SignalBuffer(samples=ordered, sample_rate=self._sample_rate)

    def _audio_callback(self, indata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.warning(f"Audio status: {status}")

        mono = np.asarray(indata[:, 0], dtype=np.float32)
        if mono.size >= self._buffer_size:
            with self._lock:
                self._ring[:] = mono[-self._buffer_size :]
                self._write_index = 0
            return

        with self._lock:
            end_index = self._write_index + mono.size
            if end_index <= self._buffer_size:
                self._ring[self._write_index : end_index] = mono
            else:
                split = self._buffer_size - self._write_index
                self._ring[self._write_index :] = mono[:split]
                self._ring[: mono.size - split] = mono[split:]
            self._write_index = end_index % self._buffer_size


class StaticCapture:
    """Capture stand-in that serves the same buffer on every tick."""

    def __init__(self, buffer: pitch_detection.SignalBuffer, *, fail_on_acquire: bool = False) -> None:
        self._buffer = buffer
        self._fail_on_acquire = bool(fail_on_acquire)
        self.acquire_count = 0
        self.release_count = 0
        self._is_active = False

    def set_buffer(self, buffer: pitch_detection.SignalBuffer) -> None:
        self._buffer = buffer

    def is_active(self) -> bool:
        return bool(self._is_active)

    def acquire(self) -> None:
        if self._fail_on_acquire:
            raise CapturePermissionError("Microphone access denied")
        self.acquire_count += 1
        self._is_active = True

    def sample(self) -> pitch_detection.SignalBuffer:
        return pitch_detection.SignalBuffer(samples=np.array(self._buffer.samples, copy=True), sample_rate=self._buffer.sample_rate)

    def release(self) -> None:
        if self._is_active:
            self.release_count += 1
        self._is_active = False
