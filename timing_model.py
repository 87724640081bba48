# -*- coding: utf-8 -*-
########################
# timing_model.py
########################
# Purpose:
# - Single source of truth for song time in gameplay.
# - Converts clock readings into countdown values and elapsed playing time, with pause and resume.
#
# Design notes:
# - No Qt usage. Keep this module pure and deterministic.
# - The clock is injected as a zero-argument callable returning seconds. Gameplay code never reads
#   wall time directly, so tests drive exact timestamps with ManualClock.
# - Pausing freezes elapsed time. Resuming moves the origin so elapsed continues from the paused value.
#
########################
# Interfaces:
# Public types:
# - Clock = Callable[[], float]
#
# Public dataclasses:
# - TimingSnapshot(elapsed_seconds: float, countdown: int, is_paused: bool)
#
# Public classes:
# - class MonotonicClock: __call__() -> float (time.monotonic)
# - class ManualClock: __call__() -> float, set(seconds), advance(seconds)
# - class TimingModel
#   - __init__(countdown_seconds: float = 3.0)
#   - start_countdown(now_seconds: float) -> None
#   - countdown_elapsed_seconds(now_seconds: float) -> float
#   - countdown_value(now_seconds: float) -> int
#   - begin_playing(now_seconds: float) -> None
#   - update(now_seconds: float) -> float
#   - pause() -> None
#   - resume(now_seconds: float) -> None
#   - elapsed_seconds() -> float
#   - is_paused() -> bool
#   - snapshot() -> TimingSnapshot
#
# Inputs:
# - Clock readings taken once per tick by GameEngine.
#
# Outputs:
# - elapsed_seconds used by judge.advance_notes and the overlay.
#
########################

from __future__ import annotations

from dataclasses import dataclass
import math
import time
from typing import Callable

Clock = Callable[[], float]


@dataclass(frozen=True)
class TimingSnapshot:
    elapsed_seconds: float
    countdown: int
    is_paused: bool


class MonotonicClock:
    def __call__(self) -> float:
        return float(time.monotonic())


class ManualClock:
    def __init__(self, start_seconds: float = 0.0) -> None:
        self._now_seconds = float(start_seconds)

    def __call__(self) -> float:
        return float(self._now_seconds)

    def set(self, now_seconds: float) -> None:
        self._now_seconds = float(now_seconds)

    def advance(self, delta_seconds: float) -> None:
        self._now_seconds += float(delta_seconds)


class TimingModel:
    def __init__(self, countdown_seconds: float = 3.0) -> None:
        self._countdown_seconds = float(countdown_seconds)
        self._countdown_start_seconds = 0.0
        self._countdown = int(math.ceil(self._countdown_seconds))
        self._origin_seconds = 0.0
        self._elapsed_seconds = 0.0
        self._is_paused = False

    def countdown_seconds(self) -> float:
        return float(self._countdown_seconds)

    def start_countdown(self, now_seconds: float) -> None:
        self._countdown_start_seconds = float(now_seconds)
        self._countdown = int(math.ceil(self._countdown_seconds))
        self._elapsed_seconds = 0.0
        self._is_paused = False

    def countdown_elapsed_seconds(self, now_seconds: float) -> float:
        return float(now_seconds) - self._countdown_start_seconds

    def countdown_value(self, now_seconds: float) -> int:
        self._countdown = int(math.ceil(self._countdown_seconds - self.countdown_elapsed_seconds(now_seconds)))
        return self._countdown

    def begin_playing(self, now_seconds: float) -> None:
        self._origin_seconds = float(now_seconds)
        self._elapsed_seconds = 0.0
        self._is_paused = False

    def update(self, now_seconds: float) -> float:
        if not self._is_paused:
            self._elapsed_seconds = float(now_seconds) - self._origin_seconds
        return float(self._elapsed_seconds)

    def pause(self) -> None:
        self._is_paused = True

    def resume(self, now_seconds: float) -> None:
        if not self._is_paused:
            return
        self._origin_seconds = float(now_seconds) - self._elapsed_seconds
        self._is_paused = False

    def elapsed_seconds(self) -> float:
        return float(self._elapsed_seconds)

    def is_paused(self) -> bool:
        return bool(self._is_paused)

    def snapshot(self) -> TimingSnapshot:
        return TimingSnapshot(
            elapsed_seconds=self.elapsed_seconds(),
            countdown=int(self._countdown),
            is_paused=self.is_paused(),
        )


def _run_unit_tests() -> None:
    clock = ManualClock(100.0)
    model = TimingModel(countdown_seconds=3.0)

    model.start_countdown(clock())
    assert model.countdown_value(clock()) == 3
    clock.advance(0.5)
    assert model.countdown_value(clock()) == 3
    clock.advance(1.0)
    assert model.countdown_value(clock()) == 2
    clock.advance(1.5)
    assert model.countdown_elapsed_seconds(clock()) >= 3.0

    model.begin_playing(clock())
    clock.advance(2.0)
    assert abs(model.update(clock()) - 2.0) < 1e-9

    model.pause()
    clock.advance(30.0)
    assert abs(model.update(clock()) - 2.0) < 1e-9
    model.resume(clock())
    assert abs(model.update(clock()) - 2.0) < 1e-9
    clock.advance(0.25)
    assert abs(model.update(clock()) - 2.25) < 1e-9

    snap = model.snapshot()
    assert abs(snap.elapsed_seconds - 2.25) < 1e-9
    assert not snap.is_paused


if __name__ == "__main__":
    _run_unit_tests()
    print("timing_model.py: ok")
