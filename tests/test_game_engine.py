from __future__ import annotations

import logging
from typing import List

import numpy as np
import pytest

from audio_capture import StaticCapture
from errors import CapturePermissionError
from game_engine import GameEngine
from gameplay_models import ChartNote, GameSnapshot, GameState, SongChart
from pitch_detection import PitchDetector, SignalBuffer, sine_buffer
from timing_model import ManualClock

SILENCE = SignalBuffer(samples=np.zeros(4096, dtype=np.float32), sample_rate=44100)


def _chart(*notes: ChartNote, duration_seconds: float = 10.0) -> SongChart:
    return SongChart(name="Test Song", level=1, level_label="Easy", notes=tuple(notes), duration_seconds=duration_seconds)


class _Session:
    def __init__(self, chart: SongChart, *, buffer: SignalBuffer = SILENCE, fail_on_acquire: bool = False) -> None:
        self.clock = ManualClock(0.0)
        self.capture = StaticCapture(buffer, fail_on_acquire=fail_on_acquire)
        self.engine = GameEngine(chart, pitch_detector=PitchDetector(self.capture), clock=self.clock)
        self.snapshots: List[GameSnapshot] = []
        self.engine.subscribe(self.snapshots.append)

    def tick_at(self, now_seconds: float) -> GameSnapshot:
        self.clock.set(now_seconds)
        return self.engine.tick()

    def start_playing(self) -> None:
        self.engine.start()
        self.tick_at(3.0)
        assert self.engine.state() == GameState.PLAYING


def test_new_engine_is_idle() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    snapshot = session.engine.tick()
    assert snapshot.state == GameState.IDLE
    assert snapshot.stats.total_notes == 1
    assert snapshot.lanes == ("C", "D", "E", "F", "G", "A")
    assert snapshot.notes[0].lane == 5
    assert session.capture.acquire_count == 0


def test_start_acquires_capture_and_counts_down() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.engine.start()

    assert session.engine.state() == GameState.COUNTDOWN
    assert session.capture.acquire_count == 1
    assert session.snapshots[-1].countdown == 3

    assert session.tick_at(1.0).countdown == 2
    assert session.tick_at(2.5).countdown == 1

    snapshot = session.tick_at(3.0)
    assert snapshot.state == GameState.PLAYING
    assert snapshot.elapsed_seconds == 0.0


def test_start_is_ignored_outside_idle() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.engine.start()
    session.engine.start()
    assert session.capture.acquire_count == 1
    assert session.engine.state() == GameState.COUNTDOWN


def test_capture_failure_keeps_engine_idle() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)), fail_on_acquire=True)
    with pytest.raises(CapturePermissionError):
        session.engine.start()
    assert session.engine.state() == GameState.IDLE
    assert session.snapshots == []


def test_matching_pitch_scores_a_hit() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)), buffer=sine_buffer(440.0))
    session.start_playing()

    snapshot = session.tick_at(8.3)
    assert snapshot.elapsed_seconds == pytest.approx(5.3)
    assert snapshot.detected_note is not None
    assert snapshot.detected_note.full_name == "A4"
    assert snapshot.notes[0].hit
    assert snapshot.stats.score == 110
    assert snapshot.stats.streak == 1
    assert [event.judgement for event in snapshot.judgements] == ["hit"]


def test_silence_lets_note_pass_as_miss() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.start_playing()

    assert session.tick_at(7.0).notes[0].is_pending
    snapshot = session.tick_at(9.0)
    assert snapshot.notes[0].missed
    assert snapshot.stats.streak == 0
    assert snapshot.missed_count == 1
    assert [event.judgement for event in snapshot.judgements] == ["miss"]


def test_early_pitch_does_not_hit() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)), buffer=sine_buffer(440.0))
    session.start_playing()
    snapshot = session.tick_at(7.0)
    assert snapshot.notes[0].is_pending
    assert snapshot.stats.score == 0


def test_pause_freezes_song_time() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.start_playing()
    session.tick_at(5.0)

    session.engine.pause()
    assert session.engine.state() == GameState.PAUSED
    snapshot = session.tick_at(100.0)
    assert snapshot.state == GameState.PAUSED
    assert snapshot.elapsed_seconds == pytest.approx(2.0)
    assert snapshot.notes[0].is_pending

    session.clock.set(100.0)
    session.engine.resume()
    assert session.engine.state() == GameState.PLAYING
    assert session.tick_at(100.5).elapsed_seconds == pytest.approx(2.5)


def test_pause_keeps_capture_held() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.start_playing()
    session.engine.pause()
    assert session.capture.is_active()
    assert session.capture.release_count == 0


def test_pause_and_resume_ignored_in_wrong_states() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.engine.pause()
    assert session.engine.state() == GameState.IDLE

    session.engine.start()
    session.engine.pause()
    assert session.engine.state() == GameState.COUNTDOWN

    session.tick_at(3.0)
    session.engine.resume()
    assert session.engine.state() == GameState.PLAYING


def test_stop_is_idempotent_and_releases_capture() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))
    session.start_playing()

    session.engine.stop()
    session.engine.stop()
    assert session.engine.state() == GameState.IDLE
    assert session.capture.release_count == 1
    assert not session.capture.is_active()
    assert [snap.state for snap in session.snapshots].count(GameState.IDLE) == 1


def test_song_finishes_and_releases_capture() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0), ChartNote("C4", 8.0, 1)), buffer=sine_buffer(440.0))
    session.start_playing()
    session.tick_at(8.0)

    snapshot = session.tick_at(13.0)
    assert snapshot.state == GameState.FINISHED
    assert snapshot.stats.hit_notes == 1
    assert snapshot.missed_count == 1
    assert snapshot.pending_count == 0
    assert snapshot.progress == 1.0
    assert session.capture.release_count == 1

    after = session.tick_at(20.0)
    assert after.state == GameState.FINISHED
    assert after.elapsed_seconds == snapshot.elapsed_seconds


def test_restart_after_finish_starts_fresh() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)), buffer=sine_buffer(440.0))
    session.start_playing()
    session.tick_at(8.0)
    session.tick_at(13.0)
    assert session.engine.state() == GameState.FINISHED

    session.engine.stop()
    session.clock.set(50.0)
    session.engine.start()
    snapshot = session.engine.get_snapshot()
    assert snapshot.state == GameState.COUNTDOWN
    assert snapshot.stats.score == 0
    assert snapshot.notes[0].is_pending
    assert session.capture.acquire_count == 2


def test_snapshots_are_not_affected_by_later_ticks() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)), buffer=sine_buffer(440.0))
    session.start_playing()
    before = session.tick_at(6.0)
    assert before.notes[0].is_pending

    session.tick_at(8.0)
    assert before.notes[0].is_pending
    assert before.stats.score == 0


def test_failing_observer_does_not_block_others() -> None:
    session = _Session(_chart(ChartNote("A4", 5.0, 0)))

    def broken(snapshot: GameSnapshot) -> None:
        raise RuntimeError("boom")

    received: List[GameSnapshot] = []
    session.engine.subscribe(broken)
    unsubscribe = session.engine.subscribe(received.append)

    session.engine.start()
    assert len(received) == 1

    unsubscribe()
    session.tick_at(1.0)
    assert len(received) == 1
    assert len(session.snapshots) == 2


def test_finish_logs_note_resolution_counts(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="game_engine")
    session = _Session(_chart(ChartNote("A4", 5.0, 0), ChartNote("C4", 30.0, 1)))
    session.start_playing()

    snapshot = session.tick_at(13.0)
    assert snapshot.state == GameState.FINISHED
    assert snapshot.pending_count == 1
    assert "hits=0 missed=1 unresolved=1" in caplog.text
