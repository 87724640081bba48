# -*- coding: utf-8 -*-
########################
# gameplay_harness.py
########################
# Purpose:
# - Qt scheduler loop and play window around GameEngine.
# - GameLoopController drives GameEngine.tick() from a Qt timer and re-emits snapshots as a signal.
# - GameplayHarnessWindow wires level selection, start/pause/resume/restart/stop buttons and the playfield.
#
# Design notes:
# - GameEngine stays Qt-free. This module owns the only timer that calls tick().
# - The timer runs only during countdown and playing. Pause, stop and finish kill it.
# - Restart builds a fresh engine through the injected factory, so no state leaks between sessions.
# - Microphone failures are reported through captureFailed and the status label. The engine stays idle.
#
########################
# Interfaces:
# Public types:
# - EngineFactory = Callable[[int], game_engine.GameEngine]   (level -> engine)
#
# Public classes:
# - class GameLoopController(PyQt6.QtCore.QObject)
#   - Signals:
#     - snapshotUpdated(GameSnapshot)
#     - captureFailed(str)
#   - engine() -> Optional[GameEngine]
#   - start(level: int) -> bool
#   - pause() -> None
#   - resume() -> None
#   - toggle_pause() -> None
#   - restart() -> bool
#   - stop() -> None
#
# - class GameplayHarnessWindow(PyQt6.QtWidgets.QMainWindow)
#   - controller -> GameLoopController
#
# Inputs:
# - Button clicks and the space key (pause toggle).
#
# Outputs:
# - Visible playfield and status text.
#
########################

from __future__ import annotations

import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, Qt, pyqtSignal
from PyQt6.QtGui import QKeyEvent
from PyQt6.QtWidgets import (
    QComboBox,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from errors import CapturePermissionError
import game_engine
import gameplay_models
from gameplay_models import GameState
import judge
import overlay_renderer

logger = logging.getLogger(__name__)

EngineFactory = Callable[[int], game_engine.GameEngine]

_TIMER_STATES = (GameState.COUNTDOWN, GameState.PLAYING)


class GameLoopController(QObject):
    snapshotUpdated = pyqtSignal(object)
    captureFailed = pyqtSignal(str)

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        tick_interval_ms: int = 16,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._engine_factory = engine_factory
        self._tick_interval_ms = int(tick_interval_ms)
        self._engine: Optional[game_engine.GameEngine] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._timer_id: int = 0
        self._level = 1

    def engine(self) -> Optional[game_engine.GameEngine]:
        return self._engine

    def start(self, level: int) -> bool:
        self.stop()
        self._level = int(level)

        engine = self._engine_factory(self._level)
        self._unsubscribe = engine.subscribe(self.snapshotUpdated.emit)
        self._engine = engine
        try:
            engine.start()
        except CapturePermissionError as exc:
            logger.error(f"Could not start level {self._level}: {exc}")
            self.captureFailed.emit("Microphone access is needed to play. Please allow microphone access and try again.")
            return False

        self._start_timer()
        return True

    def pause(self) -> None:
        if self._engine is None:
            return
        self._engine.pause()
        self._sync_timer()

    def resume(self) -> None:
        if self._engine is None:
            return
        self._engine.resume()
        self._sync_timer()

    def toggle_pause(self) -> None:
        if self._engine is None:
            return
        if self._engine.state() == GameState.PLAYING:
            self.pause()
        elif self._engine.state() == GameState.PAUSED:
            self.resume()

    def restart(self) -> bool:
        return self.start(self._level)

    def stop(self) -> None:
        self._kill_timer()
        if self._engine is not None:
            self._engine.stop()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def timerEvent(self, event) -> None:  # type: ignore[override]
        if event.timerId() != self._timer_id or self._engine is None:
            return
        self._engine.tick()
        self._sync_timer()

    def _sync_timer(self) -> None:
        if self._engine is not None and self._engine.state() in _TIMER_STATES:
            self._start_timer()
        else:
            self._kill_timer()

    def _start_timer(self) -> None:
        if self._timer_id == 0:
            self._timer_id = self.startTimer(self._tick_interval_ms)

    def _kill_timer(self) -> None:
        if self._timer_id != 0:
            self.killTimer(self._timer_id)
            self._timer_id = 0


class GameplayHarnessWindow(QMainWindow):
    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        initial_level: int = 1,
        tick_interval_ms: int = 16,
        overlay_config: Optional[overlay_renderer.OverlayConfig] = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle("Pitchlane")

        self._controller = GameLoopController(engine_factory, tick_interval_ms=tick_interval_ms, parent=self)
        self._controller.snapshotUpdated.connect(self._on_snapshot)
        self._controller.captureFailed.connect(self._on_capture_failed)

        root_widget = QWidget(self)
        root_layout = QVBoxLayout(root_widget)

        controls = QWidget(root_widget)
        controls_layout = QHBoxLayout(controls)

        self._level_combo = QComboBox(controls)
        self._level_combo.addItem("Level 1 - Easy", 1)
        self._level_combo.addItem("Level 2 - Medium", 2)
        self._level_combo.setCurrentIndex(0 if int(initial_level) == 1 else 1)

        self._start_button = QPushButton("Start", controls)
        self._pause_button = QPushButton("Pause", controls)
        self._resume_button = QPushButton("Resume", controls)
        self._restart_button = QPushButton("Restart", controls)
        self._stop_button = QPushButton("Stop", controls)

        controls_layout.addWidget(self._level_combo)
        controls_layout.addWidget(self._start_button)
        controls_layout.addWidget(self._pause_button)
        controls_layout.addWidget(self._resume_button)
        controls_layout.addWidget(self._restart_button)
        controls_layout.addWidget(self._stop_button)

        self._overlay = overlay_renderer.GameplayOverlayWidget(config=overlay_config, parent=root_widget)
        self._status_label = QLabel("Choose your level and press Start", root_widget)

        root_layout.addWidget(controls)
        root_layout.addWidget(self._overlay, stretch=1)
        root_layout.addWidget(self._status_label)
        self.setCentralWidget(root_widget)

        self._start_button.clicked.connect(self._on_start_clicked)
        self._pause_button.clicked.connect(self._controller.pause)
        self._resume_button.clicked.connect(self._controller.resume)
        self._restart_button.clicked.connect(self._controller.restart)
        self._stop_button.clicked.connect(self._controller.stop)

    @property
    def controller(self) -> GameLoopController:
        return self._controller

    def keyPressEvent(self, event: QKeyEvent) -> None:  # type: ignore[override]
        if event.key() == Qt.Key.Key_Space and not event.isAutoRepeat():
            self._controller.toggle_pause()
            return
        super().keyPressEvent(event)

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self._controller.stop()
        super().closeEvent(event)

    def _on_start_clicked(self) -> None:
        level = int(self._level_combo.currentData() or 1)
        self._controller.start(level)

    def _on_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        if snapshot.state == GameState.COUNTDOWN:
            self._overlay.set_state_text("")
        self._overlay.set_snapshot(snapshot)
        self._status_label.setText(self._status_text(snapshot))

    def _on_capture_failed(self, message: str) -> None:
        self._status_label.setText(message)
        self._overlay.set_state_text("Microphone Access Needed")

    def _status_text(self, snapshot: gameplay_models.GameSnapshot) -> str:
        if snapshot.state == GameState.FINISHED:
            summary = judge.summarize_results(snapshot.stats)
            return f"{snapshot.song_name}: {summary.message} ({summary.percent}%, score {snapshot.stats.score})"
        return (
            f"{snapshot.song_name} [{snapshot.level_label}]  {snapshot.state.value}  "
            f"{snapshot.elapsed_seconds:.1f}/{snapshot.duration_seconds:.0f}s  "
            f"hits {snapshot.stats.hit_notes}/{snapshot.stats.total_notes}"
        )
