# -*- coding: utf-8 -*-
########################
# overlay_renderer.py
########################
# Purpose:
# - Playfield Qt widget.
# - Paints lanes, falling notes, the hit line, countdown, score, streak and the detected note
#   from the latest GameSnapshot.
#
########################
# Key Logic:
# - Vertical position comes straight from NoteRuntimeState.y: y = 1 at the hit line, which sits at
#   hit_line_ratio of the widget height. Notes above the top or below the bottom are skipped.
# - Hit notes leave the lane and flash a burst on the hit line for one tick. Missed notes are drawn dimmed.
# - Only notes within lookahead_seconds are painted (note_scheduler.visible_notes).
# - Strict boundaries:
#   - The widget never touches GameEngine. It only reads snapshots pushed through set_snapshot().
#
########################
# Interfaces:
# Public dataclasses:
# - OverlayConfig(hit_line_ratio: float, note_height_pixels: float, lookahead_seconds: float,
#                 lookback_seconds: float, streak_display_min: int)
#
# Public classes:
# - class GameplayOverlayWidget(PyQt6.QtWidgets.QWidget)
#   - set_snapshot(snapshot: gameplay_models.GameSnapshot) -> None
#   - set_state_text(state_text: str) -> None
#
# Inputs:
# - GameSnapshot objects (GameLoopController.snapshotUpdated).
#
# Outputs:
# - Painted playfield visuals on the widget surface.
#
########################

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainter, QPen
from PyQt6.QtWidgets import QWidget

import gameplay_models
import judge
import note_scheduler
import song_charts


@dataclass(frozen=True)
class OverlayConfig:
    hit_line_ratio: float = 0.85
    note_height_pixels: float = 48.0
    lookahead_seconds: float = 5.0
    lookback_seconds: float = 1.0
    streak_display_min: int = 3


class GameplayOverlayWidget(QWidget):
    def __init__(
        self,
        *,
        config: Optional[OverlayConfig] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._config = config or OverlayConfig()
        self._snapshot: Optional[gameplay_models.GameSnapshot] = None
        self._state_text = ""
        self.setMinimumSize(480, 360)

    def set_snapshot(self, snapshot: gameplay_models.GameSnapshot) -> None:
        self._snapshot = snapshot
        self.update()

    def set_state_text(self, state_text: str) -> None:
        self._state_text = str(state_text or "")
        self.update()

    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.fillRect(self.rect(), QBrush(QColor(10, 10, 12)))

        snapshot = self._snapshot
        if snapshot is not None:
            self._paint_lanes(painter, snapshot)
            self._paint_notes(painter, snapshot)
            self._paint_hud(painter, snapshot)
            if snapshot.state == gameplay_models.GameState.COUNTDOWN:
                self._paint_center_text(painter, str(max(1, snapshot.countdown)), 72)
            elif snapshot.state == gameplay_models.GameState.PAUSED:
                self._paint_center_text(painter, "PAUSED", 40)
            elif snapshot.state == gameplay_models.GameState.FINISHED:
                self._paint_results(painter, snapshot)

        self._paint_state_text(painter)
        painter.end()

    def _lane_width(self, snapshot: gameplay_models.GameSnapshot) -> float:
        return float(self.width()) / float(max(1, len(snapshot.lanes)))

    def _hit_line_y(self) -> float:
        return float(self.height()) * float(self._config.hit_line_ratio)

    def _paint_lanes(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        lane_width = self._lane_width(snapshot)
        hit_line_y = self._hit_line_y()

        painter.save()
        painter.setFont(QFont("Arial", 12, weight=QFont.Weight.Bold))
        for lane_index, lane_name in enumerate(snapshot.lanes):
            left = lane_width * lane_index
            painter.setPen(QPen(QColor(40, 40, 48)))
            painter.drawLine(QPointF(left, 0.0), QPointF(left, float(self.height())))
            painter.setPen(QPen(QColor(song_charts.note_color(lane_name))))
            painter.drawText(
                QRectF(left, hit_line_y + 8.0, lane_width, 24.0),
                int(Qt.AlignmentFlag.AlignHCenter),
                lane_name,
            )

        painter.setPen(QPen(QColor(240, 240, 240), 2.0))
        painter.drawLine(QPointF(0.0, hit_line_y), QPointF(float(self.width()), hit_line_y))
        painter.restore()

    def _paint_notes(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        config = self._config
        lane_width = self._lane_width(snapshot)
        hit_line_y = self._hit_line_y()
        note_height = float(config.note_height_pixels)
        note_width = min(lane_width - 4.0, float(self.width()) * 0.14)

        shown = note_scheduler.visible_notes(
            snapshot.notes,
            elapsed_seconds=snapshot.elapsed_seconds,
            lookback_seconds=float(config.lookback_seconds),
            lookahead_seconds=float(config.lookahead_seconds),
        )

        for note_state in shown:
            if note_state.hit:
                continue
            pixel_y = float(note_state.y) * hit_line_y
            if pixel_y < -note_height or pixel_y > float(self.height()) + note_height:
                continue

            center_x = lane_width * note_state.lane + lane_width / 2.0
            rect = QRectF(center_x - note_width / 2.0, pixel_y - note_height / 2.0, note_width, note_height)

            painter.save()
            if note_state.missed:
                painter.setOpacity(painter.opacity() * 0.2)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(QColor(song_charts.note_color(note_state.chart_note.note_name))))
            painter.drawRoundedRect(rect, 10.0, 10.0)
            painter.setPen(QPen(QColor(255, 255, 255)))
            painter.setFont(QFont("Arial", 12, weight=QFont.Weight.Bold))
            painter.drawText(rect, int(Qt.AlignmentFlag.AlignCenter), note_state.chart_note.note_name)
            painter.restore()

        for event in snapshot.judgements:
            if event.judgement != "hit":
                continue
            center = QPointF(lane_width * event.lane + lane_width / 2.0, hit_line_y)
            painter.save()
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(QColor(255, 220, 120)))
            painter.drawEllipse(center, note_height * 0.6, note_height * 0.6)
            painter.restore()

    def _paint_hud(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        stats = snapshot.stats
        painter.save()
        painter.setPen(QPen(QColor(230, 230, 230)))
        painter.setFont(QFont("Arial", 14, weight=QFont.Weight.Bold))
        painter.drawText(QRectF(12.0, 8.0, 300.0, 24.0), int(Qt.AlignmentFlag.AlignLeft), f"Score {stats.score}")
        if stats.streak >= int(self._config.streak_display_min):
            painter.drawText(QRectF(12.0, 32.0, 300.0, 24.0), int(Qt.AlignmentFlag.AlignLeft), f"Streak {stats.streak}")

        detected = snapshot.detected_note
        if detected is not None and snapshot.state == gameplay_models.GameState.PLAYING:
            painter.drawText(
                QRectF(float(self.width()) - 312.0, 8.0, 300.0, 24.0),
                int(Qt.AlignmentFlag.AlignRight),
                f"{detected.full_name}  {detected.frequency:.1f} Hz",
            )

        progress_width = (float(self.width()) - 24.0) * snapshot.progress
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(QColor(251, 191, 36)))
        painter.drawRect(QRectF(12.0, 60.0, progress_width, 4.0))
        painter.restore()

    def _paint_results(self, painter: QPainter, snapshot: gameplay_models.GameSnapshot) -> None:
        summary = judge.summarize_results(snapshot.stats)
        lines = [
            "*" * summary.stars,
            summary.message,
            f"{summary.percent}% notes hit",
            f"Score {snapshot.stats.score}   Best streak {snapshot.stats.best_streak}",
        ]
        painter.save()
        painter.fillRect(self.rect(), QBrush(QColor(0, 0, 0, 170)))
        painter.setPen(QPen(QColor(255, 255, 255)))
        painter.setFont(QFont("Arial", 20, weight=QFont.Weight.Bold))
        painter.drawText(QRectF(self.rect()), int(Qt.AlignmentFlag.AlignCenter), "\n".join(lines))
        painter.restore()

    def _paint_center_text(self, painter: QPainter, text: str, point_size: int) -> None:
        painter.save()
        painter.setPen(QPen(QColor(255, 255, 255)))
        painter.setFont(QFont("Arial", point_size, weight=QFont.Weight.Bold))
        painter.drawText(QRectF(self.rect()), int(Qt.AlignmentFlag.AlignCenter), text)
        painter.restore()

    def _paint_state_text(self, painter: QPainter) -> None:
        text = str(self._state_text or "").strip()
        if not text:
            return
        painter.save()
        painter.setPen(QPen(QColor(220, 220, 220)))
        painter.setFont(QFont("Arial", 12))
        painter.drawText(
            QRectF(0.0, float(self.height()) - 28.0, float(self.width()), 20.0),
            int(Qt.AlignmentFlag.AlignHCenter),
            text,
        )
        painter.restore()
