"""
pitchlane.py

Entrypoint that launches the pitch game, either in the Qt window or as a headless terminal session.

Integration
- Loads config (config.py), applies CLI overrides and configures logging
- Builds capture -> PitchDetector -> GameEngine for the selected level
- GUI: QApplication + GameplayHarnessWindow, which owns the tick timer
- Headless: a plain loop that ticks the engine at the configured interval and logs progress and results
- --demo-tone replaces the microphone with a synthetic tone so the game can run without audio hardware
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import audio_capture
from config import AppConfig, get_config, load_config
from errors import CapturePermissionError, PitchlaneError
import game_engine
from gameplay_models import GameState
import judge
import pitch_detection
import song_charts
import timing_model

logger = logging.getLogger("pitchlane")


def configure_logging(level_name: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level_name).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_capture(app_config: AppConfig, *, demo_tone_hz: Optional[float] = None) -> audio_capture.AudioCapture:
    audio = app_config.audio
    if demo_tone_hz is not None:
        tone = pitch_detection.sine_buffer(
            float(demo_tone_hz),
            sample_rate=int(audio.sample_rate),
            size=int(audio.buffer_size),
        )
        return audio_capture.StaticCapture(tone)

    return audio_capture.SoundDeviceCapture(
        sample_rate=int(audio.sample_rate),
        buffer_size=int(audio.buffer_size),
        device=audio.device,
        channels=int(audio.channels),
    )


def build_engine(
    app_config: AppConfig,
    level: int,
    *,
    capture: Optional[audio_capture.AudioCapture] = None,
    clock: Optional[timing_model.Clock] = None,
) -> game_engine.GameEngine:
    estimator = pitch_detection.PitchEstimator(app_config.detection.to_estimator_settings())
    detector = pitch_detection.PitchDetector(
        capture if capture is not None else build_capture(app_config),
        estimator,
    )
    return game_engine.GameEngine(
        song_charts.get_chart(level),
        pitch_detector=detector,
        clock=clock,
        judgement_windows=app_config.gameplay.to_judgement_windows(),
        countdown_seconds=float(app_config.gameplay.countdown_seconds),
    )


def run_headless(
    engine: game_engine.GameEngine,
    *,
    tick_interval_ms: int,
    progress_interval_seconds: float = 10.0,
) -> judge.ResultSummary:
    chart = engine.chart()
    logger.info(f"Playing '{chart.name}' ({chart.level_label}), {len(chart.notes)} notes, {chart.duration_seconds:.1f}s")

    engine.start()
    last_report_seconds = 0.0
    try:
        while engine.state() in (GameState.COUNTDOWN, GameState.PLAYING):
            snapshot = engine.tick()
            if snapshot.elapsed_seconds - last_report_seconds >= progress_interval_seconds:
                last_report_seconds = snapshot.elapsed_seconds
                logger.info(
                    f"t={snapshot.elapsed_seconds:.1f}s score={snapshot.stats.score} "
                    f"hits={snapshot.stats.hit_notes} missed={snapshot.missed_count} streak={snapshot.stats.streak}"
                )
            time.sleep(tick_interval_ms / 1000.0)
    finally:
        engine.stop()

    stats = engine.get_snapshot().stats
    summary = judge.summarize_results(stats)
    logger.info(
        f"{summary.message} {summary.percent}% ({stats.hit_notes}/{stats.total_notes}), "
        f"stars={summary.stars} score={stats.score} best_streak={stats.best_streak}"
    )
    return summary


def _run_gui(app_config: AppConfig, *, level: int, demo_tone_hz: Optional[float], fullscreen: bool) -> int:
    from PyQt6.QtWidgets import QApplication

    import gameplay_harness
    import overlay_renderer

    qt_application = QApplication(sys.argv)

    def engine_factory(selected_level: int) -> game_engine.GameEngine:
        capture = build_capture(app_config, demo_tone_hz=demo_tone_hz)
        return build_engine(app_config, selected_level, capture=capture)

    window = gameplay_harness.GameplayHarnessWindow(
        engine_factory,
        initial_level=level,
        tick_interval_ms=int(app_config.gameplay.tick_interval_ms),
        overlay_config=overlay_renderer.OverlayConfig(
            lookahead_seconds=float(app_config.gameplay.visible_ahead_seconds),
        ),
    )
    window.resize(1024, 768)
    window.show()
    if fullscreen:
        window.showFullScreen()

    return int(qt_application.exec())


def main(argv: Optional[list[str]] = None) -> int:
    argument_parser = argparse.ArgumentParser(description="Pitchlane: sing or play the falling notes")
    argument_parser.add_argument("--level", type=int, choices=(1, 2), default=None, help="1 = white keys, 2 = sharps and flats.")
    argument_parser.add_argument("--config", type=Path, default=None, help="Path to a pitchlane_config.json file.")
    argument_parser.add_argument("--headless", action="store_true", help="Run without a window and log the session.")
    argument_parser.add_argument("--log-level", default=None, help="Override the configured log level.")
    argument_parser.add_argument("--device", default=None, help="sounddevice input device id or name.")
    argument_parser.add_argument("--demo-tone", type=float, default=None, help="Use a steady synthetic tone (Hz) instead of the microphone.")
    argument_parser.add_argument("--fullscreen", action="store_true", help="Start in fullscreen.")
    parsed_args = argument_parser.parse_args(argv)

    try:
        if parsed_args.config is not None:
            app_config, config_path = load_config(parsed_args.config)
        else:
            app_config, config_path = get_config()
    except (OSError, ValueError) as exception:
        print(f"pitchlane: {exception}", file=sys.stderr)
        return 2

    if parsed_args.device is not None:
        device_text = str(parsed_args.device).strip()
        device = int(device_text) if device_text.isdigit() else device_text
        app_config = app_config.model_copy(
            update={"audio": app_config.audio.model_copy(update={"device": device})}
        )

    configure_logging(parsed_args.log_level or app_config.logging.level)
    logger.info(f"Config: {config_path if config_path is not None else 'built-in defaults'}")

    level = int(parsed_args.level) if parsed_args.level is not None else int(app_config.gameplay.level)

    if not parsed_args.headless:
        return _run_gui(app_config, level=level, demo_tone_hz=parsed_args.demo_tone, fullscreen=bool(parsed_args.fullscreen))

    capture = build_capture(app_config, demo_tone_hz=parsed_args.demo_tone)
    engine = build_engine(app_config, level, capture=capture)
    try:
        run_headless(engine, tick_interval_ms=int(app_config.gameplay.tick_interval_ms))
    except CapturePermissionError as exception:
        logger.error(f"Microphone access is needed to play: {exception}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except PitchlaneError as exception:
        logger.error(str(exception))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
