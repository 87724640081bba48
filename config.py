"""
config.py

Typed configuration loading and validation for Pitchlane.

Design goals
- Load at most one UTF-8 JSON config file
- Validate with pydantic (defaults included)
- Support environment variable overrides
- No other I/O beyond reading the config file (no directory creation)

Config file location
- If PITCHLANE_CONFIG_PATH is set, that file is used.
- Otherwise Pitchlane searches these paths in order and uses the first one that exists:
  1) ./pitchlane_config.json (current working directory)
  2) <user config dir>/Pitchlane/Pitchlane/pitchlane_config.json
  3) <user config dir>/Pitchlane/Pitchlane/config.json
- If none exists, the built-in defaults are used.

Example config file (pitchlane_config.json)
{
  "audio": {
    "sample_rate": 44100,
    "buffer_size": 4096,
    "device": null
  },
  "detection": {
    "silence_threshold": 0.015,
    "min_frequency": 60.0,
    "max_frequency": 2000.0
  },
  "gameplay": {
    "hit_window_seconds": 0.8,
    "fall_time_seconds": 3.0,
    "level": 1
  },
  "logging": {
    "level": "INFO"
  }
}
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from platformdirs import user_config_dir
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

import judge
import pitch_detection

_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class AudioConfig(BaseModel):
    sample_rate: int = Field(default=44100, ge=8000, le=192000, description="Capture sample rate in Hz.")
    buffer_size: int = Field(default=4096, ge=256, le=65536, description="Samples analyzed per tick.")
    device: Optional[Union[int, str]] = Field(default=None, description="sounddevice input device id or name.")
    channels: int = Field(default=1, ge=1, le=8, description="Input channels. Only the first one is analyzed.")


class DetectionConfig(BaseModel):
    silence_threshold: float = Field(default=0.015, ge=0.0, le=1.0, description="RMS below this is silence.")
    min_frequency: float = Field(default=60.0, gt=0.0, description="Lowest accepted pitch in Hz.")
    max_frequency: float = Field(default=2000.0, gt=0.0, description="Highest accepted pitch in Hz.")
    strong_correlation: float = Field(default=0.9, gt=0.0, le=1.0)
    decay_correlation: float = Field(default=0.85, gt=0.0, le=1.0)
    fallback_correlation: float = Field(default=0.7, gt=0.0, le=1.0)

    @model_validator(mode="after")
    def validate_ranges(self) -> "DetectionConfig":
        if self.min_frequency >= self.max_frequency:
            raise ValueError("min_frequency must be lower than max_frequency")
        if not self.fallback_correlation <= self.decay_correlation <= self.strong_correlation:
            raise ValueError("correlation thresholds must satisfy fallback <= decay <= strong")
        return self

    def to_estimator_settings(self) -> pitch_detection.EstimatorSettings:
        return pitch_detection.EstimatorSettings(
            silence_threshold=float(self.silence_threshold),
            min_frequency=float(self.min_frequency),
            max_frequency=float(self.max_frequency),
            strong_correlation=float(self.strong_correlation),
            decay_correlation=float(self.decay_correlation),
            fallback_correlation=float(self.fallback_correlation),
        )


class GameplayConfig(BaseModel):
    countdown_seconds: float = Field(default=3.0, ge=0.0, description="Lead-in before notes start moving.")
    fall_time_seconds: float = Field(default=3.0, gt=0.0, description="Seconds a note takes to reach the hit line.")
    hit_window_seconds: float = Field(default=0.8, gt=0.0, description="Accepted distance from the note time.")
    tolerance_semitones: int = Field(default=1, ge=0, le=12, description="Accepted pitch distance.")
    visible_ahead_seconds: float = Field(default=5.0, gt=0.0, description="How far ahead the playfield shows notes.")
    tick_interval_ms: int = Field(default=16, ge=1, le=1000, description="Scheduler tick interval.")
    level: int = Field(default=1, ge=1, le=2, description="1 = white keys, 2 = sharps and flats.")

    def to_judgement_windows(self) -> judge.JudgementWindows:
        return judge.JudgementWindows(
            hit_window_seconds=float(self.hit_window_seconds),
            fall_time_seconds=float(self.fall_time_seconds),
            tolerance_semitones=int(self.tolerance_semitones),
        )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="CRITICAL, ERROR, WARNING, INFO or DEBUG")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        normalized = (value or "").strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError("level must be one of: " + ", ".join(_LOG_LEVELS))
        return normalized


class AppConfig(BaseModel):
    audio: AudioConfig = Field(default_factory=AudioConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    gameplay: GameplayConfig = Field(default_factory=GameplayConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _default_config_candidates() -> List[Path]:
    config_directory = Path(user_config_dir("Pitchlane", "Pitchlane"))
    return [
        Path.cwd() / "pitchlane_config.json",
        config_directory / "pitchlane_config.json",
        config_directory / "config.json",
    ]


def _resolve_config_path() -> Optional[Path]:
    explicit_path_text = os.environ.get("PITCHLANE_CONFIG_PATH", "").strip()
    if explicit_path_text:
        return Path(explicit_path_text)

    for candidate_path in _default_config_candidates():
        if candidate_path.exists():
            return candidate_path

    return None


def _read_json_file_utf8(config_path: Path) -> Dict[str, Any]:
    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exception:
        raise OSError(f"Failed to read config file: {config_path}. Error: {exception}") from exception

    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError as exception:
        raise ValueError(f"Config file is not valid JSON: {config_path}. Error: {exception}") from exception

    if not isinstance(parsed, dict):
        raise ValueError(f"Config file root must be a JSON object: {config_path}")

    return parsed


def _parse_device(value_text: str) -> Union[int, str]:
    return int(value_text) if value_text.isdigit() else value_text


# (variable, section, key, parser). Values that fail to parse are ignored.
_ENVIRONMENT_OVERRIDES: Tuple[Tuple[str, str, str, Callable[[str], Any]], ...] = (
    ("PITCHLANE_AUDIO_DEVICE", "audio", "device", _parse_device),
    ("PITCHLANE_SAMPLE_RATE", "audio", "sample_rate", int),
    ("PITCHLANE_BUFFER_SIZE", "audio", "buffer_size", int),
    ("PITCHLANE_SILENCE_THRESHOLD", "detection", "silence_threshold", float),
    ("PITCHLANE_LEVEL", "gameplay", "level", int),
    ("PITCHLANE_HIT_WINDOW_SECONDS", "gameplay", "hit_window_seconds", float),
    ("PITCHLANE_LOG_LEVEL", "logging", "level", str),
)


def _apply_environment_overrides(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Layer PITCHLANE_* variables over the file contents. The file dict itself is left untouched."""
    merged = {
        section_name: dict(section) if isinstance(section, dict) else section
        for section_name, section in config_dict.items()
    }

    for env_name, section_name, key_name, parse in _ENVIRONMENT_OVERRIDES:
        value_text = os.environ.get(env_name, "").strip()
        if not value_text:
            continue
        try:
            value = parse(value_text)
        except ValueError:
            continue

        section = merged.get(section_name)
        if not isinstance(section, dict):
            section = {}
            merged[section_name] = section
        section[key_name] = value

    return merged


def load_config(config_path: Optional[Path] = None) -> Tuple[AppConfig, Optional[Path]]:
    resolved_path = config_path if config_path is not None else _resolve_config_path()
    json_dict = _read_json_file_utf8(resolved_path) if resolved_path is not None else {}
    json_dict = _apply_environment_overrides(json_dict)

    try:
        config = AppConfig.model_validate(json_dict)
    except ValidationError as exception:
        source = str(resolved_path) if resolved_path is not None else "defaults"
        raise ValueError(f"Config validation failed for {source}:\n{exception}") from exception

    return config, resolved_path


@lru_cache(maxsize=1)
def get_config() -> Tuple[AppConfig, Optional[Path]]:
    return load_config()


def to_json(config: AppConfig) -> str:
    return json.dumps(config.model_dump(), ensure_ascii=False, indent=2)


def main() -> int:
    try:
        config, resolved_path = load_config()
    except Exception as exception:
        error_payload = {"ok": False, "error": str(exception)}
        print(json.dumps(error_payload, ensure_ascii=False, indent=2))
        return 2

    output_payload = {
        "ok": True,
        "config_path": str(resolved_path) if resolved_path is not None else None,
        "config": json.loads(to_json(config)),
    }
    print(json.dumps(output_payload, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
