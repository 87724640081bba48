from __future__ import annotations

import pytest

_CONFIG_ENV_VARS = (
    "PITCHLANE_CONFIG_PATH",
    "PITCHLANE_AUDIO_DEVICE",
    "PITCHLANE_SAMPLE_RATE",
    "PITCHLANE_BUFFER_SIZE",
    "PITCHLANE_SILENCE_THRESHOLD",
    "PITCHLANE_LEVEL",
    "PITCHLANE_HIT_WINDOW_SECONDS",
    "PITCHLANE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_config_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
