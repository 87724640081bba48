from __future__ import annotations

import importlib

import pytest


@pytest.mark.parametrize(
    "module_name",
    ["judge", "note_mapper", "note_matcher", "note_scheduler", "pitch_detection", "timing_model"],
)
def test_module_self_checks(module_name: str) -> None:
    importlib.import_module(module_name)._run_unit_tests()
