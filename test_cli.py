"""Test the command line and its configuration errors"""
import json

import pytest

from djplanner.cli import main
from djplanner.config import PlannerConfig
from djplanner.exceptions import ConfigurationError


def test_map_writes_filled_forms(tmp_path):
    extracted = tmp_path / "extracted.json"
    extracted.write_text(json.dumps({
        "extracted_fields": {
            "guestCount": 150,
            "ceremonyStartTime": "2pm",
            "songs": [{"title": "Perfect", "artist": "Ed Sheeran", "category": "must_play"}],
            "timeline_times": ["5pm", "2pm"],
        },
        "confidence_score": 90,
    }))
    music = tmp_path / "music.json"
    music.write_text(json.dumps({"do_not_play": [{"song_title": "Macarena"}]}))
    out = tmp_path / "filled.json"

    assert main(["map", str(extracted), "--music", str(music), "--append", "--out", str(out)]) == 0

    filled = json.loads(out.read_text())
    assert filled["planning_data"]["guestCount"] == 150
    assert filled["planning_data"]["ceremonyStartTime"] == "14:00"
    assert [s["song_title"] for s in filled["music_ideas"]["do_not_play"]] == ["Macarena"]
    assert [s["song_title"] for s in filled["music_ideas"]["must_play"]] == ["Perfect"]
    assert [i["start_time"] for i in filled["timeline_data"]["timeline_items"]] == ["14:00", "17:00"]


def test_map_reports_bad_input(tmp_path):
    assert main(["map", str(tmp_path / "missing.json")]) == 1

    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    assert main(["map", str(broken)]) == 1


def test_bad_timeout_setting_is_a_configuration_error(tmp_path, monkeypatch):
    monkeypatch.setenv("DJPLANNER_REQUEST_TIMEOUT", "soon")
    with pytest.raises(ConfigurationError) as excinfo:
        PlannerConfig().request_timeout
    assert excinfo.value.config_key == "DJPLANNER_REQUEST_TIMEOUT"

    notes = tmp_path / "notes.txt"
    notes.write_text("Dad gives a toast")
    assert main(["notes", "--event", "1", str(notes)]) == 2


def test_timeout_setting_defaults_and_overrides(monkeypatch):
    monkeypatch.delenv("DJPLANNER_REQUEST_TIMEOUT", raising=False)
    assert PlannerConfig().request_timeout == 300.0
    monkeypatch.setenv("DJPLANNER_REQUEST_TIMEOUT", "12.5")
    assert PlannerConfig().request_timeout == 12.5
