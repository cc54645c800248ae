import json

import config
from ridguard.identity import hash_id
from ridguard.settings import (
    IGNORE_UNTIL_PREFIX,
    JsonFileStore,
    MemoryStore,
    SettingsStore,
)


def test_defaults(settings):
    assert settings.radius_m == 200
    assert settings.altitude_window_enabled is False
    assert settings.altitude_min_m == -50
    assert settings.altitude_max_m == 150
    assert settings.cooldown_s == 30
    assert settings.log_retention_hours == 48
    assert settings.map_enabled is False
    assert settings.silence_until == 0
    assert settings.ignore_ids == ""


def test_int_options_accept_numeric_and_string_forms():
    s = SettingsStore(MemoryStore({"radius_m": "350", "cooldown_s": 12}))
    assert s.radius_m == 350
    assert s.cooldown_s == 12


def test_int_option_parse_failure_falls_back_to_default():
    s = SettingsStore(MemoryStore({"radius_m": "two hundred", "altitude_min_m": None,
                                   "cooldown_s": [1, 2], "log_retention_hours": True}))
    assert s.radius_m == config.DEFAULT_RADIUS_M
    assert s.altitude_min_m == config.DEFAULT_ALTITUDE_MIN_M
    assert s.cooldown_s == config.DEFAULT_COOLDOWN_S
    assert s.log_retention_hours == config.DEFAULT_LOG_RETENTION_HOURS


def test_bool_options_accept_text():
    s = SettingsStore(MemoryStore({"altitude_window_enabled": "true", "map_enabled": "0"}))
    assert s.altitude_window_enabled is True
    assert s.map_enabled is False


def test_silence_for_minutes_stores_absolute_expiry(settings, clock):
    until = settings.set_silence_for_minutes(30)
    assert until == clock.now + 30 * 60 * 1000
    assert settings.silence_until == until
    assert settings.is_silenced()
    clock.advance(30 * 60)
    assert not settings.is_silenced()


def test_manual_ignore_is_case_insensitive_exact_match(settings):
    settings.set_ignore_ids("abc123, Other-Drone\nTHIRD")
    assert settings.manual_ignore_ids() == {"abc123", "Other-Drone", "THIRD"}
    assert settings.is_manually_ignored("ABC123")
    assert settings.is_manually_ignored("third")
    assert not settings.is_manually_ignored("ABC12")
    assert not settings.is_manually_ignored(None)


def test_temporary_ignore_is_keyed_by_hash_and_expires(settings, clock):
    settings.ignore_temporarily("DRONE-42", 10)
    keys = settings.store.as_dict().keys()
    assert IGNORE_UNTIL_PREFIX + hash_id("DRONE-42") in keys
    assert not any("DRONE-42" in k for k in keys)

    assert settings.is_temporarily_ignored("DRONE-42")
    clock.advance(10 * 60)
    assert not settings.is_temporarily_ignored("DRONE-42")


def test_json_store_persists_and_reloads(tmp_path):
    path = tmp_path / "cfg" / "settings.json"
    s = SettingsStore(JsonFileStore(str(path)))
    s.radius_m = 400
    s.map_enabled = True

    data = json.loads(path.read_text())
    assert data["radius_m"] == 400

    reloaded = SettingsStore(JsonFileStore(str(path)))
    assert reloaded.radius_m == 400
    assert reloaded.map_enabled is True


def test_json_store_tolerates_corrupt_file(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    s = SettingsStore(JsonFileStore(str(path)))
    assert s.radius_m == config.DEFAULT_RADIUS_M


def test_json_store_replaces_file_without_leftovers(tmp_path):
    path = tmp_path / "settings.json"
    s = SettingsStore(JsonFileStore(str(path)))
    s.set_ignore_ids("DRONE-1")
    s.radius_m = 300

    assert sorted(p.name for p in tmp_path.iterdir()) == ["settings.json"]
    assert json.loads(path.read_text())["ignore_ids"] == "DRONE-1"


def test_failed_persist_keeps_previous_file_intact(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    s = SettingsStore(JsonFileStore(str(path)))
    s.set_ignore_ids("DRONE-1")
    before = path.read_text()

    def broken_replace(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("ridguard.settings.os.replace", broken_replace)
    s.radius_m = 999

    # in-memory value wins, file on disk is untouched, no temp file left
    assert s.radius_m == 999
    assert path.read_text() == before
    assert sorted(p.name for p in tmp_path.iterdir()) == ["settings.json"]
    assert SettingsStore(JsonFileStore(str(path))).ignore_ids == "DRONE-1"
