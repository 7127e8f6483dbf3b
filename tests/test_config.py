from pathlib import Path

import pytest

import config


def _use_config_dir(tmp_path: Path, monkeypatch) -> Path:
    config_dir = tmp_path / ".wordcoach"
    monkeypatch.setattr(config, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(config, "CONFIG_PATH", config_dir / "config.toml")
    return config_dir


def test_load_config_copies_example_on_first_run(tmp_path, monkeypatch):
    config_dir = _use_config_dir(tmp_path, monkeypatch)

    loaded = config.load_config()

    assert (config_dir / "config.toml").exists()
    assert loaded["triage"]["free_daily_quota"] == 25
    assert loaded["triage"]["max_undo"] == 5
    assert loaded["scheduler"]["mastery_threshold_days"] == 21.0
    assert loaded["scheduler"]["directions"] == ["front_to_back", "back_to_front"]


def test_environment_overrides_config_file(tmp_path, monkeypatch):
    config_dir = _use_config_dir(tmp_path, monkeypatch)
    config_dir.mkdir()
    (config_dir / "config.toml").write_text("[triage]\nfree_daily_quota = 10\n", encoding="utf-8")
    monkeypatch.setenv("FREE_DAILY_QUOTA", "3")
    monkeypatch.setenv("DAILY_GOAL_WORDS", "7")

    settings = config.get_settings()

    assert settings.triage.free_daily_quota == 3
    assert settings.triage.premium_daily_quota == 100
    assert settings.daily.goal_words == 7


def test_get_settings_reads_premium_users(tmp_path, monkeypatch):
    config_dir = _use_config_dir(tmp_path, monkeypatch)
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(
        '[subscription]\npremium_users = ["ada", "grace"]\n',
        encoding="utf-8",
    )
    monkeypatch.delenv("FREE_DAILY_QUOTA", raising=False)

    settings = config.get_settings()

    assert settings.premium_users == ("ada", "grace")
    assert settings.scheduler.default_ease == 2.5


def test_get_settings_rejects_inverted_ease_bounds(tmp_path, monkeypatch):
    config_dir = _use_config_dir(tmp_path, monkeypatch)
    config_dir.mkdir()
    (config_dir / "config.toml").write_text("[scheduler]\nmin_ease = 3.0\nmax_ease = 2.5\n", encoding="utf-8")

    with pytest.raises(ValueError):
        config.get_settings()


@pytest.mark.parametrize("threshold", ["1", "1.5"])
def test_get_settings_rejects_thresholds_below_two_days(tmp_path, monkeypatch, threshold):
    config_dir = _use_config_dir(tmp_path, monkeypatch)
    config_dir.mkdir()
    (config_dir / "config.toml").write_text(f"[scheduler]\nmastery_threshold_days = {threshold}\n", encoding="utf-8")
    monkeypatch.delenv("MASTERY_THRESHOLD_DAYS", raising=False)

    with pytest.raises(ValueError):
        config.get_settings()

    monkeypatch.setenv("MASTERY_THRESHOLD_DAYS", "2")
    assert config.get_settings().scheduler.mastery_threshold_days == 2.0
