import tomllib
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from dotenv import load_dotenv
import os

CONFIG_DIR = Path.home() / ".wordcoach"
CONFIG_PATH = CONFIG_DIR / "config.toml"
PROJECT_CONFIG_EXAMPLE = Path(__file__).parent / "config.toml"

DEFAULT_DIRECTIONS = ("front_to_back", "back_to_front")


@dataclass(frozen=True)
class TriageSettings:
    free_daily_quota: int = 25
    premium_daily_quota: int = 100
    max_undo: int = 5


@dataclass(frozen=True)
class SchedulerSettings:
    mastery_threshold_days: float = 21.0
    default_ease: float = 2.5
    min_ease: float = 1.3
    max_ease: float = 2.5
    directions: Tuple[str, ...] = DEFAULT_DIRECTIONS


@dataclass(frozen=True)
class DailySettings:
    goal_words: int = 20


@dataclass(frozen=True)
class Settings:
    triage: TriageSettings = field(default_factory=TriageSettings)
    scheduler: SchedulerSettings = field(default_factory=SchedulerSettings)
    daily: DailySettings = field(default_factory=DailySettings)
    premium_users: Tuple[str, ...] = ()
    log_level: str = "INFO"


def load_config() -> Dict[str, Any]:
    """Load config from ~/.wordcoach/config.toml, copy example if missing, load .env overrides."""
    load_dotenv()  # .env overrides, e.g. FREE_DAILY_QUOTA
    if not CONFIG_PATH.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        shutil.copy(PROJECT_CONFIG_EXAMPLE, CONFIG_PATH)
    with open(CONFIG_PATH, "rb") as f:
        config = tomllib.load(f)

    triage_cfg = config.get("triage", {})
    config["triage"] = {
        "free_daily_quota": int(os.getenv("FREE_DAILY_QUOTA", triage_cfg.get("free_daily_quota", 25))),
        "premium_daily_quota": int(os.getenv("PREMIUM_DAILY_QUOTA", triage_cfg.get("premium_daily_quota", 100))),
        "max_undo": int(triage_cfg.get("max_undo", 5)),
    }
    scheduler_cfg = config.get("scheduler", {})
    config["scheduler"] = {
        "mastery_threshold_days": float(os.getenv(
            "MASTERY_THRESHOLD_DAYS",
            scheduler_cfg.get("mastery_threshold_days", 21),
        )),
        "default_ease": float(scheduler_cfg.get("default_ease", 2.5)),
        "min_ease": float(scheduler_cfg.get("min_ease", 1.3)),
        "max_ease": float(scheduler_cfg.get("max_ease", 2.5)),
        "directions": list(scheduler_cfg.get("directions", DEFAULT_DIRECTIONS)),
    }
    daily_cfg = config.get("daily", {})
    config["daily"] = {
        "goal_words": int(os.getenv("DAILY_GOAL_WORDS", daily_cfg.get("goal_words", 20))),
    }
    subscription_cfg = config.get("subscription", {})
    config["subscription"] = {
        "premium_users": [str(user) for user in subscription_cfg.get("premium_users", [])],
    }
    logging_cfg = config.get("logging", {})
    config["logging"] = {
        "level": os.getenv("WORDCOACH_LOG_LEVEL", logging_cfg.get("level", "INFO")).upper(),
    }
    return config


def get_settings(config: Optional[Dict[str, Any]] = None) -> Settings:
    """Build the typed settings the engines are constructed with."""
    if config is None:
        config = load_config()
    triage = config["triage"]
    scheduler = config["scheduler"]
    if scheduler["min_ease"] > scheduler["max_ease"]:
        raise ValueError("scheduler.min_ease must not exceed scheduler.max_ease")
    if scheduler["mastery_threshold_days"] < 2:
        raise ValueError("scheduler.mastery_threshold_days must be at least 2")
    return Settings(
        triage=TriageSettings(
            free_daily_quota=triage["free_daily_quota"],
            premium_daily_quota=triage["premium_daily_quota"],
            max_undo=triage["max_undo"],
        ),
        scheduler=SchedulerSettings(
            mastery_threshold_days=scheduler["mastery_threshold_days"],
            default_ease=scheduler["default_ease"],
            min_ease=scheduler["min_ease"],
            max_ease=scheduler["max_ease"],
            directions=tuple(scheduler["directions"]),
        ),
        daily=DailySettings(goal_words=config["daily"]["goal_words"]),
        premium_users=tuple(config["subscription"]["premium_users"]),
        log_level=config["logging"]["level"],
    )
