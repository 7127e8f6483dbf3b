from datetime import datetime, timezone

import pytest

from config import Settings
from db import database
from db.store import Store
from models.concept import ConceptCreate, PackageInfo
from utils.clock import FixedClock
from utils.services import build_services

START = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def store(tmp_path, monkeypatch):
    data_dir = tmp_path / ".wordcoach"
    monkeypatch.setattr(database, "CONFIG_DIR", data_dir)
    monkeypatch.setattr(database, "DB_PATH", data_dir / "wordcoach.db")
    database.init_db()
    store = Store(database.connect())
    yield store
    store.close()


@pytest.fixture
def premium_users():
    return set()


@pytest.fixture
def services(store, settings, clock, premium_users):
    return build_services(settings, store=store, clock=clock, is_premium=lambda user_id: user_id in premium_users)


def seed_package(store, package_id="P", count=30, start_id=1):
    words = [
        ConceptCreate(id=start_id + i, front_text=f"word{start_id + i}", back_text=f"kelime{start_id + i}")
        for i in range(count)
    ]
    store.import_package(PackageInfo(package_id=package_id, name=package_id), words)
    return [word.id for word in words]
