from dataclasses import dataclass
from typing import Callable, Optional

from config import Settings
from db import database
from db.store import Store
from utils.clock import SystemClock
from utils.daily import DailyProgressAggregator
from utils.scheduler import SpacedRepetitionScheduler
from utils.triage import TriageEngine


@dataclass
class Services:
    settings: Settings
    store: Store
    triage: TriageEngine
    scheduler: SpacedRepetitionScheduler
    daily: DailyProgressAggregator

    def close(self) -> None:
        self.store.close()


def premium_from_settings(settings: Settings) -> Callable[[str], bool]:
    """Entitlement predicate backed by the [subscription] config table."""
    premium_users = frozenset(settings.premium_users)

    def is_premium(user_id: str) -> bool:
        return user_id in premium_users

    return is_premium


def build_services(
    settings: Settings,
    store: Optional[Store] = None,
    clock=None,
    is_premium: Optional[Callable[[str], bool]] = None,
) -> Services:
    store = store or Store(database.connect())
    clock = clock or SystemClock()
    return Services(
        settings=settings,
        store=store,
        triage=TriageEngine(store, settings, is_premium or premium_from_settings(settings), clock),
        scheduler=SpacedRepetitionScheduler(store, settings.scheduler, clock),
        daily=DailyProgressAggregator(store, settings.daily, clock),
    )
