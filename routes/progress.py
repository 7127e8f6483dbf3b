from fastapi import APIRouter, Depends

from models.projections import MonthlyStats, ProgressSummary
from routes.deps import get_services, http_error
from utils.errors import WordCoachError
from utils.services import Services

router = APIRouter()


@router.post("/{user_id}/app-open")
def app_open(user_id: str, services: Services = Depends(get_services)):
    """Open today's ledger entry; repeated calls the same day change nothing."""
    entry = services.daily.record_app_open(user_id)
    if entry is None:
        return {"recorded": False, "entry": None}
    return {"recorded": True, "entry": entry}


@router.get("/{user_id}/summary", response_model=ProgressSummary)
def summary(user_id: str, services: Services = Depends(get_services)):
    """Streak, daily goal and monthly discipline for the home screen."""
    try:
        return services.daily.summary(user_id)
    except WordCoachError as exc:
        raise http_error(exc)


@router.get("/{user_id}/monthly", response_model=MonthlyStats)
def monthly(user_id: str, services: Services = Depends(get_services)):
    try:
        return services.daily.monthly_stats(user_id)
    except WordCoachError as exc:
        raise http_error(exc)


@router.get("/{user_id}/total-words")
def total_words(user_id: str, services: Services = Depends(get_services)):
    try:
        return {"total_words_studied": services.daily.total_words_studied(user_id)}
    except WordCoachError as exc:
        raise http_error(exc)
