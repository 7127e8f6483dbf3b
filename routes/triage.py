from fastapi import APIRouter, Depends

from models.projections import TriageState
from models.requests import DecisionRequest
from routes.deps import get_services, http_error
from utils.errors import WordCoachError
from utils.services import Services

router = APIRouter()


@router.post("/{user_id}/load/{package_id}", response_model=TriageState)
def load_queue(user_id: str, package_id: str, services: Services = Depends(get_services)):
    """Start triage over the undecided concepts of a package."""
    try:
        return services.triage.load_queue(user_id, package_id)
    except WordCoachError as exc:
        raise http_error(exc)


@router.get("/{user_id}", response_model=TriageState)
def triage_state(user_id: str, services: Services = Depends(get_services)):
    return services.triage.state(user_id)


@router.post("/{user_id}/decide", response_model=TriageState)
def decide(user_id: str, decision: DecisionRequest, services: Services = Depends(get_services)):
    """Keep (swipe right) or discard (swipe left) the current concept."""
    try:
        return services.triage.decide(user_id, decision.concept_id, decision.outcome)
    except WordCoachError as exc:
        raise http_error(exc)


@router.post("/{user_id}/undo", response_model=TriageState)
def undo(user_id: str, services: Services = Depends(get_services)):
    try:
        return services.triage.undo(user_id)
    except WordCoachError as exc:
        raise http_error(exc)


@router.post("/{user_id}/skip", response_model=TriageState)
def skip_all(user_id: str, services: Services = Depends(get_services)):
    try:
        return services.triage.skip_all(user_id)
    except WordCoachError as exc:
        raise http_error(exc)


@router.post("/{user_id}/finish", response_model=TriageState)
def finish(user_id: str, services: Services = Depends(get_services)):
    """Close triage; refused until at least one concept was kept."""
    try:
        return services.triage.finish(user_id)
    except WordCoachError as exc:
        raise http_error(exc)
