from fastapi import APIRouter, Depends, HTTPException
from typing import List

from models.concept import Concept, Package, PackageImport
from routes.deps import get_services, http_error
from utils.errors import WordCoachError
from utils.packages import import_package
from utils.services import Services

router = APIRouter()


@router.get("/", response_model=List[Package])
def list_packages(services: Services = Depends(get_services)):
    """All imported word packages with their concept counts."""
    try:
        return services.store.list_packages()
    except WordCoachError as exc:
        raise http_error(exc)


@router.post("/import")
def import_word_package(package: PackageImport, services: Services = Depends(get_services)):
    """Import a word package; concepts already present are kept as they are."""
    try:
        inserted = import_package(services.store, package)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except WordCoachError as exc:
        raise http_error(exc)
    return {"package_id": package.package_info.package_id, "imported": inserted}


@router.get("/{package_id}/concepts", response_model=List[Concept])
def package_concepts(package_id: str, services: Services = Depends(get_services)):
    try:
        concepts = services.store.get_concepts(package_id)
    except WordCoachError as exc:
        raise http_error(exc)
    if not concepts:
        raise HTTPException(status_code=404, detail="Package not found")
    return concepts
