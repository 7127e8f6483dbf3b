import json
import logging
from pathlib import Path
from typing import Union

from db.store import Store
from models.concept import PackageImport

logger = logging.getLogger(__name__)


def parse_package(payload: Union[str, bytes, dict]) -> PackageImport:
    """Validate a word package given as JSON text or an already decoded dict."""
    if isinstance(payload, (str, bytes)):
        return PackageImport.model_validate_json(payload)
    return PackageImport.model_validate(payload)


def load_package_file(path: Path) -> PackageImport:
    return parse_package(Path(path).read_text(encoding="utf-8"))


def import_package(store: Store, package: PackageImport) -> int:
    """Store a package and its concepts. Returns how many concepts were new."""
    seen = set()
    for word in package.words:
        if word.id in seen:
            raise ValueError(f"Duplicate concept id {word.id} in package {package.package_info.package_id}")
        seen.add(word.id)
    inserted = store.import_package(package.package_info, package.words)
    logger.info(
        "Imported package %s: %d new of %d concepts",
        package.package_info.package_id, inserted, len(package.words),
    )
    return inserted


def import_package_files(store: Store, directory: Path) -> int:
    """Import every ``*.json`` package found in ``directory``."""
    total = 0
    for path in sorted(Path(directory).glob("*.json")):
        try:
            total += import_package(store, load_package_file(path))
        except (ValueError, json.JSONDecodeError) as exc:
            logger.error("Skipping package file %s: %s", path, exc)
    return total
