import argparse
import logging
import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

import sys
from pathlib import Path

# Add project root to path for package imports
base_dir = Path(__file__).parent
sys.path.insert(0, str(base_dir))

from db.database import init_db
from config import load_config, get_settings
from routes import packages, triage, review, progress  # Import routers
from utils.services import build_services

logger = logging.getLogger("wordcoach")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# First-run init
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: config, DB and the shared engines
    settings = get_settings(load_config())
    configure_logging(settings.log_level)
    init_db()
    app.state.services = build_services(settings)
    logger.info("WordCoach ready")
    yield
    app.state.services.close()


app = FastAPI(
    title="WordCoach",
    description="Vocabulary triage and spaced repetition engine",
    lifespan=lifespan,
)

# Include routers
app.include_router(packages.router, prefix="/packages", tags=["packages"])
app.include_router(triage.router, prefix="/triage", tags=["triage"])
app.include_router(review.router, prefix="/review", tags=["review"])
app.include_router(progress.router, prefix="/progress", tags=["progress"])


@app.get("/health")
def health():
    return {"status": "ok"}


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="WordCoach App")
    parser.add_argument("--init", action="store_true", help="Initialize DB and config")
    parser.add_argument("--import-dir", type=Path, help="Import every *.json word package in a directory")
    parser.add_argument("--dev", action="store_true", help="Run in dev mode with reload")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()
    if args.init or args.import_dir:
        settings = get_settings(load_config())  # Ensures config is copied if missing
        configure_logging(settings.log_level)
        init_db()
        if args.import_dir:
            from utils.packages import import_package_files

            services = build_services(settings)
            try:
                count = import_package_files(services.store, args.import_dir)
            finally:
                services.close()
            print(f"Imported {count} concepts from {args.import_dir}")
        else:
            print("DB initialized and config copied to ~/.wordcoach/")
        exit(0)
    # Run server
    uvicorn.run("main:app", host="127.0.0.1", port=args.port, reload=args.dev, log_level="info")
