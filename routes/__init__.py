# Routes package __init__.py - re-exports routers for main.py convenience
from .packages import router as packages_router
from .triage import router as triage_router
from .review import router as review_router
from .progress import router as progress_router

__all__ = ['packages_router', 'triage_router', 'review_router', 'progress_router']
