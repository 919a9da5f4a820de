# Routes package __init__.py - re-exports routers for main.py convenience
from .quran import router as quran_router
from .auth import router as auth_router
from .study import router as study_router
from .hifz import router as hifz_router
from .suggestions import router as suggestions_router
from .reports import router as reports_router
from .search import router as search_router
from .admin import router as admin_router
from .backups import router as backups_router

__all__ = [
    'quran_router', 'auth_router', 'study_router', 'hifz_router', 'suggestions_router',
    'reports_router', 'search_router', 'admin_router', 'backups_router',
]
