"""API routers for the account security service."""

from .forms import router as forms_router
from .health_router import router as health_router
from .login_attempts import router as login_attempts_router

__all__ = ["forms_router", "health_router", "login_attempts_router"]
