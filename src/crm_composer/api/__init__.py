"""API module."""

from crm_composer.api.routes import router

__all__ = ["router"]
