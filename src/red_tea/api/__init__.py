"""API route handlers."""

from red_tea.api.router import api_router

__all__ = ["api_router"]
