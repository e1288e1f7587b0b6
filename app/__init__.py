"""Instagram Media API application package."""

from .config import get_settings
from .main import app, create_app

__all__ = ["app", "create_app", "get_settings"]
