"""FastAPI dependencies."""
from quiz_api.dependencies.auth import get_current_user, get_optional_user
from quiz_api.dependencies.cache import get_caches

__all__ = ["get_caches", "get_current_user", "get_optional_user"]
