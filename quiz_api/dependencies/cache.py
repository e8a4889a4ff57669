"""Cache dependency for FastAPI."""
from fastapi import Request

from quiz_api.cache import DerivedDataCaches


def get_caches(request: Request) -> DerivedDataCaches:
    """Derived data caches owned by the running application."""
    return request.app.state.caches
