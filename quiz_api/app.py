"""Main FastAPI application with modularized routes."""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from quiz_api.cache import DerivedDataCaches
from quiz_api.config import LOG_LEVEL
from quiz_api.database import init_db
from quiz_api.logging_setup import setup_console_logging
from quiz_api.routes import access, sessions, tests, users

setup_console_logging(LOG_LEVEL)

app = FastAPI(title="Quiz Engine API")

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.caches = DerivedDataCaches.from_config()


# Startup events
@app.on_event("startup")
def startup_events() -> None:
    """Initialize database on startup."""
    init_db()


# Include routers
app.include_router(sessions.router)
app.include_router(access.router)
app.include_router(tests.router)
app.include_router(users.router)
