"""
Main FastAPI application entry point.

Wires configuration, logging, error handlers, middleware and the auth, users
and realtime routers into one app.
"""
from dotenv import load_dotenv

# Load environment variables from .env file first
load_dotenv()

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth.router import router as auth_router
from .config import settings
from .core.middleware import setup_middlewares
from .database import init_db
from .exceptions import register_exception_handlers
from .realtime.registry import ConnectionRegistry
from .realtime.router import router as realtime_router
from .users.router import router as users_router

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

logger.info("Starting Medical Records API...")
init_db()
if not settings.jwt_secret or not settings.refresh_token_secret:
    logger.warning("JWT_SECRET or REFRESH_TOKEN_SECRET is not set; token signing will fail")

app = FastAPI(
    title="Medical Records API",
    description="Authentication, profiles and realtime notifications for the medical records app",
    version="1.0.0"
)

# One registry of live sockets for the whole app
app.state.connection_registry = ConnectionRegistry()

register_exception_handlers(app)

# Credentials cannot be combined with a wildcard origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

setup_middlewares(app)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(realtime_router)

@app.get("/")
def root():
    """
    Root endpoint with the API name and version.
    """
    return {"message": "Welcome to Medical Records API", "version": app.version}

@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        dict: Health status information
    """
    return {"status": "healthy", "database": "connected"}
