"""CORS configuration for browser clients of the checklist API."""
from fastapi.middleware.cors import CORSMiddleware
import os

from app.utils.logger import api_logger as logger

ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")
# Tenants are served from subdomains, e.g. r"https://.*\.example\.com"
ALLOWED_ORIGIN_REGEX = os.environ.get("ALLOWED_ORIGIN_REGEX")

LOCAL_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def allowed_origins():
    origins = list(LOCAL_ORIGINS)
    if FRONTEND_URL and FRONTEND_URL not in origins:
        origins.append(FRONTEND_URL)
    return origins


def add_cors_middleware(app):
    """Add CORS middleware to the FastAPI application."""
    options = {
        "allow_credentials": True,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if ENVIRONMENT == "production" and ALLOWED_ORIGIN_REGEX:
        options["allow_origin_regex"] = ALLOWED_ORIGIN_REGEX
    else:
        options["allow_origins"] = allowed_origins()

    logger.info(
        "CORS configured",
        environment=ENVIRONMENT,
        origins=options.get("allow_origins"),
        origin_regex=options.get("allow_origin_regex"),
    )
    app.add_middleware(CORSMiddleware, **options)
