"""
FastAPI application for the CRM email composer.

Serves draft generation, draft formatting and recipient lookup to the
CRM front end.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from crm_composer.api.routes import router
from crm_composer.config import settings

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:8000",
]


def get_client_ip(request: Request) -> str:
    """Client IP for rate limiting; the first X-Forwarded-For hop wins."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["100/minute"],
)


def get_allowed_origins() -> list[str]:
    """
    Origins the composer front end is served from.

    ``CORS_ALLOWED_ORIGINS`` replaces the defaults. Otherwise the CRM app
    and the hosted generation origin are allowed, plus local dev servers
    outside Cloud Run.
    """
    if settings.cors_allowed_origins:
        return [origin.strip() for origin in settings.cors_allowed_origins.split(",") if origin.strip()]

    allowed = [settings.crm_app_url, settings.generation_fallback_base_url]
    if not settings.is_cloud_run:
        allowed.extend(LOCAL_ORIGINS)

    return list(dict.fromkeys(origin for origin in allowed if origin))


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="AI-assisted email composer for the CRM",
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)

app.include_router(router)


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(f"Starting {settings.app_name} v{settings.app_version} for {settings.brand_name}")
    logger.info(f"Generation model: {settings.openai_model} (key configured: {bool(settings.openai_api_key)})")
    logger.info(f"Generation endpoints: {settings.generation_base_url}, fallback {settings.generation_fallback_base_url}")
    logger.info(
        f"CRM source: "
        f"{'Firestore' if settings.is_cloud_run else settings.local_crm_file} "
        f"(cache {settings.crm_cache_ttl_seconds}s)"
    )
    logger.info(f"CORS allowed origins: {get_allowed_origins()}")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
