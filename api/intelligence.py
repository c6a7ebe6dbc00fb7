"""
API Endpoint for Business Intelligence

FastAPI app that:
1. Accepts a domain (plus optional client id) for analysis
2. Serves merged Apollo, DataForSEO and Wappalyzer data from cache when fresh
3. Otherwise fans out to the configured providers and caches the result
4. Records detected opportunities against the client, if one was given

Invalid requests are rejected before a database session or provider client
is created. Every error response is JSON: {"error": ..., "message": ...}.
"""

import json
import logging
import sys
from datetime import datetime
from typing import AsyncGenerator, Dict, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from src import __version__
from src.cache import IntelligenceCache, get_intelligence_cache
from src.database import OpportunityStore, check_db_connection, get_db, init_db
from src.integrations import ProviderClients, ProviderConfig
from src.services import BusinessIntelligenceService, InvalidRequestError
from src.utils import get_settings, normalize_domain

# Configure logging to stdout
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
    force=True,
)
logger = logging.getLogger(__name__)

# Quiet down chatty loggers
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

# Create FastAPI app
app = FastAPI(
    title="Business Intelligence Aggregator",
    description="Company, SEO and technology intelligence from Apollo, DataForSEO and Wappalyzer",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["*"],
)

INTELLIGENCE_PATH = "/api/business-intelligence"

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
}


@app.middleware("http")
async def answer_preflight(request: Request, call_next):
    """
    OPTIONS always gets an empty 200 with CORS headers.

    Registered after CORSMiddleware so it runs first; any requested
    header is allowed.
    """
    if request.method != "OPTIONS":
        return await call_next(request)

    headers = dict(PREFLIGHT_HEADERS)
    headers["Access-Control-Allow-Headers"] = request.headers.get(
        "access-control-request-headers", "Content-Type"
    )
    return Response(status_code=200, headers=headers)


# ============================================================================
# STARTUP - Initialize Database
# ============================================================================

@app.on_event("startup")
async def startup_event():
    """Initialize database on startup."""
    logger.info("Initializing database...")
    try:
        init_db()
        if check_db_connection():
            logger.info("Database connection verified")
        else:
            logger.warning("Database connection check failed - continuing anyway")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        # Don't fail startup - provider data is still returned without a store

    ProviderConfig.from_settings().log_status()


# ============================================================================
# REQUEST MODELS
# ============================================================================

class IntelligenceRequest(BaseModel):
    """Request to analyze a company domain."""
    model_config = ConfigDict(populate_by_name=True)

    domain: Optional[str] = None
    client_id: Optional[str] = Field(default=None, alias="clientId")
    skip_cache: bool = Field(default=False, alias="skipCache")


# ============================================================================
# DEPENDENCIES
# ============================================================================

async def parse_intelligence_request(request: Request) -> IntelligenceRequest:
    """
    Read and validate the request before any store or provider is set up.

    GET carries no body; POST bodies must be a JSON object. A request
    without a usable domain is rejected here.
    """
    body = IntelligenceRequest()

    if request.method == "POST":
        raw = await request.body()
        if raw.strip():
            try:
                payload = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError):
                raise InvalidRequestError("Invalid JSON body")

            if not isinstance(payload, dict):
                raise InvalidRequestError("Request body must be a JSON object")

            try:
                body = IntelligenceRequest.model_validate(payload)
            except ValidationError as e:
                raise InvalidRequestError("Invalid request", message=str(e.errors()[0].get("msg")))

    if not normalize_domain(body.domain):
        raise InvalidRequestError("domain is required")
    return body


async def get_provider_clients() -> AsyncGenerator[ProviderClients, None]:
    """Provider clients for one request, closed when the request ends."""
    clients = ProviderClients(ProviderConfig.from_settings())
    try:
        yield clients
    finally:
        await clients.close()


def get_intelligence_service(
    db: Session = Depends(get_db),
    providers: ProviderClients = Depends(get_provider_clients),
) -> BusinessIntelligenceService:
    return BusinessIntelligenceService(
        cache=get_intelligence_cache(db),
        opportunity_store=OpportunityStore(db),
        providers=providers,
        settings=get_settings(),
    )


def _error(
    status_code: int,
    error: str,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content = {"error": error}
    if message:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content, headers=headers)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError) -> JSONResponse:
    return _error(400, str(exc), message=exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing errors (404, 405 for any unlisted method) in the same error shape."""
    error = "Method not allowed" if exc.status_code == 405 else str(exc.detail)
    return _error(exc.status_code, error, headers=getattr(exc, "headers", None))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Failures outside the handler, e.g. the database session can't be created."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return _error(500, "Internal server error", message="An unexpected error occurred")


# ============================================================================
# API ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Business Intelligence Aggregator"}


@app.get("/api/health")
async def health():
    """Detailed health check including database and provider status."""
    db_connected = False
    try:
        db_connected = check_db_connection()
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")

    config = ProviderConfig.from_settings()
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": __version__,
        "environment": get_settings().ENVIRONMENT,
        "database": "connected" if db_connected else "disconnected",
        "providers": {
            "apollo": config.has_apollo,
            "dataforseo": config.has_dataforseo,
            "wappalyzer": config.has_wappalyzer,
        },
    }


@app.get("/api/cache/stats")
def cache_stats(db: Session = Depends(get_db)):
    """Cache hit/miss counters and table health."""
    cache = IntelligenceCache(db)
    return {
        "stats": cache.get_stats(),
        "health": cache.health_check(),
    }


@app.api_route(INTELLIGENCE_PATH, methods=["GET", "POST"])
async def business_intelligence(
    body: IntelligenceRequest = Depends(parse_intelligence_request),
    service: BusinessIntelligenceService = Depends(get_intelligence_service),
):
    """
    Analyze a company domain.

    Body:
        domain: Company domain or URL (required)
        clientId / client_id: Client to record detected opportunities against
        skipCache / skip_cache: Force a fresh provider fetch

    Returns merged provider data, metadata and an opportunity summary.
    The body is validated before the service (and its session) is built.
    """
    try:
        return await service.analyze(
            body.domain,
            client_id=body.client_id,
            skip_cache=body.skip_cache,
        )

    except InvalidRequestError:
        raise
    except Exception:
        logger.exception("Business intelligence request failed")
        return _error(500, "Internal server error", message="An unexpected error occurred")


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.intelligence:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
