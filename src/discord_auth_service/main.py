"""Discord Auth Service

Main FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from discord_auth_service.api.routes import oauth
from discord_auth_service.config.settings import get_settings
from discord_auth_service.core.oauth import available_providers

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    # Startup
    logger.info(f"Starting {settings.service_name} v{settings.service_version}")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"OAuth providers: {', '.join(available_providers())}")

    if not settings.discord_client_id or not settings.discord_client_secret:
        logger.warning(
            "DISCORD_CLIENT_ID / DISCORD_CLIENT_SECRET not set; "
            "Discord login will answer 503 until configured"
        )

    yield

    # Shutdown
    logger.info("Shutting down Discord Auth Service")


# Create FastAPI application
app = FastAPI(
    title="Discord Auth Service",
    version=settings.service_version,
    description="Discord OAuth2 login returning normalized user identities",
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


# Health check endpoint
@app.get("/health")
async def root_health_check():
    """Root health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "version": settings.service_version,
        "environment": settings.environment
    }


@app.get("/")
async def root():
    """Root endpoint with service information"""
    return {
        "service": settings.service_name,
        "version": settings.service_version,
        "description": "Discord OAuth2 Authentication Service",
        "providers": available_providers(),
        "docs": "/docs",
        "health": "/health"
    }


# oauth.router already has the /api/v1/auth prefix
app.include_router(oauth.router, tags=["oauth"])


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later."
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "discord_auth_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
