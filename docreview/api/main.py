from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docreview import __version__
from docreview.core.config import get_settings
from docreview.core.logger import setup_logger
from docreview.api.routers import (
    admin,
    auth,
    documents,
    external_review,
    health,
    internal_review,
    workflows,
)

settings = get_settings()

setup_logger(settings)

app = FastAPI(
    title=settings.app_name,
    description="Two-party document review and approval",
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.debug else settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(workflows.router, prefix="/api")
app.include_router(internal_review.router, prefix="/api")
app.include_router(external_review.router, prefix="/api")
app.include_router(documents.router, prefix="/api")
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": __version__,
        "docs": "/docs" if settings.debug else None,
    }
