from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import checklists, documents, health, projects
from .core.config import settings

logger = logging.getLogger("research_notes.backend")
logging.basicConfig(level=settings.log_level.upper(), format="%(levelname)s %(name)s %(message)s")

app = FastAPI(title=settings.app_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Page-Count", "X-Truncated-Notes"],
)

app.include_router(health.router, prefix="/api")
app.include_router(documents.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(checklists.router, prefix="/api")

logger.info("Starting %s (%s, storage=%s)", settings.app_name, settings.environment, settings.storage_backend)


__all__ = ["app"]
