import logging

from fastapi import FastAPI

from ingestion_core.api.routers import jobs_router
from ingestion_core.core.settings import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(
    title="Ingestion Core",
    version="0.1.0",
    docs_url="/docs",
    redoc_url=None,
)

app.include_router(jobs_router)

@app.get("/health")
def health():
    return {"status": "ok"}
