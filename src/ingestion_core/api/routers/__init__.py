from ingestion_core.api.routers.jobs import router as jobs_router

__all__ = ["jobs_router"]
