from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from ingestion_core.infra.db import SessionLocal
from ingestion_core.infra.uow import SqlAlchemyUoW
from ingestion_core.domain.contracts.uow import UoW

from ingestion_core.services.jobs_service import JobsService


def get_db() -> Generator[Session, None, None]:
    """
    Dependency для SQLAlchemy-сессии.
    Сессия создаётся на запрос и гарантированно закрывается.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_uow(db: Session = Depends(get_db)) -> UoW:
    return SqlAlchemyUoW(db)


# Service factories (composition root)
def get_jobs_service(uow: UoW = Depends(get_uow)) -> JobsService:
    return JobsService(uow)
