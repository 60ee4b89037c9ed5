import logging
import asyncio
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from sqlalchemy.orm import Session
from faststream.rabbit import RabbitBroker
from faststream import FastStream

from ingestion_core.core.settings import settings
from ingestion_core.domain.enums import JobStatus
from ingestion_core.domain.errors import InvalidStatusError, JobNotFoundError
from ingestion_core.infra.db import SessionLocal
from ingestion_core.infra.uow import SqlAlchemyUoW
from ingestion_core.services.jobs_service import JobsService

logging.basicConfig(level=settings.LOG_LEVEL)
log = logging.getLogger(__name__)

broker = RabbitBroker(settings.RABBIT_URL)
app = FastStream(broker)


class MetricPayload(BaseModel):
    name: str = Field(..., min_length=1)
    value: float = Field(..., allow_inf_nan=False)


class RunnerEvent(BaseModel):
    """Callback from a status poller or from the runner itself."""
    job_id: str
    kind: Literal["status", "metrics", "external_id"]
    status: Optional[JobStatus] = None
    metrics: list[MetricPayload] = Field(default_factory=list)
    external_id: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _wire_status(cls, v):
        # runners may report the numeric wire code instead of the name
        if isinstance(v, int) and not isinstance(v, bool):
            return JobStatus.from_wire(v)
        return v

    @model_validator(mode="after")
    def _check_payload(self) -> "RunnerEvent":
        if self.kind == "status" and self.status is None:
            raise ValueError("status event without status")
        if self.kind == "external_id" and not self.external_id:
            raise ValueError("external_id event without external_id")
        return self


def apply_event(svc: JobsService, event: RunnerEvent) -> None:
    if event.kind == "status":
        svc.update_status(event.job_id, event.status)
    elif event.kind == "metrics":
        svc.update_metrics(event.job_id, [(m.name, m.value) for m in event.metrics])
    else:
        svc.set_external_id(event.job_id, event.external_id)


def handle_event(body: str, session_factory=SessionLocal) -> None:
    try:
        event = RunnerEvent.model_validate_json(body)
    except ValidationError:
        log.exception("runner event rejected: %s", body)
        return

    db: Session = session_factory()
    svc = JobsService(SqlAlchemyUoW(db))

    try:
        apply_event(svc, event)
        log.info("job %s: %s event applied", event.job_id, event.kind)

    except (InvalidStatusError, JobNotFoundError) as exc:
        log.warning("job %s: %s event dropped: %s", event.job_id, event.kind, exc)
    except Exception as exc:
        log.exception("job %s: %s event FAILED: %s", event.job_id, event.kind, exc)
        raise
    finally:
        db.close()


@broker.subscriber(settings.RUNNER_EVENTS_QUEUE)
async def handle(body: str) -> None:
    handle_event(body)

if __name__ == "__main__":
    asyncio.run(app.run())
