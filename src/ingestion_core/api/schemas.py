from typing import Sequence

from pydantic import BaseModel, Field

from ingestion_core.domain.enums import JobStatus


# Runner callbacks
class MetricRequest(BaseModel):
    name: str = Field(..., min_length=1)
    value: float = Field(..., allow_inf_nan=False)


class MetricsReportRequest(BaseModel):
    """Полный текущий снимок метрик задачи (не дельта)."""
    metrics: Sequence[MetricRequest] = Field(default_factory=list)


class StatusUpdateRequest(BaseModel):
    status: JobStatus


class MetricResponse(BaseModel):
    name: str
    value: float
