from typing import Optional


class IngestionCoreError(Exception):
    """Base class for errors raised by the job model."""


class ReferenceIntegrityError(IngestionCoreError):
    """A required reference (source, store, feature set) is absent."""


class ConversionError(IngestionCoreError):
    """An entity could not be converted to its wire message."""

    def __init__(self, kind: str, entity_id: str, reason: str):
        self.kind = kind
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot convert {kind} '{entity_id}' to wire format: {reason}")


class InvalidStatusError(IngestionCoreError):
    """Attempt to move a job out of a terminal status."""

    def __init__(self, job_id: str, current: str, requested: Optional[str] = None):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        if requested is None:
            msg = f"Job {job_id} is not terminal (status {current})"
        else:
            msg = f"Job {job_id} is in terminal status {current}, cannot move to {requested}"
        super().__init__(msg)


class JobNotFoundError(IngestionCoreError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")
