from dataclasses import dataclass, replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ingestion_core.domain.entities.feature_set import FeatureSet
from ingestion_core.domain.entities.metrics import Metrics
from ingestion_core.domain.entities.source import Source
from ingestion_core.domain.entities.store import Store
from ingestion_core.domain.enums import JobStatus, Runner
from ingestion_core.domain.errors import ReferenceIntegrityError
from ingestion_core.domain.messages import IngestionJobMessage

_IMMUTABLE_FIELDS = frozenset({"id", "runner"})


@dataclass(eq=False)
class Job:
    """
    One run of an ingestion process.

    `source` and `store` are Optional only because a job loaded from storage
    may carry a dangling reference; `create` never builds such a job.
    """
    id: str
    external_id: str
    runner: Runner
    source: Optional[Source]
    store: Optional[Store]
    feature_sets: tuple[FeatureSet, ...] = ()
    status: JobStatus = JobStatus.PENDING
    metrics: tuple[Metrics, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __setattr__(self, name, value):
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"Job.{name} cannot be reassigned")
        # every write, including the one from __init__, goes through the same checks
        if name == "runner":
            value = Runner.from_name(value)
        elif name == "status":
            value = JobStatus(value)
        elif name == "external_id":
            value = value or ""
        elif name == "feature_sets":
            value = _unique_feature_sets(value)
        elif name == "metrics":
            value = self._bind(value)
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        id: str,
        external_id: str,
        runner: Runner,
        source: Source,
        store: Store,
        feature_sets: Sequence[FeatureSet],
        status: JobStatus = JobStatus.PENDING,
    ) -> "Job":
        if not id:
            raise ValueError("Job id must not be empty")
        if runner is None:
            raise ReferenceIntegrityError(f"Job {id}: runner is required")
        if source is None:
            raise ReferenceIntegrityError(f"Job {id}: source is required")
        if store is None:
            raise ReferenceIntegrityError(f"Job {id}: store is required")
        if feature_sets is None:
            raise ReferenceIntegrityError(f"Job {id}: feature sets are required")
        if status is None:
            raise ReferenceIntegrityError(f"Job {id}: status is required")

        return cls(
            id=id,
            external_id=external_id,
            runner=runner,
            source=source,
            store=store,
            feature_sets=tuple(feature_sets),
            status=status,
        )

    def has_terminated(self) -> bool:
        return self.status.is_terminal()

    def set_status(self, status: JobStatus) -> None:
        # Terminal guard belongs to the caller, see JobsService.update_status.
        self.status = status

    def set_external_id(self, external_id: str) -> None:
        self.external_id = external_id

    def update_metrics(self, new_metrics: Iterable[Metrics]) -> None:
        """Replace the whole metrics snapshot with `new_metrics`."""
        # bound in __setattr__, then one assignment: readers see the old or the new tuple, never a mix
        self.metrics = new_metrics

    def get_sink_name(self) -> str:
        if self.store is None:
            raise ReferenceIntegrityError(f"Job {self.id} has no store")
        return self.store.name

    def to_wire(self) -> IngestionJobMessage:
        from ingestion_core.domain.services.projector import job_to_wire
        return job_to_wire(self)

    def _bind(self, metrics: Iterable[Metrics]) -> tuple[Metrics, ...]:
        bound = []
        for m in metrics:
            if m.job_id is not None and m.job_id != self.id:
                raise ReferenceIntegrityError(
                    f"Metric {m.name!r} belongs to job {m.job_id}, not {self.id}"
                )
            bound.append(m if m.job_id == self.id else replace(m, job_id=self.id))
        return tuple(bound)


def _unique_feature_sets(feature_sets: Iterable[FeatureSet]) -> tuple[FeatureSet, ...]:
    seen = set()
    out = []
    for fs in feature_sets:
        if fs is None:
            raise ReferenceIntegrityError("Feature set reference must not be empty")
        if fs.id in seen:
            raise ValueError(f"Duplicate feature set reference: {fs.id}")
        seen.add(fs.id)
        out.append(fs)
    return tuple(out)
