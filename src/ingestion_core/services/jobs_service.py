import logging
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Union

from ingestion_core.domain.contracts.uow import UoW
from ingestion_core.domain.entities.job import Job
from ingestion_core.domain.entities.metrics import Metrics
from ingestion_core.domain.entities.source import Source
from ingestion_core.domain.entities.store import Store
from ingestion_core.domain.enums import JobStatus, Runner
from ingestion_core.domain.errors import (
    InvalidStatusError,
    JobNotFoundError,
    ReferenceIntegrityError,
)
from ingestion_core.domain.messages import IngestionJobMessage
from ingestion_core.domain.services.projector import job_to_wire

log = logging.getLogger(__name__)

MetricInput = Union[Metrics, tuple[str, float], Mapping[str, Any]]


class JobsService:
    """
    Жизненный цикл задач ингестии: регистрация, статусы, метрики, чтение.

    Каждое изменение выполняется в одной транзакции под блокировкой строки
    задачи; при любой ошибке транзакция откатывается, ошибка пробрасывается.
    """

    def __init__(self, uow: UoW):
        self.uow = uow

    @contextmanager
    def _transaction(self) -> Iterator[None]:
        try:
            yield
            self.uow.commit()
        except Exception:
            self.uow.rollback()
            raise

    def _locked(self, job_id: str) -> Job:
        job = self.uow.jobs.get_for_update(job_id)
        if not job:
            raise JobNotFoundError(job_id)
        return job

    # write paths
    def register_job(
        self,
        runner: Runner,
        source_id: str,
        store_name: str,
        feature_set_ids: Sequence[str],
        external_id: str = "",
        job_id: Optional[str] = None,
        status: JobStatus = JobStatus.PENDING,
    ) -> Job:
        with self._transaction():
            source = self.uow.sources.get_by_id(source_id)
            if not source:
                raise ReferenceIntegrityError(f"Source not found: {source_id}")

            store = self.uow.stores.get_by_name(store_name)
            if not store:
                raise ReferenceIntegrityError(f"Store not found: {store_name}")

            feature_sets = []
            for fs_id in feature_set_ids:
                fs = self.uow.feature_sets.get_by_id(fs_id)
                if not fs:
                    raise ReferenceIntegrityError(f"Feature set not found: {fs_id}")
                feature_sets.append(fs)

            job = Job.create(
                id=job_id or _make_job_id(source, store),
                external_id=external_id,
                runner=runner,
                source=source,
                store=store,
                feature_sets=feature_sets,
                status=status,
            )
            self.uow.jobs.add(job)

        log.info("job %s registered: runner=%s store=%s feature_sets=%d",
                 job.id, job.runner.value, store.name, len(feature_sets))
        return job

    def _transition(self, job_id: str, status: JobStatus) -> tuple[Job, Optional[JobStatus]]:
        job = self._locked(job_id)

        if job.status == status:
            return job, None

        if job.has_terminated():
            log.warning("job %s: rejected transition %s -> %s", job_id, job.status.value, status.value)
            raise InvalidStatusError(job_id, job.status.value, status.value)

        previous = job.status
        job.set_status(status)
        self.uow.jobs.save(job)
        return job, previous

    def update_status(self, job_id: str, status: JobStatus) -> Job:
        status = JobStatus(status)
        with self._transaction():
            job, previous = self._transition(job_id, status)

        if previous is not None:
            log.info("job %s: %s -> %s", job_id, previous.value, status.value)
        return job

    def update_status_message(self, job_id: str, status: JobStatus) -> IngestionJobMessage:
        """
        Как update_status, но возвращает wire-сообщение задачи.
        Проекция строится до commit: если задачу нельзя спроецировать,
        статус не меняется.
        """
        status = JobStatus(status)
        with self._transaction():
            job, previous = self._transition(job_id, status)
            message = job_to_wire(job)

        if previous is not None:
            log.info("job %s: %s -> %s", job_id, previous.value, status.value)
        return message

    def set_external_id(self, job_id: str, external_id: str) -> Job:
        with self._transaction():
            job = self._locked(job_id)
            job.set_external_id(external_id)
            self.uow.jobs.save(job)

        log.info("job %s: external id %s", job_id, external_id)
        return job

    def update_metrics(self, job_id: str, metrics: Iterable[MetricInput]) -> Job:
        """
        Заменяет снимок метрик задачи целиком.
        Отчёт должен содержать полный текущий снимок, а не дельту.
        """
        snapshot = [_to_metrics(m) for m in metrics]
        with self._transaction():
            job = self._locked(job_id)
            job.update_metrics(snapshot)
            self.uow.jobs.save(job)

        log.info("job %s: metrics snapshot replaced (%d entries)", job_id, len(snapshot))
        return job

    def delete_job(self, job_id: str) -> None:
        with self._transaction():
            job = self._locked(job_id)
            if not job.has_terminated():
                raise InvalidStatusError(job_id, job.status.value)
            self.uow.jobs.delete(job_id)

        log.info("job %s deleted", job_id)

    # read paths
    def get_job(self, job_id: str) -> Job:
        job = self.uow.jobs.get_by_id(job_id)
        if not job:
            raise JobNotFoundError(job_id)
        return job

    def get_job_message(self, job_id: str) -> IngestionJobMessage:
        return job_to_wire(self.get_job(job_id))

    def list_jobs(
        self,
        store_name: Optional[str] = None,
        feature_set_id: Optional[str] = None,
        status: Optional[JobStatus] = None,
        active_only: bool = False,
    ) -> list[Job]:
        statuses: Optional[set[JobStatus]] = None
        if active_only:
            statuses = set(JobStatus.active_states())
        if status is not None:
            statuses = {JobStatus(status)} if statuses is None else statuses & {JobStatus(status)}

        return self.uow.jobs.list_filtered(
            store_name=store_name,
            feature_set_id=feature_set_id,
            statuses=statuses,
        )

    def list_job_messages(self, **filters) -> list[IngestionJobMessage]:
        # one broken job fails the whole listing
        return [job_to_wire(j) for j in self.list_jobs(**filters)]

    def list_active_jobs(self, include_transitional: bool = True) -> list[Job]:
        jobs = self.uow.jobs.list_active()
        if include_transitional:
            return jobs
        # ABORTING / SUSPENDING jobs are already on their way to another state
        return [j for j in jobs if not j.status.is_transitional()]


def _make_job_id(source: Source, store: Store) -> str:
    ts = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{source.type.value.lower()}-to-{store.name}-{ts}-{uuid.uuid4().hex[:8]}"


def _to_metrics(m: MetricInput) -> Metrics:
    if isinstance(m, Metrics):
        return m
    if isinstance(m, Mapping):
        missing = {"name", "value"} - m.keys()
        if missing:
            raise ValueError(f"Metric is missing {', '.join(sorted(missing))}: {dict(m)!r}")
        return Metrics(name=m["name"], value=m["value"])
    name, value = m
    return Metrics(name=name, value=value)
