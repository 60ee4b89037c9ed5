from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ingestion_core.infra.models import (
    SourceORM, StoreORM, FeatureSetORM,
    JobORM, JobFeatureSetORM, MetricsORM,
)

from ingestion_core.domain.enums import JobStatus, Runner, SourceType, StoreType
from ingestion_core.domain.entities.source import Source
from ingestion_core.domain.entities.store import Store
from ingestion_core.domain.entities.feature_set import FeatureSet
from ingestion_core.domain.entities.metrics import Metrics
from ingestion_core.domain.entities.job import Job


# mappers ORM -> Domain
def _source_dom(s: SourceORM) -> Source:
    return Source(
        id=str(s.id),
        type=SourceType(str(s.type)),
        config=str(s.config),
        is_default=bool(s.is_default),
    )


def _store_dom(s: StoreORM) -> Store:
    return Store(
        name=str(s.name),
        type=StoreType(str(s.type)),
        config=str(s.config),
        subscriptions=tuple(str(x) for x in (s.subscriptions or [])),
    )


def _feature_set_dom(f: FeatureSetORM) -> FeatureSet:
    return FeatureSet(
        id=str(f.id),
        project=str(f.project),
        name=str(f.name),
        spec=str(f.spec),
    )


def _metrics_dom(m: MetricsORM) -> Metrics:
    return Metrics(name=str(m.name), value=float(m.value), job_id=str(m.job_id))


# repos
class SqlSourceRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, source_id: str) -> Optional[Source]:
        s = self.db.get(SourceORM, source_id)
        return _source_dom(s) if s else None

    def add(self, source: Source) -> None:
        self.db.add(
            SourceORM(
                id=source.id,
                type=source.type.value,
                config=source.config,
                is_default=source.is_default,
            )
        )
        self.db.flush()


class SqlStoreRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_name(self, name: str) -> Optional[Store]:
        s = self.db.get(StoreORM, name)
        return _store_dom(s) if s else None

    def add(self, store: Store) -> None:
        self.db.add(
            StoreORM(
                name=store.name,
                type=store.type.value,
                config=store.config,
                subscriptions=list(store.subscriptions),
            )
        )
        self.db.flush()


class SqlFeatureSetRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, feature_set_id: str) -> Optional[FeatureSet]:
        f = self.db.get(FeatureSetORM, feature_set_id)
        return _feature_set_dom(f) if f else None

    def add(self, feature_set: FeatureSet) -> None:
        self.db.add(
            FeatureSetORM(
                id=feature_set.id,
                project=feature_set.project,
                name=feature_set.name,
                spec=feature_set.spec,
            )
        )
        self.db.flush()


class SqlJobRepo:
    """
    Репозиторий задач ингестии.

    Связи (source, store, feature sets, metrics) разрешаются явными запросами,
    висячая ссылка загружается как None и обрабатывается доменом.
    """

    def __init__(self, db: Session):
        self.db = db

    def _job_dom(self, j: JobORM) -> Job:
        source = self.db.get(SourceORM, j.source_id) if j.source_id else None
        store = self.db.get(StoreORM, j.store_name) if j.store_name else None

        fs_rows = (
            self.db.query(FeatureSetORM)
            .join(JobFeatureSetORM, JobFeatureSetORM.feature_sets_id == FeatureSetORM.id)
            .filter(JobFeatureSetORM.job_id == j.id)
            .order_by(JobFeatureSetORM.position.asc())
            .all()
        )
        metric_rows = (
            self.db.query(MetricsORM)
            .filter(MetricsORM.job_id == j.id)
            .order_by(MetricsORM.id.asc())
            .all()
        )

        return Job(
            id=str(j.id),
            external_id=str(j.ext_id or ""),
            runner=Runner.from_name(str(j.runner)),
            source=_source_dom(source) if source else None,
            store=_store_dom(store) if store else None,
            feature_sets=[_feature_set_dom(f) for f in fs_rows],
            # unknown values fail here instead of loading as an active job
            status=JobStatus(str(j.status)),
            metrics=tuple(_metrics_dom(m) for m in metric_rows),
            created_at=j.created_at,
            updated_at=j.updated_at,
        )

    def get_by_id(self, job_id: str) -> Optional[Job]:
        j = self.db.query(JobORM).filter(JobORM.id == job_id).first()
        return self._job_dom(j) if j else None

    def get_for_update(self, job_id: str) -> Optional[Job]:
        """
        Загружает задачу с блокировкой строки до конца транзакции.
        Сериализует конкурентные изменения статуса и метрик одной задачи.
        """
        j = (
            self.db.query(JobORM)
            .filter(JobORM.id == job_id)
            .with_for_update()
            .first()
        )
        return self._job_dom(j) if j else None

    def add(self, job: Job) -> None:
        j = JobORM(
            id=job.id,
            ext_id=job.external_id,
            runner=job.runner.value,
            source_id=job.source.id if job.source else None,
            store_name=job.store.name if job.store else None,
            status=job.status.value,
        )
        self.db.add(j)
        self.db.flush()

        self._replace_feature_sets(job)
        self._replace_metrics(job)
        self.db.flush()
        self._sync_timestamps(job, j)

    def save(self, job: Job) -> None:
        j = self.db.query(JobORM).filter(JobORM.id == job.id).first()
        if not j:
            self.add(job)
            return

        j.ext_id = job.external_id
        j.status = job.status.value
        j.source_id = job.source.id if job.source else None
        j.store_name = job.store.name if job.store else None
        # metrics live in their own table, the job row is touched on every save
        j.updated_at = datetime.now(timezone.utc)

        self._replace_feature_sets(job)
        self._replace_metrics(job)
        self.db.flush()
        self._sync_timestamps(job, j)

    def delete(self, job_id: str) -> None:
        # children first: SQLite does not enforce ON DELETE CASCADE by default
        for row in self.db.query(MetricsORM).filter(MetricsORM.job_id == job_id).all():
            self.db.delete(row)
        for link in self.db.query(JobFeatureSetORM).filter(JobFeatureSetORM.job_id == job_id).all():
            self.db.delete(link)
        self.db.flush()

        j = self.db.get(JobORM, job_id)
        if j:
            self.db.delete(j)
            self.db.flush()

    def list_filtered(
        self,
        store_name: Optional[str] = None,
        feature_set_id: Optional[str] = None,
        statuses: Optional[Iterable[JobStatus]] = None,
    ) -> list[Job]:
        q = self.db.query(JobORM)

        if store_name:
            q = q.filter(JobORM.store_name == store_name)

        if feature_set_id:
            q = q.join(JobFeatureSetORM, JobFeatureSetORM.job_id == JobORM.id).filter(
                JobFeatureSetORM.feature_sets_id == feature_set_id
            )

        if statuses is not None:
            q = q.filter(JobORM.status.in_([JobStatus(s).value for s in statuses]))

        rows = q.order_by(JobORM.created_at.desc(), JobORM.id.asc()).all()
        return [self._job_dom(j) for j in rows]

    def list_active(self) -> list[Job]:
        return self.list_filtered(statuses=JobStatus.active_states())

    def _sync_timestamps(self, job: Job, j: JobORM) -> None:
        self.db.refresh(j, ["created_at", "updated_at"])
        job.created_at = j.created_at
        job.updated_at = j.updated_at

    def _replace_feature_sets(self, job: Job) -> None:
        links = (
            self.db.query(JobFeatureSetORM)
            .filter(JobFeatureSetORM.job_id == job.id)
            .order_by(JobFeatureSetORM.position.asc())
            .all()
        )
        if [link.feature_sets_id for link in links] == [fs.id for fs in job.feature_sets]:
            return

        for link in links:
            self.db.delete(link)
        self.db.flush()

        for pos, fs in enumerate(job.feature_sets):
            self.db.add(JobFeatureSetORM(job_id=job.id, feature_sets_id=fs.id, position=pos))

    def _replace_metrics(self, job: Job) -> None:
        rows = (
            self.db.query(MetricsORM)
            .filter(MetricsORM.job_id == job.id)
            .order_by(MetricsORM.id.asc())
            .all()
        )
        if [(r.name, r.value) for r in rows] == [(m.name, float(m.value)) for m in job.metrics]:
            return

        # snapshot semantics: all previous rows go, the new set comes in the same transaction
        for row in rows:
            self.db.delete(row)
        self.db.flush()

        self.db.add_all(
            MetricsORM(job_id=job.id, name=m.name, value=float(m.value))
            for m in job.metrics
        )
