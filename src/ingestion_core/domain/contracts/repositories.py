from typing import Iterable, Optional, Protocol

from ingestion_core.domain.entities.feature_set import FeatureSet
from ingestion_core.domain.entities.job import Job
from ingestion_core.domain.entities.source import Source
from ingestion_core.domain.entities.store import Store
from ingestion_core.domain.enums import JobStatus


class SourceRepo(Protocol):
    def get_by_id(self, source_id: str) -> Optional[Source]: ...
    def add(self, source: Source) -> None: ...


class StoreRepo(Protocol):
    def get_by_name(self, name: str) -> Optional[Store]: ...
    def add(self, store: Store) -> None: ...


class FeatureSetRepo(Protocol):
    def get_by_id(self, feature_set_id: str) -> Optional[FeatureSet]: ...
    def add(self, feature_set: FeatureSet) -> None: ...


class JobRepo(Protocol):
    def get_by_id(self, job_id: str) -> Optional[Job]: ...
    def get_for_update(self, job_id: str) -> Optional[Job]: ...
    def add(self, job: Job) -> None: ...
    def save(self, job: Job) -> None: ...
    def delete(self, job_id: str) -> None: ...
    def list_filtered(
        self,
        store_name: Optional[str] = None,
        feature_set_id: Optional[str] = None,
        statuses: Optional[Iterable[JobStatus]] = None,
    ) -> list[Job]: ...
    def list_active(self) -> list[Job]: ...
