from typing import Protocol
from ingestion_core.domain.contracts.repositories import (
    SourceRepo, StoreRepo, FeatureSetRepo, JobRepo
)

class UoW(Protocol):
    sources: SourceRepo
    stores: StoreRepo
    feature_sets: FeatureSetRepo
    jobs: JobRepo

    def commit(self) -> None: ...
    def rollback(self) -> None: ...
