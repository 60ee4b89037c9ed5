from sqlalchemy.orm import Session

from ingestion_core.infra.repositories import (
    SqlSourceRepo, SqlStoreRepo, SqlFeatureSetRepo, SqlJobRepo
)

class SqlAlchemyUoW:
    def __init__(self, db: Session):
        self.db = db

        self.sources = SqlSourceRepo(db)
        self.stores = SqlStoreRepo(db)
        self.feature_sets = SqlFeatureSetRepo(db)
        self.jobs = SqlJobRepo(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
