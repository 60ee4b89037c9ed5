from sqlalchemy import (
    Column, String, Boolean,
    DateTime, BigInteger, ForeignKey,
    Text, Float, Integer, JSON,
    Index, text as sa_text,
)
from sqlalchemy.sql import func
from sqlalchemy.dialects.postgresql import JSONB

from ingestion_core.infra.db import Base

JsonDoc = JSON().with_variant(JSONB(), "postgresql")


class SourceORM(Base):
    """
    Источник данных. Владелец записи: реестр источников, здесь только чтение.
    """
    __tablename__ = "sources"

    id = Column(String, primary_key=True)
    type = Column(String, nullable=False)
    # stored as text so a broken document can still be loaded and reported
    config = Column(Text, nullable=False, server_default=sa_text("'{}'"))
    is_default = Column(Boolean, nullable=False, server_default=sa_text("false"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class StoreORM(Base):
    __tablename__ = "stores"

    name = Column(String, primary_key=True)
    type = Column(String, nullable=False)
    config = Column(Text, nullable=False, server_default=sa_text("'{}'"))
    subscriptions = Column(JsonDoc, nullable=False, server_default=sa_text("'[]'"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class FeatureSetORM(Base):
    __tablename__ = "feature_sets"

    id = Column(String, primary_key=True)
    project = Column(String, nullable=False)
    name = Column(String, nullable=False)
    spec = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_feature_sets_project_name", "project", "name", unique=True),
    )


class JobORM(Base):
    __tablename__ = "jobs"

    id = Column(String, primary_key=True)
    ext_id = Column(String, nullable=False, server_default=sa_text("''"))
    runner = Column(String, nullable=False)
    source_id = Column(String, ForeignKey("sources.id"), nullable=True)
    store_name = Column(String, ForeignKey("stores.name"), nullable=True)
    status = Column(String(16), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_jobs_status", "status"),
        Index("idx_jobs_store_name", "store_name"),
    )


class JobFeatureSetORM(Base):
    __tablename__ = "jobs_feature_sets"

    job_id = Column(
        String,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    feature_sets_id = Column(
        String,
        ForeignKey("feature_sets.id"),
        primary_key=True,
    )
    # order of feature sets inside the job
    position = Column(Integer, nullable=False)

    __table_args__ = (
        Index("idx_jobs_feature_sets_job_id", "job_id"),
        Index("idx_jobs_feature_sets_feature_sets_id", "feature_sets_id"),
    )


class MetricsORM(Base):
    __tablename__ = "metrics"

    id = Column(BigInteger().with_variant(Integer(), "sqlite"), primary_key=True, autoincrement=True)
    job_id = Column(
        String,
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(String, nullable=False)
    value = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("idx_metrics_job", "job_id"),
    )
