from sqlalchemy import create_engine, MetaData
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from ingestion_core.core.settings import settings

NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

class Base(DeclarativeBase):
    # stable constraint names for alembic autogenerate
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

def make_engine(dsn: str):
    if dsn.startswith("sqlite") and ":memory:" in dsn:
        # one shared connection, otherwise every session sees an empty database
        return create_engine(
            dsn,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(dsn, pool_pre_ping=True)

def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL is not set")

engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)
