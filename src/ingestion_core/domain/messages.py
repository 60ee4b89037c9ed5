"""
Wire messages sent to orchestration / monitoring clients.

Internal bookkeeping (creation / modification timestamps, database keys of
metrics rows) never appears here.
"""
from typing import Optional

from pydantic import BaseModel, Field

from ingestion_core.domain.enums import IngestionJobStatus, SourceType, StoreType, ValueType


# Source
class KafkaSourceConfig(BaseModel):
    bootstrap_servers: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)


class SourceMessage(BaseModel):
    type: SourceType
    kafka_source_config: Optional[KafkaSourceConfig] = None


# Store
class RedisConfig(BaseModel):
    host: str
    port: int = Field(..., gt=0, lt=65536)
    initial_backoff_ms: int = 0
    max_retries: int = 0
    flush_frequency_seconds: int = 0


class RedisClusterConfig(BaseModel):
    connection_string: str
    initial_backoff_ms: int = 0
    max_retries: int = 0


class BigQueryConfig(BaseModel):
    project_id: str
    dataset_id: str


class CassandraConfig(BaseModel):
    bootstrap_hosts: str
    port: int = Field(..., gt=0, lt=65536)
    keyspace: str
    table_name: str
    replication_options: dict[str, str] = Field(default_factory=dict)
    default_ttl: int = 0


class SubscriptionMessage(BaseModel):
    project: str
    name: str


class StoreMessage(BaseModel):
    name: str
    type: StoreType
    subscriptions: list[SubscriptionMessage] = Field(default_factory=list)
    redis_config: Optional[RedisConfig] = None
    redis_cluster_config: Optional[RedisClusterConfig] = None
    bigquery_config: Optional[BigQueryConfig] = None
    cassandra_config: Optional[CassandraConfig] = None


# Feature set
class EntitySpecMessage(BaseModel):
    name: str
    value_type: ValueType


class FeatureSpecMessage(BaseModel):
    name: str
    value_type: ValueType


class FeatureSetSpecMessage(BaseModel):
    entities: list[EntitySpecMessage] = Field(default_factory=list)
    features: list[FeatureSpecMessage] = Field(default_factory=list)
    max_age_seconds: int = Field(0, ge=0)


class FeatureSetMessage(BaseModel):
    id: str
    project: str
    name: str
    spec: FeatureSetSpecMessage


# Ingestion job
class IngestionJobMessage(BaseModel):
    id: str
    external_id: str
    status: IngestionJobStatus
    feature_sets: list[FeatureSetMessage] = Field(default_factory=list)
    source: SourceMessage
    store: StoreMessage
