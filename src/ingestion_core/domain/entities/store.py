from dataclasses import dataclass, field

from pydantic import BaseModel, ValidationError

from ingestion_core.domain.enums import StoreType
from ingestion_core.domain.errors import ConversionError
from ingestion_core.domain.messages import (
    BigQueryConfig,
    CassandraConfig,
    RedisClusterConfig,
    RedisConfig,
    StoreMessage,
    SubscriptionMessage,
)

# store type -> (config model, StoreMessage field)
_CONFIGS: dict[StoreType, tuple[type[BaseModel], str]] = {
    StoreType.REDIS: (RedisConfig, "redis_config"),
    StoreType.REDIS_CLUSTER: (RedisClusterConfig, "redis_cluster_config"),
    StoreType.BIGQUERY: (BigQueryConfig, "bigquery_config"),
    StoreType.CASSANDRA: (CassandraConfig, "cassandra_config"),
}


@dataclass(frozen=True)
class Store:
    name: str
    type: StoreType
    config: str
    # "project:feature_set_name" entries, "*" allowed as a wildcard
    subscriptions: tuple[str, ...] = field(default_factory=tuple)

    def to_wire(self) -> StoreMessage:
        if self.type not in _CONFIGS:
            raise ConversionError("store", self.name, f"unsupported store type {self.type!r}")
        model, attr = _CONFIGS[self.type]

        try:
            cfg = model.model_validate_json(self.config)
        except ValidationError as e:
            raise ConversionError("store", self.name, str(e)) from e

        return StoreMessage(
            name=self.name,
            type=self.type,
            subscriptions=[self._parse_subscription(s) for s in self.subscriptions],
            **{attr: cfg},
        )

    def _parse_subscription(self, raw: str) -> SubscriptionMessage:
        project, sep, name = raw.partition(":")
        if not sep or not project or not name:
            raise ConversionError("store", self.name, f"malformed subscription {raw!r}")
        return SubscriptionMessage(project=project, name=name)
