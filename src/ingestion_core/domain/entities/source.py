from dataclasses import dataclass

from pydantic import ValidationError

from ingestion_core.domain.enums import SourceType
from ingestion_core.domain.errors import ConversionError
from ingestion_core.domain.messages import KafkaSourceConfig, SourceMessage


@dataclass(frozen=True)
class Source:
    id: str
    type: SourceType
    config: str
    is_default: bool = False

    def to_wire(self) -> SourceMessage:
        try:
            if self.type == SourceType.KAFKA:
                return SourceMessage(
                    type=self.type,
                    kafka_source_config=KafkaSourceConfig.model_validate_json(self.config),
                )
        except ValidationError as e:
            raise ConversionError("source", self.id, str(e)) from e
        raise ConversionError("source", self.id, f"unsupported source type {self.type!r}")
