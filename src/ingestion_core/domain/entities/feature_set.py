from dataclasses import dataclass

from pydantic import ValidationError

from ingestion_core.domain.errors import ConversionError
from ingestion_core.domain.messages import FeatureSetMessage, FeatureSetSpecMessage


def feature_set_ref(project: str, name: str) -> str:
    return f"{project}/{name}"


@dataclass(frozen=True)
class FeatureSet:
    """
    Feature set as registered in the feature set registry.
    `spec` is the stored JSON document (entities, features, max age).
    """
    id: str
    project: str
    name: str
    spec: str

    def to_wire(self) -> FeatureSetMessage:
        try:
            spec = FeatureSetSpecMessage.model_validate_json(self.spec)
        except ValidationError as e:
            raise ConversionError("feature set", self.id, str(e)) from e

        return FeatureSetMessage(id=self.id, project=self.project, name=self.name, spec=spec)
