import math
from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Metrics:
    """One observed metric of a job. Equality ignores the owning job."""
    name: str
    value: float
    job_id: Optional[str] = field(default=None, compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Metric name must not be empty")
        if isinstance(self.value, bool) or not isinstance(self.value, (int, float)):
            raise ValueError(f"Metric {self.name!r} value must be a number")
        if not math.isfinite(self.value):
            raise ValueError(f"Metric {self.name!r} value must be finite")
