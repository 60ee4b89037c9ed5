from enum import IntEnum, StrEnum
from typing import NamedTuple


class Runner(StrEnum):
    DIRECT = "DirectRunner"
    DATAFLOW = "DataflowRunner"

    @classmethod
    def from_name(cls, name: str) -> "Runner":
        """Accepts either the member name (``DATAFLOW``) or the runner name (``DataflowRunner``)."""
        for runner in cls:
            if name in (runner.name, runner.value):
                return runner
        raise ValueError(f"Unknown runner: {name!r}")


class SourceType(StrEnum):
    KAFKA = "KAFKA"


class StoreType(StrEnum):
    REDIS = "REDIS"
    REDIS_CLUSTER = "REDIS_CLUSTER"
    BIGQUERY = "BIGQUERY"
    CASSANDRA = "CASSANDRA"


class ValueType(StrEnum):
    BYTES = "BYTES"
    STRING = "STRING"
    INT32 = "INT32"
    INT64 = "INT64"
    DOUBLE = "DOUBLE"
    FLOAT = "FLOAT"
    BOOL = "BOOL"
    BYTES_LIST = "BYTES_LIST"
    STRING_LIST = "STRING_LIST"
    INT32_LIST = "INT32_LIST"
    INT64_LIST = "INT64_LIST"
    DOUBLE_LIST = "DOUBLE_LIST"
    FLOAT_LIST = "FLOAT_LIST"
    BOOL_LIST = "BOOL_LIST"


class IngestionJobStatus(IntEnum):
    """Status vocabulary of the wire message."""
    UNKNOWN = 0
    PENDING = 1
    RUNNING = 2
    COMPLETED = 3
    ABORTING = 4
    ABORTED = 5
    ERROR = 6
    SUSPENDING = 7
    SUSPENDED = 8


class JobStatus(StrEnum):
    UNKNOWN = "UNKNOWN"
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTING = "ABORTING"
    ABORTED = "ABORTED"
    ERROR = "ERROR"
    SUSPENDING = "SUSPENDING"
    SUSPENDED = "SUSPENDED"

    def is_terminal(self) -> bool:
        return _STATUS_TABLE[self].terminal

    def is_transitional(self) -> bool:
        return _STATUS_TABLE[self].transitional

    def to_wire(self) -> IngestionJobStatus:
        return _STATUS_TABLE[self].wire

    @classmethod
    def from_wire(cls, value: int) -> "JobStatus":
        try:
            return _WIRE_TO_STATUS[IngestionJobStatus(value)]
        except (KeyError, ValueError):
            raise ValueError(f"Unknown wire job status: {value!r}") from None

    @classmethod
    def terminal_states(cls) -> frozenset["JobStatus"]:
        return frozenset(s for s, row in _STATUS_TABLE.items() if row.terminal)

    @classmethod
    def active_states(cls) -> frozenset["JobStatus"]:
        return frozenset(s for s, row in _STATUS_TABLE.items() if not row.terminal)


class _StatusRow(NamedTuple):
    terminal: bool
    transitional: bool
    wire: IngestionJobStatus


# The only place terminal / transitional classification is decided.
_STATUS_TABLE: dict[JobStatus, _StatusRow] = {
    JobStatus.UNKNOWN: _StatusRow(False, False, IngestionJobStatus.UNKNOWN),
    JobStatus.PENDING: _StatusRow(False, False, IngestionJobStatus.PENDING),
    JobStatus.RUNNING: _StatusRow(False, False, IngestionJobStatus.RUNNING),
    JobStatus.COMPLETED: _StatusRow(True, False, IngestionJobStatus.COMPLETED),
    JobStatus.ABORTING: _StatusRow(False, True, IngestionJobStatus.ABORTING),
    JobStatus.ABORTED: _StatusRow(True, False, IngestionJobStatus.ABORTED),
    JobStatus.ERROR: _StatusRow(True, False, IngestionJobStatus.ERROR),
    JobStatus.SUSPENDING: _StatusRow(False, True, IngestionJobStatus.SUSPENDING),
    JobStatus.SUSPENDED: _StatusRow(False, False, IngestionJobStatus.SUSPENDED),
}

_WIRE_TO_STATUS: dict[IngestionJobStatus, JobStatus] = {
    row.wire: status for status, row in _STATUS_TABLE.items()
}

if set(_STATUS_TABLE) != set(JobStatus) or len(_WIRE_TO_STATUS) != len(JobStatus):
    raise RuntimeError("job status table must classify every status exactly once")
