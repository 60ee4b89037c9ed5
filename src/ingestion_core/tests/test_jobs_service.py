import pytest

from ingestion_core.domain.entities.metrics import Metrics
from ingestion_core.domain.enums import IngestionJobStatus, JobStatus, Runner
from ingestion_core.domain.errors import (
    ConversionError,
    InvalidStatusError,
    JobNotFoundError,
    ReferenceIntegrityError,
)
from ingestion_core.infra.models import FeatureSetORM
from ingestion_core.services.jobs_service import JobsService


@pytest.fixture
def svc(uow):
    return JobsService(uow)


@pytest.fixture
def running_job(svc, seed_references):
    source, store, fs = seed_references
    return svc.register_job(
        runner=Runner.DATAFLOW,
        source_id=source.id,
        store_name=store.name,
        feature_set_ids=[f.id for f in fs],
        job_id="job-1",
        status=JobStatus.RUNNING,
    )


def test_register_job_generates_id(svc, seed_references):
    source, store, fs = seed_references
    job = svc.register_job(Runner.DIRECT, source.id, store.name, [fs[0].id])

    assert job.id.startswith("kafka-to-online-")
    assert job.status is JobStatus.PENDING
    assert job.external_id == ""
    assert svc.get_job(job.id).feature_sets == (fs[0],)


@pytest.mark.parametrize("kwargs", [
    {"source_id": "nope"},
    {"store_name": "nope"},
    {"feature_set_ids": ["driver/nope"]},
])
def test_register_job_with_missing_reference(svc, seed_references, kwargs):
    source, store, fs = seed_references
    args = {"source_id": source.id, "store_name": store.name, "feature_set_ids": [fs[0].id], **kwargs}

    with pytest.raises(ReferenceIntegrityError):
        svc.register_job(Runner.DIRECT, job_id="job-1", **args)
    with pytest.raises(JobNotFoundError):
        svc.get_job("job-1")


def test_status_lifecycle(svc, running_job):
    svc.update_status("job-1", JobStatus.ABORTING)
    job = svc.update_status("job-1", JobStatus.ABORTED)

    assert job.has_terminated()
    assert svc.get_job("job-1").status is JobStatus.ABORTED


def test_terminal_status_is_final(svc, running_job):
    svc.update_status("job-1", JobStatus.COMPLETED)

    # re-applying the same terminal status is allowed
    assert svc.update_status("job-1", JobStatus.COMPLETED).status is JobStatus.COMPLETED

    with pytest.raises(InvalidStatusError):
        svc.update_status("job-1", JobStatus.RUNNING)
    assert svc.get_job("job-1").status is JobStatus.COMPLETED


def test_update_status_of_unknown_job(svc, seed_references):
    with pytest.raises(JobNotFoundError):
        svc.update_status("missing", JobStatus.RUNNING)


def test_metrics_reports_replace_each_other(svc, running_job):
    svc.update_metrics("job-1", [{"name": "rows_processed", "value": 100}])
    assert list(svc.get_job("job-1").metrics) == [Metrics("rows_processed", 100)]

    svc.update_metrics("job-1", [("rows_processed", 250)])
    assert list(svc.get_job("job-1").metrics) == [Metrics("rows_processed", 250)]


def test_invalid_metrics_report_keeps_previous_snapshot(svc, running_job):
    svc.update_metrics("job-1", [("rows_processed", 100)])

    with pytest.raises(ValueError):
        svc.update_metrics("job-1", [("rows_processed", 150), ("", 1)])

    assert list(svc.get_job("job-1").metrics) == [Metrics("rows_processed", 100)]


def test_metrics_survive_status_changes(svc, running_job):
    svc.update_metrics("job-1", [("rows_processed", 100)])
    svc.update_status("job-1", JobStatus.COMPLETED)

    assert list(svc.get_job("job-1").metrics) == [Metrics("rows_processed", 100)]


def test_set_external_id(svc, running_job):
    svc.set_external_id("job-1", "2020-05-01_12_00_00-123")
    assert svc.get_job_message("job-1").external_id == "2020-05-01_12_00_00-123"


def test_get_job_message(svc, running_job, seed_references):
    _, _, fs = seed_references
    msg = svc.get_job_message("job-1")

    assert msg.status is IngestionJobStatus.RUNNING
    assert [m.id for m in msg.feature_sets] == [f.id for f in fs]


def test_listing(svc, running_job, seed_references):
    source, store, fs = seed_references
    svc.register_job(Runner.DIRECT, source.id, store.name, [fs[1].id], job_id="job-2")
    svc.update_status("job-2", JobStatus.ERROR)

    assert {j.id for j in svc.list_active_jobs()} == {"job-1"}
    assert [m.id for m in svc.list_job_messages(status=JobStatus.ERROR)] == ["job-2"]
    assert svc.list_job_messages(status=JobStatus.ERROR, active_only=True) == []
    assert {m.id for m in svc.list_job_messages(feature_set_id=fs[1].id)} == {"job-1", "job-2"}


def test_listing_fails_on_broken_feature_set(svc, running_job, db_session, seed_references):
    _, _, fs = seed_references
    db_session.get(FeatureSetORM, fs[1].id).spec = "{broken"
    db_session.commit()

    with pytest.raises(ConversionError):
        svc.list_job_messages()
    with pytest.raises(ConversionError):
        svc.get_job_message("job-1")


def test_delete_job(svc, running_job):
    with pytest.raises(InvalidStatusError):
        svc.delete_job("job-1")

    svc.update_status("job-1", JobStatus.COMPLETED)
    svc.delete_job("job-1")

    with pytest.raises(JobNotFoundError):
        svc.get_job("job-1")


def test_status_reply_is_projected_before_commit(svc, running_job, db_session, seed_references):
    _, _, fs = seed_references
    db_session.get(FeatureSetORM, fs[0].id).spec = "not json"
    db_session.commit()

    with pytest.raises(ConversionError):
        svc.update_status_message("job-1", JobStatus.COMPLETED)

    assert svc.get_job("job-1").status is JobStatus.RUNNING


def test_status_reply_message(svc, running_job):
    msg = svc.update_status_message("job-1", JobStatus.ABORTING)
    assert msg.status is IngestionJobStatus.ABORTING
    assert svc.get_job("job-1").status is JobStatus.ABORTING


def test_timestamps_are_loaded_and_bumped(svc, running_job):
    assert running_job.created_at is not None
    assert running_job.updated_at is not None

    job = svc.update_metrics("job-1", [("rows_processed", 100)])

    assert job.updated_at is not None
    assert job.updated_at >= running_job.updated_at
    assert svc.get_job("job-1").updated_at == job.updated_at


def test_active_jobs_without_transitional(svc, running_job, seed_references):
    source, store, fs = seed_references
    svc.register_job(Runner.DIRECT, source.id, store.name, [fs[1].id], job_id="job-2",
                     status=JobStatus.SUSPENDING)

    assert {j.id for j in svc.list_active_jobs()} == {"job-1", "job-2"}
    assert [j.id for j in svc.list_active_jobs(include_transitional=False)] == ["job-1"]


@pytest.mark.parametrize("report", [{"name": "rows_processed"}, {"value": 1}])
def test_metric_mapping_without_name_or_value(svc, running_job, report):
    with pytest.raises(ValueError, match="missing"):
        svc.update_metrics("job-1", [report])
