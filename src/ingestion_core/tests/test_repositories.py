import pytest

from ingestion_core.domain.entities.job import Job
from ingestion_core.domain.entities.metrics import Metrics
from ingestion_core.domain.enums import JobStatus, Runner
from ingestion_core.domain.errors import ReferenceIntegrityError
from ingestion_core.infra.models import JobORM, MetricsORM, JobFeatureSetORM


def _add_job(uow, source, store, feature_sets, job_id="job-1", status=JobStatus.RUNNING):
    job = Job.create(job_id, "", Runner.DATAFLOW, source, store, feature_sets, status)
    uow.jobs.add(job)
    uow.commit()
    return job


def test_job_round_trip(uow, seed_references):
    source, store, fs = seed_references
    ordered = [fs[2], fs[0], fs[1]]
    _add_job(uow, source, store, ordered)

    loaded = uow.jobs.get_by_id("job-1")

    assert loaded.runner is Runner.DATAFLOW
    assert loaded.status is JobStatus.RUNNING
    assert loaded.source == source
    assert loaded.store == store
    assert [f.id for f in loaded.feature_sets] == [f.id for f in ordered]
    assert loaded.created_at is not None
    assert uow.jobs.get_by_id("missing") is None


def test_metrics_replacement_is_persisted(uow, db_session, seed_references):
    source, store, fs = seed_references
    job = _add_job(uow, source, store, fs)

    job.update_metrics([Metrics("rows_processed", 100), Metrics("rows_failed", 2)])
    uow.jobs.save(job)
    uow.commit()

    job = uow.jobs.get_for_update("job-1")
    job.update_metrics([Metrics("rows_processed", 250)])
    uow.jobs.save(job)
    uow.commit()

    assert list(uow.jobs.get_by_id("job-1").metrics) == [Metrics("rows_processed", 250)]
    assert db_session.query(MetricsORM).count() == 1


def test_save_updates_status_and_external_id(uow, seed_references):
    source, store, fs = seed_references
    job = _add_job(uow, source, store, fs)

    job.set_status(JobStatus.COMPLETED)
    job.set_external_id("2020-01-01_dataflow")
    uow.jobs.save(job)
    uow.commit()

    loaded = uow.jobs.get_by_id("job-1")
    assert loaded.status is JobStatus.COMPLETED
    assert loaded.external_id == "2020-01-01_dataflow"
    assert loaded.has_terminated()


def test_delete_removes_owned_rows(uow, db_session, seed_references):
    source, store, fs = seed_references
    job = _add_job(uow, source, store, fs)
    job.update_metrics([Metrics("rows_processed", 1)])
    uow.jobs.save(job)
    uow.commit()

    uow.jobs.delete("job-1")
    uow.commit()

    assert uow.jobs.get_by_id("job-1") is None
    assert db_session.query(MetricsORM).count() == 0
    assert db_session.query(JobFeatureSetORM).count() == 0
    # shared references survive
    assert uow.stores.get_by_name(store.name) == store
    assert uow.feature_sets.get_by_id(fs[0].id) == fs[0]


def test_dangling_store_loads_as_missing_reference(uow, db_session, seed_references):
    source, _, _ = seed_references
    db_session.add(JobORM(id="job-x", ext_id="", runner="DirectRunner",
                          source_id=source.id, store_name="gone", status="RUNNING"))
    db_session.commit()

    job = uow.jobs.get_by_id("job-x")

    assert job.store is None
    with pytest.raises(ReferenceIntegrityError):
        job.get_sink_name()


def test_unknown_stored_status_fails_fast(uow, db_session, seed_references):
    source, store, _ = seed_references
    db_session.add(JobORM(id="job-x", ext_id="", runner="DirectRunner",
                          source_id=source.id, store_name=store.name, status="DONE"))
    db_session.commit()

    with pytest.raises(ValueError):
        uow.jobs.get_by_id("job-x")


def test_list_filters(uow, seed_references, make_store):
    source, store, fs = seed_references
    other = make_store(name="offline")
    uow.stores.add(other)
    _add_job(uow, source, store, [fs[0]], job_id="job-1", status=JobStatus.RUNNING)
    _add_job(uow, source, store, [fs[1]], job_id="job-2", status=JobStatus.COMPLETED)
    _add_job(uow, source, other, [fs[0], fs[1]], job_id="job-3", status=JobStatus.PENDING)

    def ids(jobs):
        return {j.id for j in jobs}

    assert ids(uow.jobs.list_filtered()) == {"job-1", "job-2", "job-3"}
    assert ids(uow.jobs.list_filtered(store_name="offline")) == {"job-3"}
    assert ids(uow.jobs.list_filtered(feature_set_id=fs[0].id)) == {"job-1", "job-3"}
    assert ids(uow.jobs.list_filtered(statuses=[JobStatus.COMPLETED])) == {"job-2"}
    assert ids(uow.jobs.list_active()) == {"job-1", "job-3"}
