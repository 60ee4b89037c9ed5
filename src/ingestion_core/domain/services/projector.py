from ingestion_core.domain.entities.job import Job
from ingestion_core.domain.errors import ReferenceIntegrityError
from ingestion_core.domain.messages import IngestionJobMessage


def job_to_wire(job: Job) -> IngestionJobMessage:
    """
    Projects a fully loaded job into its wire message.

    Raises ReferenceIntegrityError when the source or store is missing and
    lets ConversionError from any embedded entity propagate: a job message
    is either complete or not produced at all.
    """
    if job.source is None:
        raise ReferenceIntegrityError(f"Job {job.id} has no source")
    if job.store is None:
        raise ReferenceIntegrityError(f"Job {job.id} has no store")

    feature_sets = [fs.to_wire() for fs in job.feature_sets]

    return IngestionJobMessage(
        id=job.id,
        external_id=job.external_id,
        status=job.status.to_wire(),
        feature_sets=feature_sets,
        source=job.source.to_wire(),
        store=job.store.to_wire(),
    )
