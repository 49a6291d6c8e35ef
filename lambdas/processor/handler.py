import logging
import os

import boto3

from services.common.store import DynamoJobStore, S3FileReader
from services.workers.graph.core.types import JobStatus
from services.workers.jobs import AnalysisOrchestrator

logger = logging.getLogger(__name__)
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

s3 = boto3.client("s3")
ddb = boto3.resource("dynamodb")

TABLE_NAME = os.environ["JOBS_TABLE"]
DATASETS_BUCKET = os.environ.get("DATASETS_BUCKET")


def _orchestrator() -> AnalysisOrchestrator:
    if not DATASETS_BUCKET:
        raise RuntimeError("DATASETS_BUCKET is not configured")
    return AnalysisOrchestrator(
        DynamoJobStore(ddb.Table(TABLE_NAME)),
        S3FileReader(s3, DATASETS_BUCKET),
        workers=1,
    )


def main(event, _ctx):
    job_id = event.get("jobId")
    if not job_id:
        raise ValueError("jobId is required")

    logger.info("Processing job", extra={"job_id": job_id, "bucket": DATASETS_BUCKET})
    job = _orchestrator().process_job(job_id)

    response = {"ok": job.status is JobStatus.COMPLETED, "jobId": job_id, "status": job.status.value}
    if job.error:
        response["error"] = job.error
    return response
