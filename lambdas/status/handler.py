import logging
import os
from typing import Any, Dict

import boto3

from services.common.store import DynamoJobStore
from services.workers.graph.core.errors import JobNotFoundError

logger = logging.getLogger(__name__)
if not logger.handlers:
    logging.basicConfig(level=logging.INFO)
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

TABLE_NAME = os.environ["JOBS_TABLE"]
ddb = boto3.resource("dynamodb")


def _store() -> DynamoJobStore:
    return DynamoJobStore(ddb.Table(TABLE_NAME))


def handler(event: Dict[str, Any], _context):
    job_id = event.get("jobId")
    if not job_id:
        raise ValueError("jobId is required")

    record = _store().get(job_id)
    if record is None:
        logger.info("Job not found", extra={"job_id": job_id})
        raise JobNotFoundError(job_id)
    return record
