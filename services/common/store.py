"""Document-store and file-access collaborators used by the analysis job layer."""
from __future__ import annotations

import copy
import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Protocol

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# attributes stored as JSON text in DynamoDB so floats never need Decimal conversion
_JSON_ATTRIBUTES = ("configuration", "result")
_MISSING_OBJECT_CODES = {"404", "NoSuchKey", "NotFound"}


def now_epoch() -> int:
    return int(time.time())


class FileReader(Protocol):
    def read(self, ref: str) -> bytes:
        ...


class JobStore(Protocol):
    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        ...

    def create(self, job: Mapping[str, Any]) -> None:
        ...

    def update(self, job_id: str, fields: Mapping[str, Any]) -> None:
        ...


class MemoryFileReader:
    def __init__(self, files: Optional[Mapping[str, bytes]] = None) -> None:
        self._files: Dict[str, bytes] = dict(files or {})

    def add(self, ref: str, body: bytes) -> None:
        self._files[ref] = bytes(body)

    def read(self, ref: str) -> bytes:
        try:
            return self._files[ref]
        except KeyError:
            raise FileNotFoundError(ref) from None


class LocalFileReader:
    def __init__(self, base_dir: os.PathLike | str) -> None:
        self.base_dir = Path(base_dir).resolve()

    def read(self, ref: str) -> bytes:
        path = (self.base_dir / ref).resolve()
        if self.base_dir not in path.parents and path != self.base_dir:
            raise FileNotFoundError(ref)
        return path.read_bytes()


class S3FileReader:
    def __init__(self, client: Any, bucket: str) -> None:
        self.client = client
        self.bucket = bucket

    def read(self, ref: str) -> bytes:
        try:
            obj = self.client.get_object(Bucket=self.bucket, Key=ref)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code")
            if code in _MISSING_OBJECT_CODES:
                raise FileNotFoundError(f"s3://{self.bucket}/{ref}") from exc
            raise OSError(f"Failed to read s3://{self.bucket}/{ref}: {code}") from exc

        body = obj["Body"]
        try:
            return body.read()
        finally:
            closer = getattr(body, "close", None)
            if callable(closer):
                closer()


class InMemoryJobStore:
    """Thread-safe job store; records are copied on every read and write."""

    def __init__(self) -> None:
        self._jobs: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job is not None else None

    def create(self, job: Mapping[str, Any]) -> None:
        record = copy.deepcopy(dict(job))
        stamp = now_epoch()
        if record.get("createdAt") is None:
            record["createdAt"] = stamp
        record["updatedAt"] = stamp
        with self._lock:
            self._jobs[str(record["jobId"])] = record

    def update(self, job_id: str, fields: Mapping[str, Any]) -> None:
        with self._lock:
            if job_id not in self._jobs:
                raise KeyError(job_id)
            self._jobs[job_id].update(copy.deepcopy(dict(fields)))
            self._jobs[job_id]["updatedAt"] = now_epoch()


def _job_key(job_id: str) -> Dict[str, str]:
    return {"pk": f"job#{job_id}", "sk": "meta"}


def _encode(fields: Mapping[str, Any]) -> Dict[str, Any]:
    encoded: Dict[str, Any] = {}
    for name, value in fields.items():
        if name in _JSON_ATTRIBUTES and value is not None:
            encoded[name] = json.dumps(value, default=str)
        else:
            encoded[name] = value
    return encoded


def _decode(item: Mapping[str, Any]) -> Dict[str, Any]:
    record = {name: value for name, value in item.items() if name not in ("pk", "sk")}
    for name in _JSON_ATTRIBUTES:
        value = record.get(name)
        if isinstance(value, str):
            record[name] = json.loads(value)
    for name in ("createdAt", "updatedAt", "processingDurationMs"):
        # DynamoDB hands numbers back as Decimal
        if record.get(name) is not None:
            record[name] = int(record[name])
    return record


class DynamoJobStore:
    def __init__(self, table: Any) -> None:
        self.table = table

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        item = self.table.get_item(Key=_job_key(job_id)).get("Item")
        return _decode(item) if item else None

    def create(self, job: Mapping[str, Any]) -> None:
        stamp = now_epoch()
        item = dict(_job_key(str(job["jobId"])))
        item.update(_encode(job))
        item["updatedAt"] = stamp
        if item.get("createdAt") is None:
            item["createdAt"] = stamp
        self.table.put_item(Item=item)

    def update(self, job_id: str, fields: Mapping[str, Any]) -> None:
        expr_names: Dict[str, str] = {}
        expr_vals: Dict[str, Any] = {":u": now_epoch()}
        set_clauses = ["updatedAt = :u"]

        for index, (name, value) in enumerate(_encode(fields).items()):
            expr_names[f"#a{index}"] = name
            expr_vals[f":v{index}"] = value
            set_clauses.append(f"#a{index} = :v{index}")

        self.table.update_item(
            Key=_job_key(job_id),
            UpdateExpression="SET " + ", ".join(set_clauses),
            ExpressionAttributeNames=expr_names,
            ExpressionAttributeValues=expr_vals,
        )
        logger.debug("Updated job record", extra={"job_id": job_id, "fields": sorted(fields)})
