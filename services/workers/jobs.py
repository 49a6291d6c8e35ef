"""Asynchronous analysis jobs: queue handoff, worker threads and terminal state writes."""
from __future__ import annotations

import logging
import os
import queue
import threading
import time
import uuid
from typing import Any, List, Mapping, Optional, Union

from services.common.pipeline import build_results_payload
from services.common.store import FileReader, InMemoryJobStore, JobStore, LocalFileReader
from services.workers.graph import run_pipeline
from services.workers.graph.core.constants import _ERROR_MESSAGE_LIMIT, PHASE_ORDER
from services.workers.graph.core.errors import JobNotFoundError
from services.workers.graph.core.state import PhaseCallback
from services.workers.graph.core.types import AnalysisConfiguration, AnalysisJob, JobStatus
from services.workers.graph.core.utils import _format_error

logger = logging.getLogger(__name__)

ANALYSIS_WORKERS = int(os.environ.get("ANALYSIS_WORKERS", "2"))
DATASETS_DIR = os.environ.get("DATASETS_DIR", ".")


class AnalysisOrchestrator:
    """Moves analysis jobs from ``pending`` through ``processing`` to a terminal state.

    ``run_analysis`` records the job and hands its id to a queue drained by daemon
    worker threads; ``process_job`` runs one job synchronously and is what both the
    workers and the Lambda entrypoint call. A job's record is written exactly twice
    while it runs: once to mark it ``processing`` and once with its terminal state.
    """

    def __init__(
        self,
        store: JobStore,
        files: FileReader,
        *,
        workers: Optional[int] = None,
        on_phase: Optional[PhaseCallback] = None,
    ) -> None:
        self.store = store
        self.files = files
        self.workers = max(1, workers if workers is not None else ANALYSIS_WORKERS)
        self.on_phase = on_phase
        self._queue: "queue.Queue[Optional[str]]" = queue.Queue()
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    def start(self) -> None:
        with self._lock:
            if self._threads:
                return
            for index in range(self.workers):
                thread = threading.Thread(target=self._work, name=f"analysis-worker-{index}", daemon=True)
                thread.start()
                self._threads.append(thread)
        logger.info("Started analysis workers", extra={"workers": self.workers})

    def join(self) -> None:
        """Block until every queued job has reached a terminal state."""
        self._queue.join()

    def shutdown(self) -> None:
        with self._lock:
            threads, self._threads = self._threads, []
        for _ in threads:
            self._queue.put(None)
        for thread in threads:
            thread.join()

    def run_analysis(
        self,
        dataset_ref: str,
        configuration: Union[AnalysisConfiguration, Mapping[str, Any]],
        *,
        job_id: Optional[str] = None,
    ) -> str:
        if not isinstance(configuration, AnalysisConfiguration):
            configuration = AnalysisConfiguration.from_dict(configuration)

        job = AnalysisJob(
            job_id=job_id or uuid.uuid4().hex,
            dataset_ref=dataset_ref,
            configuration=configuration.to_dict(),
        )
        self.store.create(job.to_record())
        logger.info("Queued analysis job", extra={"job_id": job.job_id, "dataset_ref": dataset_ref})

        self.start()
        self._queue.put(job.job_id)
        return job.job_id

    def get_job_result(self, job_id: str) -> AnalysisJob:
        record = self.store.get(job_id)
        if record is None:
            raise JobNotFoundError(job_id)
        return AnalysisJob.from_record(record)

    def process_job(self, job_id: str) -> AnalysisJob:
        job = self.get_job_result(job_id)
        if job.status.terminal:
            logger.info("Job already finished", extra={"job_id": job_id, "status": job.status.value})
            return job

        self.store.update(job_id, {"status": JobStatus.PROCESSING.value})
        started = time.monotonic()
        try:
            body = self.files.read(job.dataset_ref)
            result = run_pipeline(
                job_id,
                body,
                job.configuration,
                filename=job.dataset_ref,
                on_phase=self._phase_callback(job_id),
            )
            payload = build_results_payload(job_id, result)
        except Exception as exc:
            logger.exception("Analysis job failed", extra={"job_id": job_id})
            self.store.update(
                job_id,
                {"status": JobStatus.ERROR.value, "error": _format_error(exc, _ERROR_MESSAGE_LIMIT)},
            )
        else:
            duration_ms = int((time.monotonic() - started) * 1000)
            self.store.update(
                job_id,
                {"status": JobStatus.COMPLETED.value, "result": payload, "processingDurationMs": duration_ms},
            )
            logger.info("Analysis job completed", extra={"job_id": job_id, "duration_ms": duration_ms})
        return self.get_job_result(job_id)

    def _phase_callback(self, job_id: str) -> PhaseCallback:
        def _callback(phase: str, payload: Mapping[str, Any], index: int, total: int) -> None:
            logger.debug(
                "Completed phase",
                extra={"job_id": job_id, "phase": phase, "phase_index": index, "phase_count": total},
            )
            if self.on_phase is not None:
                self.on_phase(phase, payload, index, total)

        return _callback

    def _work(self) -> None:
        while True:
            job_id = self._queue.get()
            try:
                if job_id is None:
                    return
                self.process_job(job_id)
            except Exception:
                # store failures while recording state; the job stays where it was
                logger.exception("Worker could not process job", extra={"job_id": job_id})
            finally:
                self._queue.task_done()


_default: Optional[AnalysisOrchestrator] = None
_default_lock = threading.Lock()


def configure(store: JobStore, files: FileReader, *, workers: Optional[int] = None) -> AnalysisOrchestrator:
    global _default
    with _default_lock:
        if _default is not None:
            _default.shutdown()
        _default = AnalysisOrchestrator(store, files, workers=workers)
        return _default


def default_orchestrator() -> AnalysisOrchestrator:
    global _default
    with _default_lock:
        if _default is None:
            _default = AnalysisOrchestrator(InMemoryJobStore(), LocalFileReader(DATASETS_DIR))
        return _default


def run_analysis(dataset_ref: str, configuration: Union[AnalysisConfiguration, Mapping[str, Any]]) -> str:
    return default_orchestrator().run_analysis(dataset_ref, configuration)


def get_job_result(job_id: str) -> AnalysisJob:
    return default_orchestrator().get_job_result(job_id)


__all__ = [
    "ANALYSIS_WORKERS",
    "AnalysisOrchestrator",
    "PHASE_ORDER",
    "configure",
    "default_orchestrator",
    "get_job_result",
    "run_analysis",
]
