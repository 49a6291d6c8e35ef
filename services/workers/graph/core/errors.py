from __future__ import annotations


class AnalysisError(Exception):
    """Base class for failures that abort an analysis job."""


class DecodeError(AnalysisError, ValueError):
    """The uploaded container could not be read as a workbook."""


class SheetNotFoundError(AnalysisError, LookupError):
    def __init__(self, sheet_name: str, available: list[str] | None = None) -> None:
        self.sheet_name = sheet_name
        self.available = list(available or [])
        super().__init__(f"Sheet '{sheet_name}' not found")


class JobNotFoundError(AnalysisError, LookupError):
    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__(f"Job '{job_id}' not found")
