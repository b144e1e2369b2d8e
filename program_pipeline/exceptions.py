"""
Exception hierarchy for the generation pipeline.

Every stage failure surfaces as a PipelineError subclass so the orchestrator
can convert it into a persisted failure message at a single boundary.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class GenerationServiceError(PipelineError):
    """The generative text service was unreachable or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedOutputError(PipelineError):
    """The generative service answered, but not with a JSON object."""

    def __init__(self, message: str, raw_response: str):
        super().__init__(message)
        self.raw_response = raw_response


class RecordNotFoundError(PipelineError):
    """No generation record exists for the given id."""

    def __init__(self, record_id: str):
        super().__init__(f"Generation record not found: {record_id}")
        self.record_id = record_id


class GenerationConflictError(PipelineError):
    """The record cannot be claimed because of its current status."""

    def __init__(self, record_id: str, status: str):
        super().__init__(
            f"Generation record {record_id} cannot be started while {status}"
        )
        self.record_id = record_id
        self.status = status


class PersistenceError(PipelineError):
    """The persistent store failed to read or write a record."""
