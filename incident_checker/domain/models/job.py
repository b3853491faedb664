"""Domain models for sequenced article check jobs."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class JobState(Enum):
    """Lifecycle of a submission in the job sequencer."""
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class JobResult:
    """Outcome reported when a job finishes."""

    status: str  # "success" or "failure"
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "success"


@dataclass
class Job:
    """A submitted article waiting for, or undergoing, validation."""

    job_id: str
    filename: str
    content: str
    state: JobState = JobState.QUEUED
    queue_position: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    result: Optional[JobResult] = None

    @property
    def is_finished(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)

    def mark_processing(self) -> None:
        self.state = JobState.PROCESSING
        self.queue_position = 0
        self.updated_at = datetime.now(timezone.utc)

    def mark_finished(self, result: JobResult) -> None:
        self.state = JobState.COMPLETED if result.succeeded else JobState.FAILED
        self.result = result
        self.updated_at = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert job to dictionary for API responses."""
        return {
            'job_id': self.job_id,
            'filename': self.filename,
            'status': self.state.value,
            'queue_position': self.queue_position,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'result': {
                'status': self.result.status,
                'message': self.result.message,
                'details': self.result.details,
            } if self.result else None,
        }
