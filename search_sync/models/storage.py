"""
Result models for search index operations.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field


class FailedDocument(BaseModel):
    """A document that could not be built or pushed during a bulk operation"""
    model_config = ConfigDict(frozen=True)

    document_id: str
    error: str


class BulkPutResult(BaseModel):
    """Outcome of one bulk push into a repository index"""
    model_config = ConfigDict(
        json_encoders={
            datetime: lambda v: v.isoformat()
        }
    )

    index_name: str
    requested: int = 0
    indexed: int = 0
    failed: List[FailedDocument] = Field(default_factory=list)

    processing_time_ms: float = 0.0
    started_at: datetime = Field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None

    @computed_field
    @property
    def success(self) -> bool:
        """True when every requested document made it into the index"""
        return not self.failed and self.indexed == self.requested

    @property
    def throughput_per_second(self) -> float:
        """Documents indexed per second"""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.indexed * 1000) / self.processing_time_ms

    def record_failure(self, document_id: str, error: Exception) -> None:
        self.failed.append(FailedDocument(document_id=document_id, error=str(error)))

    def mark_completed(self, processing_time_ms: float) -> None:
        self.processing_time_ms = processing_time_ms
        self.completed_at = datetime.now()
