from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class IngestStatus(str, Enum):
    OK = "ok"
    PARTIAL = "partial"


class IngestFailureOut(BaseModel):
    remote_id: str
    stage: str
    error: str


class FieldIssueOut(BaseModel):
    key: str
    reason: str


class ReportIngestResult(BaseModel):
    status: IngestStatus
    station_id: str
    observed_at: Optional[datetime] = None
    observation: Dict[str, Any] = Field(default_factory=dict)
    sensors_resolved: int = Field(0, ge=0)
    readings_stored: int = Field(0, ge=0)
    failures: List[IngestFailureOut] = Field(default_factory=list)
    issues: List[FieldIssueOut] = Field(default_factory=list)


class AdapterOut(BaseModel):
    station_type: str
    endpoint: str
