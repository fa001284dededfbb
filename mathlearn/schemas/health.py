"""
Pydantic schemas for health endpoints
"""
from datetime import datetime
from typing import Optional

from mathlearn.schemas.common import CamelModel


class HealthStatus(CamelModel):
    status: str
    service: str
    timestamp: datetime
    uptime: float  # seconds
    version: str


class DatabaseCheck(CamelModel):
    status: str
    message: str
    response_time: Optional[float] = None  # ms


class DetailedHealthStatus(HealthStatus):
    environment: str
    python_version: str
    database: DatabaseCheck
    cache: str
