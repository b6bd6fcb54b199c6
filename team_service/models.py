from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel
from sqlalchemy import DateTime, Text
from sqlmodel import Column, Field, SQLModel


def get_utc_now():
    """Helper function to get current UTC time with timezone"""
    return datetime.now(timezone.utc)


class Task(SQLModel, table=True):
    """Database model"""

    __tablename__ = "tasks"

    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(max_length=255, nullable=False)
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    status: str = Field(default="pending", max_length=50)
    team_name: str = Field(max_length=100, index=True)
    service_name: str = Field(max_length=100)
    created_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


class Metric(SQLModel, table=True):
    """Append-only measurement"""

    __tablename__ = "metrics"

    id: int | None = Field(default=None, primary_key=True)
    metric_name: str = Field(max_length=100, index=True)
    metric_value: float
    team_name: str = Field(max_length=100, index=True)
    service_name: str = Field(max_length=100)
    recorded_at: datetime = Field(
        default_factory=get_utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )


# Request bodies only check presence in the services, so every field is optional.


class TaskCreate(SQLModel):
    """Schema for creating a task"""

    title: str | None = None
    description: str | None = None
    status: str | None = None


class TaskUpdate(SQLModel):
    """Schema for updating a task - all fields optional"""

    title: str | None = None
    description: str | None = None
    status: str | None = None


class MetricCreate(SQLModel):
    metric_name: str | None = None
    metric_value: float | None = None


class CacheEntryCreate(BaseModel):
    key: str | None = None
    value: Any = None
    ttl: int | None = None


class TaskResponse(SQLModel):
    """Schema for task responses"""

    id: int
    title: str
    description: str | None = None
    status: str
    team_name: str
    service_name: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MetricResponse(SQLModel):
    id: int
    metric_name: str
    metric_value: float
    team_name: str
    service_name: str
    recorded_at: datetime

    model_config = {"from_attributes": True}
