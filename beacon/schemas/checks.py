from uuid import UUID
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CheckResultResponse(BaseModel):
    id: UUID
    endpoint_id: UUID
    checked_at: datetime
    status_code: int
    response_ms: int
    is_up: bool
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class StatusResponse(BaseModel):
    status: str
    last_checked_at: Optional[datetime] = None
    response_ms: Optional[int] = None
    status_code: Optional[int] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class UptimeResponse(BaseModel):
    uptime_percent: Optional[float] = None
    total_checks: int
    up_checks: int
    window_hrs: int

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
