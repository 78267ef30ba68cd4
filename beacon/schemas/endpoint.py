from pydantic import BaseModel, ConfigDict, HttpUrl, field_validator
from pydantic.alias_generators import to_camel
from datetime import datetime
from uuid import UUID
from typing import Literal, Optional
import re

Method = Literal["GET", "POST", "PUT", "DELETE"]


class EndpointCreate(BaseModel):
    user_id: UUID
    name: str
    url: HttpUrl
    method: Method = "GET"

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Name must not be empty')
        return v

    @field_validator('method', mode='before')
    @classmethod
    def upper_method(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @field_validator('url', mode='before')
    @classmethod
    def validate_url(cls, v):
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return v
            if not v.startswith(('http://', 'https://')):
                # Bare domains and IPs get an https:// scheme
                domain_regex = r'^(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}(?::\d+)?(?:/.*)?$'
                ip_regex = r'^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}(?::\d+)?(?:/.*)?$'

                if re.match(domain_regex, v) or re.match(ip_regex, v) or v.startswith("localhost"):
                    return f"https://{v}"
        return v


class EndpointResponse(BaseModel):
    id: UUID
    owner_id: UUID
    name: str
    url: str
    method: str
    is_active: bool
    created_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
