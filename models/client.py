"""
Client (tenant) and brand alias schemas.
"""

from pydantic import Field, field_validator
from typing import Optional
from datetime import datetime

from models.base import BaseSchema, ApiSchema


class ClientForMatching(BaseSchema):
    """Active client row as read for brand matching."""

    id: str = Field(..., description="Client UUID")
    company_name: str = Field(..., description="Client company name")
    industries: list[str] = Field(default_factory=list)

    @field_validator("industries", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        """Supabase returns null for unset array columns."""
        return v or []


class ClientOption(ApiSchema):
    """Client entry offered to the operator in the parse preview."""

    id: str
    name: str
    industries: list[str] = Field(default_factory=list)


class BrandAlias(BaseSchema):
    """Persisted brand text -> client mapping."""

    id: Optional[str] = None
    alias: str = Field(..., min_length=1, max_length=255)
    client_id: str
    created_at: Optional[datetime] = None


class BrandAliasResponse(ApiSchema):
    id: str
    alias: str
    client_id: str
    client_name: str = "Unknown"
    created_at: Optional[datetime] = None


class CreateClientRequest(ApiSchema):
    brand_name: str = Field(..., min_length=1, max_length=255)


class CreateClientResponse(ApiSchema):
    id: str
    company_name: str
    already_existed: bool
