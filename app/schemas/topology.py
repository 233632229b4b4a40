"""
Topology Schemas
================

Pydantic models validating home and room creation input.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _TopologyRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=100, description="Display name")
    sort_order: int = Field(..., ge=0, strict=True, description="Display position")

    @field_validator("name", mode="before")
    def _strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class CreateHomeRequest(_TopologyRequest):
    """Request model for creating a home; sort order is global"""

    home_id: Optional[str] = Field(None, min_length=1, max_length=64)


class CreateRoomRequest(_TopologyRequest):
    """Request model for creating a room; sort order is scoped to its home"""

    home_id: str = Field(..., min_length=1)
    room_id: Optional[str] = Field(None, min_length=1, max_length=64)
