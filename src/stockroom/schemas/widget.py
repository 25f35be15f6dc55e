"""Pydantic schemas for widgets.

Learn: Pydantic v2 models validate request/response data. Separate
input (NewWidget) from output (Widget) for clean APIs. The wire format
uses camelCase (`dateUpdated`); Python code uses snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NewWidget(BaseModel):
    """Client input for POST and PUT /widgets.

    `id` is absent for creation and present for updates.
    """

    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int


class Widget(BaseModel):
    """A persisted widget as returned to clients and carried in events."""

    id: int
    name: str
    quantity: int
    date_updated: int

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
