"""Search match model."""

from typing import Any

from pydantic import ConfigDict, Field

from stratus.models.base import BaseModel


class SearchMatch(BaseModel):
    """A single cross-account search hit.

    `actual_node` is set when the hit was found among already loaded browse
    nodes, so the result can expand into the real resource.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, arbitrary_types_allowed=True)

    account_id: str = Field(..., description="Account identity")
    account_label: str = Field(..., description="Account display name")
    subscription_id: str = Field(..., description="Subscription identity")
    subscription_label: str = Field(..., description="Subscription display name")
    resource_name: str = Field(..., description="Resource name")
    resource_type: str = Field(..., description="Human readable resource type")
    resource_id: str = Field(..., description="Full resource ID")
    tags: dict[str, str] = Field(default_factory=dict, description="Resource tags")
    actual_node: Any = Field(default=None, exclude=True, description="Loaded browse node")
