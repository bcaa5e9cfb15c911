"""Base model for all Stratus data models."""

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict


class BaseModel(PydanticBaseModel):
    """Base class for immutable records exchanged with providers."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
