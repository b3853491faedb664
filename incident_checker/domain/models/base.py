"""Shared pydantic configuration for wire-facing domain models."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Immutable model serialised with camelCase keys.

    Instances are built with snake_case attribute names; ``model_dump(by_alias=True)``
    yields the camelCase names used in API responses.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )
