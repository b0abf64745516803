"""Shared schema base — camelCase aliases and case-insensitive enum parsing."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True,
    )


def upper_enum_input(value):
    """Accept enum values in any letter case."""
    if isinstance(value, str):
        return value.strip().upper()
    return value
