"""Strict pydantic base model shared by configuration objects."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictBaseModel(BaseModel):
    """
    A strict, immutable pydantic base model.

    Field names are exposed in camel case when serialized, so `capacity` stays
    `capacity` but a field such as `read_chunk` is dumped as `readChunk`.
    Unknown fields are rejected and values are not coerced.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_default=True,
        extra="forbid",
        frozen=True,
        strict=True,
    )
