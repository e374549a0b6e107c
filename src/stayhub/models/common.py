"""Shared field types and base classes for request models."""

import uuid
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def _validate_uuid(value: str) -> str:
    try:
        return str(uuid.UUID(value))
    except ValueError as e:
        raise ValueError("must be a valid UUID") from e


UuidStr = Annotated[str, AfterValidator(_validate_uuid)]


class CamelModel(BaseModel):
    """Request model accepting camelCase (wire) and snake_case (Python) names.

    Dates arrive as ISO strings, so strict mode stays off to allow
    string-to-date coercion.
    """

    model_config = ConfigDict(
        strict=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )
