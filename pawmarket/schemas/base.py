"""
Shared base model for payloads exchanged with the marketplace API.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """
    Base for server-defined entities.

    The server speaks camelCase JSON; models use snake_case attributes and
    keep unknown fields so nothing is lost when a record is sent back.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_api(self) -> dict:
        """Serialize for a request body (camelCase, unset optionals dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def id_field(*args, **kwargs):
    """Identifier field accepting both Mongo-style ``_id`` and plain ``id``."""
    return Field(
        *args,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
        **kwargs,
    )
