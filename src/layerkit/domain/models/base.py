"""Base model shared by all Layer API resources"""

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


class Resource(BaseModel):
    """Base class for resources exchanged with the Layer API.

    Unknown fields sent by the service are kept so a decoded resource can be
    sent back unchanged. A JSON null in an optional field decodes to the
    field's default (empty map, empty list, empty string, ...).
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _null_as_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None and info.field_name is not None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value

    def to_payload(self) -> dict:
        """Serialize to a JSON-ready dict, dropping unset optional fields"""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)
