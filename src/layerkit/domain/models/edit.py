"""EditRequest model - one instruction of a PATCH-style update"""

from enum import Enum

from pydantic import JsonValue

from layerkit.domain.models.base import Resource


class PatchOperation(str, Enum):
    """Operations understood by the Layer patch format"""

    ADD = "add"
    REMOVE = "remove"
    SET = "set"
    DELETE = "delete"


class EditRequest(Resource):
    """A single ``{operation, property, value}`` edit instruction"""

    operation: PatchOperation
    property: str
    value: JsonValue = None

    def to_payload(self) -> dict:
        # value may legitimately be null (e.g. "set" to null), so keep it
        return self.model_dump(mode="json")

    @classmethod
    def set(cls, property: str, value: JsonValue) -> "EditRequest":
        return cls(operation=PatchOperation.SET, property=property, value=value)

    @classmethod
    def add(cls, property: str, value: JsonValue) -> "EditRequest":
        return cls(operation=PatchOperation.ADD, property=property, value=value)

    @classmethod
    def remove(cls, property: str, value: JsonValue) -> "EditRequest":
        return cls(operation=PatchOperation.REMOVE, property=property, value=value)

    @classmethod
    def delete(cls, property: str) -> "EditRequest":
        return cls(operation=PatchOperation.DELETE, property=property)
