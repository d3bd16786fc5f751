"""JSON serializer for pydantic records stored in the resource store."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from tableacl.infrastructure.exceptions import RecordDeserializationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class JsonSerializer(Generic[ModelT]):
    """Encodes and decodes one pydantic model type as UTF-8 JSON."""

    def __init__(self, model_cls: type[ModelT]) -> None:
        self.model_cls = model_cls

    def serialize(self, record: ModelT) -> bytes:
        """Return the JSON encoding of record."""
        return record.model_dump_json().encode("utf-8")

    def deserialize(self, content: bytes, path: str = "") -> ModelT:
        """Decode content into the model type.

        Raises:
            RecordDeserializationError: content is not valid JSON for the model.
        """
        try:
            return self.model_cls.model_validate_json(content)
        except ValidationError as e:
            raise RecordDeserializationError(path, str(e)) from e
