"""
Shared base for the MongoDB document models.

Documents are stored with snake_case field names and an ObjectId ``_id``
that the models expose as ``id``. Datetimes are normalised to aware UTC on
the way in, whether the driver returned them naive or tz-aware.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, GetCoreSchemaHandler, field_validator
from pydantic_core import core_schema

from shared.datetime_utils import as_utc

DocT = TypeVar("DocT", bound="MongoBaseModel")


class PyObjectId(ObjectId):
    """ObjectId accepted from BSON or its 24-char hex form, dumped as a string in JSON."""

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._validate,
            serialization=core_schema.plain_serializer_function_ser_schema(
                str, when_used="json"
            ),
        )

    @classmethod
    def _validate(cls, v: Any) -> ObjectId:
        if isinstance(v, ObjectId):
            return v
        if isinstance(v, str) and ObjectId.is_valid(v):
            return ObjectId(v)
        raise ValueError(f"Invalid ObjectId: {v!r}")


class MongoBaseModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    id: Optional[PyObjectId] = Field(default=None, alias="_id")

    @field_validator("*", mode="after")
    @classmethod
    def _datetimes_to_utc(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return as_utc(v)
        return v

    def to_mongo(self, *, include_id: bool = True) -> dict:
        """Dump to a pymongo-ready dict.

        ``_id`` is left out when unset (so MongoDB assigns one) or when
        *include_id* is False, as replace_one requires.
        """
        data = self.model_dump(by_alias=True)
        if not include_id or data.get("_id") is None:
            data.pop("_id", None)
        return data

    @classmethod
    def from_mongo(cls: type[DocT], data: Optional[dict]) -> Optional[DocT]:
        """Validate a raw document; ``None`` (no match) passes through."""
        if data is None:
            return None
        return cls.model_validate(data)
