"""
Pydantic v2 models for the sidecar schema document.

A sidecar document carries a captured Schema and the footer Metadata as JSON so a
CSV produced by one process can be written back to Parquet by another with the same
column types, annotations and metadata.

Document layout:
{
  "version": 1,
  "columns": [
    {"name": "day", "storage": "int64", "semantic": "date", "physical": "int32", "nullable": true},
    {"name": "ts", "storage": "int64", "semantic": "timestamp", "unit": "ns", "timezone": null}
  ],
  "metadata": [["pandas", "{...}"]]
}

Notes
- Validators normalize enum-like strings to lower_snake and enforce combination rules
  (annotations on int64 only, timestamp unit required and known).
- Validation failures surface as remblob.core.errors.SchemaDocumentError.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import SchemaDocumentError
from .grammar import TIME_UNITS, StorageType, storage_type_from_value
from .schema import ColumnDescriptor, Date, Schema, Semantic, Timestamp
from .typing import Metadata

__all__ = [
    "DOCUMENT_VERSION",
    "ColumnModel",
    "SchemaDocument",
    "dumps_document",
    "loads_document",
]

DOCUMENT_VERSION = 1


class ColumnModel(BaseModel):
    """
    One column entry of the sidecar document.

    Attributes:
        name (str): Column name.
        storage (str): StorageType value ("boolean", "int64", "float64", "byte_string").
        semantic (Literal["date", "timestamp"] | None): Optional annotation.
        unit (str | None): Timestamp unit; required when semantic == "timestamp".
        timezone (str | None): Timestamp timezone name.
        physical (str | None): Arrow alias of the on-disk type.
        nullable (bool): Whether nulls may be written.

    Raises:
        pydantic.ValidationError: On unknown storage types or invalid combinations.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    storage: str
    semantic: Literal["date", "timestamp"] | None = None
    unit: str | None = None
    timezone: str | None = None
    physical: str | None = None
    nullable: bool = True

    @field_validator("storage", mode="before")
    @classmethod
    def _normalize_storage(cls, v: object) -> str:
        if not isinstance(v, str):
            raise ValueError("storage must be a string")
        return storage_type_from_value(v).value

    @model_validator(mode="after")
    def _check_semantic(self) -> ColumnModel:
        if self.semantic is not None and self.storage != StorageType.INT64.value:
            raise ValueError(f"column {self.name!r}: {self.semantic} requires int64 storage")
        if self.semantic == "timestamp" and self.unit not in TIME_UNITS:
            raise ValueError(f"column {self.name!r}: timestamp unit must be one of {TIME_UNITS}")
        if self.semantic != "timestamp" and (self.unit is not None or self.timezone is not None):
            raise ValueError(f"column {self.name!r}: unit/timezone apply to timestamps only")
        return self

    @classmethod
    def from_descriptor(cls, column: ColumnDescriptor) -> ColumnModel:
        semantic = column.semantic
        if isinstance(semantic, Timestamp):
            return cls(
                name=column.name,
                storage=column.storage.value,
                semantic="timestamp",
                unit=semantic.unit,
                timezone=semantic.timezone,
                physical=column.physical,
                nullable=column.nullable,
            )
        return cls(
            name=column.name,
            storage=column.storage.value,
            semantic="date" if isinstance(semantic, Date) else None,
            physical=column.physical,
            nullable=column.nullable,
        )

    def to_descriptor(self) -> ColumnDescriptor:
        semantic: Semantic | None = None
        if self.semantic == "date":
            semantic = Date()
        elif self.semantic == "timestamp":
            semantic = Timestamp(unit=self.unit or "ns", timezone=self.timezone)
        return ColumnDescriptor(
            name=self.name,
            storage=StorageType(self.storage),
            semantic=semantic,
            physical=self.physical,
            nullable=self.nullable,
        )


class SchemaDocument(BaseModel):
    """
    Captured Schema plus footer Metadata, serialized as JSON.

    Attributes:
        version (int): Document layout version (currently 1).
        columns (list[ColumnModel]): Columns in on-disk order.
        metadata (list[tuple[str, str]]): Footer key/value pairs in file order.
    """

    model_config = ConfigDict(extra="forbid")

    version: int = DOCUMENT_VERSION
    columns: list[ColumnModel]
    metadata: list[tuple[str, str]] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _check_version(cls, v: int) -> int:
        if v != DOCUMENT_VERSION:
            raise ValueError(f"unsupported schema document version {v}; expected {DOCUMENT_VERSION}")
        return v

    @classmethod
    def from_schema(cls, schema: Schema, metadata: Metadata) -> SchemaDocument:
        return cls(
            columns=[ColumnModel.from_descriptor(c) for c in schema],
            metadata=[(k, v) for k, v in metadata],
        )

    def to_schema(self) -> Schema:
        return Schema(tuple(c.to_descriptor() for c in self.columns))

    def to_metadata(self) -> Metadata:
        return tuple((k, v) for k, v in self.metadata)


def dumps_document(schema: Schema, metadata: Metadata) -> str:
    """Serialize a captured Schema and Metadata to an indented JSON document."""
    return SchemaDocument.from_schema(schema, metadata).model_dump_json(indent=2)


def loads_document(text: str | bytes) -> tuple[Schema, Metadata]:
    """
    Parse a sidecar JSON document.

    Returns:
        tuple[Schema, Metadata]: The captured schema (``inferred=False``) and metadata.

    Raises:
        SchemaDocumentError: If the JSON is malformed or fails validation.
    """
    try:
        doc = SchemaDocument.model_validate_json(text)
    except ValidationError as exc:
        raise SchemaDocumentError(f"invalid schema document: {exc}") from exc
    return doc.to_schema(), doc.to_metadata()
