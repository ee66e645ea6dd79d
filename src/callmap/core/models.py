"""Data models for call-relationship datasets.

FunctionRecord is the single schema accepted from the upstream analyzer,
both as an uploaded file and inside the paging/search endpoint responses.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from .exceptions import DatasetError


def composite_key(name: str, file_path: str) -> str:
    """Identity of a function: ``name@filePath``."""
    return f"{name}@{file_path}"


class CallRef(BaseModel):
    """A callee reference inside a record's ``calls`` list."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1)
    file_path: str = Field(default="", alias="filePath")
    line: int | None = Field(default=None, ge=0)

    @property
    def key(self) -> str:
        return composite_key(self.name, self.file_path)


class FunctionRecord(BaseModel):
    """One function's identity, source location and outgoing calls."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(..., min_length=1, description="Qualified, dot-separated name")
    line: int = Field(..., gt=0)
    file_path: str = Field(..., alias="filePath")
    # ``called`` is the field name the upstream analyzer writes
    calls: list[CallRef] = Field(
        default_factory=list,
        validation_alias=AliasChoices("calls", "called"),
        serialization_alias="calls",
    )

    @property
    def key(self) -> str:
        return composite_key(self.name, self.file_path)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PageResponse(BaseModel):
    """Response of the server paging endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[FunctionRecord] = Field(default_factory=list)
    total_roots: int = Field(default=0, ge=0, alias="totalRoots")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, alias="pageSize")
    roots: list[FunctionRecord] = Field(default_factory=list)
    loaded_at: datetime | None = Field(default=None, alias="loadedAt")


class SearchResponse(BaseModel):
    """Response of the server search endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    data: list[FunctionRecord] = Field(default_factory=list)
    total_results: int = Field(default=0, ge=0, alias="totalResults")
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=10, ge=1, alias="pageSize")
    query: str = ""


_records_adapter = TypeAdapter(list[FunctionRecord])


def parse_records(payload: str | bytes) -> list[FunctionRecord]:
    """Parse a JSON document holding a list of FunctionRecord.

    Args:
        payload: Raw JSON text or bytes

    Returns:
        Validated records in document order

    Raises:
        DatasetError: If the payload is not valid JSON or not a record list
    """
    try:
        return _records_adapter.validate_json(payload)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        raise DatasetError(
            f"Invalid function dataset: {first.get('msg', str(e))}",
            context={"errors": e.error_count(), "location": first.get("loc")},
        ) from e


def records_from_python(data: list[dict]) -> list[FunctionRecord]:
    """Validate already-decoded records (e.g. the built-in default dataset)."""
    try:
        return _records_adapter.validate_python(data)
    except ValidationError as e:
        raise DatasetError(f"Invalid function dataset: {e}") from e


def dump_records(records: list[FunctionRecord]) -> list[dict]:
    return [r.to_wire() for r in records]
