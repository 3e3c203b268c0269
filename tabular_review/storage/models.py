from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Project(BaseModel):
    """Top-level aggregate persisted in the project collection.

    `columns`, `documents` and `results` are opaque payloads owned by the
    extraction pipeline. Unknown keys found in stored records are kept so that
    a rewrite of the collection never drops data.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    name: str
    columns: list[Any] = Field(default_factory=list)
    documents: list[Any] = Field(default_factory=list)
    results: dict[str, Any] = Field(default_factory=dict)
    selected_model: str = Field(alias="selectedModel")
    sheet_context: str | None = Field(default=None, alias="sheetContext")
    created_at: int = Field(alias="createdAt")
    updated_at: int = Field(alias="updatedAt")

    def to_record(self) -> dict[str, Any]:
        record = self.model_dump(by_alias=True)
        if record.get("sheetContext") is None:
            record.pop("sheetContext", None)
        return record


class ProjectUpdate(BaseModel):
    """Partial update request; only explicitly supplied fields are applied.

    Identity and timestamps are not updatable, so unknown keys are rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    name: str | None = None
    columns: list[Any] | None = None
    documents: list[Any] | None = None
    results: dict[str, Any] | None = None
    selected_model: str | None = Field(default=None, alias="selectedModel")
    sheet_context: str | None = Field(default=None, alias="sheetContext")

    def changes(self) -> dict[str, Any]:
        supplied = self.model_dump(exclude_unset=True)
        # sheet_context is the only nullable field; None there means "clear it".
        return {k: v for k, v in supplied.items() if v is not None or k == "sheet_context"}
