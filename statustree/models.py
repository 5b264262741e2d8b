from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer


class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class HealthResponse(BaseModel):
    ok: bool


class ReadyResponse(BaseModel):
    ready: bool
    reason: str | None = None


class PathRecordIn(BaseModel):
    """Any record with a path; extra fields ride along to the leaf untouched."""

    model_config = ConfigDict(extra="allow")

    path: str = Field(..., description="Repository relative path like 'notes/daily/today.md'")


class FileStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(..., description="Repository relative path of the changed file")
    from_path: str | None = Field(default=None, alias="from", description="Previous path for renames")
    index: str = Field(default=" ", description="Index status letter, e.g. 'M', 'A', 'D', 'R'")
    working_dir: str = Field(default=" ", description="Working tree status letter")


class TreeRequest(BaseModel):
    records: list[PathRecordIn] = Field(default_factory=list)


class StatusPayload(BaseModel):
    staged: list[FileStatus] = Field(default_factory=list)
    changed: list[FileStatus] = Field(default_factory=list)


class TreeNodeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    path: str
    vault_path: str = Field(..., alias="vaultPath")
    data: dict[str, Any] | None = None
    children: list["TreeNodeModel"] | None = None

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler):
        # leaves carry data, directories carry children, never both
        out = handler(self)
        for key in ("data", "children"):
            if out.get(key) is None:
                out.pop(key, None)
        return out


class TreeStats(BaseModel):
    record_count: int
    directory_count: int
    root_counts: dict[str, int] = Field(default_factory=dict)


class TreeResponse(BaseModel):
    tree: list[TreeNodeModel] = Field(default_factory=list)
    stats: TreeStats


class StatusTreeResponse(BaseModel):
    staged: TreeResponse
    changed: TreeResponse
