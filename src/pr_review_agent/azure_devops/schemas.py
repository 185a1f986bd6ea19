from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

PULL_REQUEST_CREATED = "git.pullrequest.created"


class ChangeType(str, Enum):
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    RENAME = "rename"

    @classmethod
    def from_azure(cls, value: str | None) -> "ChangeType":
        """Azure отдаёт флаги строкой, например "edit, rename"."""
        flags = {part.strip().lower() for part in (value or "").split(",")}
        if "delete" in flags:
            return cls.DELETE
        if "rename" in flags:
            return cls.RENAME
        if "add" in flags:
            return cls.ADD
        return cls.EDIT


class PullRequestRef(BaseModel):
    """PR, полученный из Azure DevOps. Не меняется в течение одного запуска."""

    model_config = ConfigDict(frozen=True)

    pull_request_id: int = Field(gt=0)
    repository_id: str = Field(min_length=1)
    project_id: str = ""
    title: str = ""
    description: str | None = None
    source_branch: str = ""
    target_branch: str = ""

    @field_validator("source_branch", "target_branch")
    @classmethod
    def strip_ref_prefix(cls, value: str) -> str:
        return value.removeprefix("refs/heads/")


class FileChange(BaseModel):
    """Изменение одного файла в последней итерации PR."""

    path: str
    change_type: ChangeType
    content: str | None = None
    original_path: str | None = None
    language: str | None = None
    is_code: bool = False
    error: str | None = None

    @field_validator("content")
    @classmethod
    def no_content_for_deleted(cls, value: str | None, info) -> str | None:
        if info.data.get("change_type") == ChangeType.DELETE:
            return None
        return value


COMMENT_TYPES = {0: "unknown", 1: "text", 2: "codeChange", 3: "system"}


class Comment(BaseModel):
    id: int = 0
    author: str = "Unknown"
    content: str = ""
    published_date: datetime | None = None
    last_updated_date: datetime | None = None
    comment_type: str = "unknown"
    is_deleted: bool = False

    @field_validator("comment_type", mode="before")
    @classmethod
    def normalize_type(cls, value):
        if isinstance(value, int):
            return COMMENT_TYPES.get(value, "unknown")
        return value or "unknown"

    @property
    def is_human_text(self) -> bool:
        return self.comment_type == "text" and not self.is_deleted


class CommentThread(BaseModel):
    id: int = 0
    status: str | None = None
    file_path: str | None = None
    line: int | None = None
    comments: list[Comment] = []


# Тело вебхука Azure DevOps (service hook "Pull request created")


class ProjectRef(BaseModel):
    id: str = Field(min_length=1)


class RepositoryRef(BaseModel):
    id: str = Field(min_length=1)
    project: ProjectRef


class PullRequestResource(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pull_request_id: int = Field(alias="pullRequestId", gt=0)
    repository: RepositoryRef


class PullRequestEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_type: str = Field(alias="eventType")
    resource: PullRequestResource
