"""Data structures returned by the filesystem layer.

- Entry: a file discovered by the directory walker (pydantic)
- FsOutcome: the result of a single entity/write operation
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, computed_field

from safe_session_storage.core.errors import ErrorKind


class EntityKind(str, Enum):
    """Closed set of file-system entity variants."""

    FILE = "file"
    DIRECTORY = "directory"


class Entry(BaseModel):
    """A file discovered during directory traversal.

    Attributes:
        path: Path of the file in external (caller) form
        size: Size in bytes
        modified: Last modification time (UTC)
    """

    path: Path
    size: int = Field(ge=0)
    modified: datetime

    model_config = {"frozen": True}

    @computed_field  # type: ignore[prop-decorator]
    @property
    def name(self) -> str:
        return self.path.name

    @computed_field  # type: ignore[prop-decorator]
    @property
    def extension(self) -> str:
        """Upper-cased text after the last dot of the name, "" without one."""
        name = self.path.name
        if "." not in name:
            return ""
        return name.rsplit(".", 1)[1].upper()


@dataclass
class FsOutcome:
    """Result of a filesystem operation.

    ``status`` separates "definitely succeeded" (``ok``/``noop``) from
    "failed"; under the default policy a failure is logged, not raised.
    """

    op: str
    path: str
    status: Literal["ok", "noop", "failed"]
    target: str | None = None
    kind: ErrorKind | None = None
    reason: str | None = None
    artifact: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"
