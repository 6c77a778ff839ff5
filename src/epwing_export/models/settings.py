"""Export configuration."""

from pathlib import Path

from pydantic import BaseModel, Field

PAGE_SIZE = 256
INITIAL_CAPACITY = 16384


class ExportSettings(BaseModel):
    """Options controlling a single export run."""

    page_size: int = Field(default=PAGE_SIZE, ge=1)
    initial_capacity: int = Field(default=INITIAL_CAPACITY, ge=1)
    library_path: str | None = None  # libeb shared object; None = search the system
    pretty: bool = False
    gaiji_tables: list[Path] = Field(default_factory=list)
