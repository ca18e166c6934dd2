"""Pydantic models for line diffs between two revisions."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


class DiffRowType(str, Enum):
    SAME = "same"
    ADD = "add"
    REMOVE = "remove"


class DiffMode(str, Enum):
    """
    Line alignment strategy.

    - ALIGNED: compare lines at equal indexes (no shift detection)
    - SEQUENCE: difflib matching, detects inserted and deleted lines
    """
    ALIGNED = "aligned"
    SEQUENCE = "sequence"


class DiffRow(BaseModel):
    type: DiffRowType
    line: str


class DiffSummary(BaseModel):
    added: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)
    unchanged: int = Field(default=0, ge=0)


class DiffResult(BaseModel):
    summary: DiffSummary = Field(default_factory=DiffSummary)
    rows: List[DiffRow] = Field(default_factory=list)
