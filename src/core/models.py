# src/core/models.py — v2
"""Shared Pydantic domain models used across modules.

No module redefines these types — all imports come from core.models.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

IssueCategory = Literal["spelling", "grammar", "style", "punctuation"]

ISSUE_CATEGORIES: tuple[str, ...] = ("spelling", "grammar", "style", "punctuation")


# === INPUT ===


class Fragment(BaseModel):
    """One unit of text submitted for analysis (e.g. a design text layer)."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str


# === ISSUES ===


class IssuePosition(BaseModel):
    """Character offsets into the analyzed text (end exclusive)."""

    start: int = Field(ge=0)
    end: int = Field(ge=0)


class Issue(BaseModel):
    """A single grammar/spelling/style finding.

    Analyzers produce issues with ``id`` and ``fragment_id`` unset; the
    distributor stamps both when fanning a group result out to fragments.
    """

    id: str | None = None
    fragment_id: str | None = None
    original_text: str = ""
    issue_text: str
    suggestion: str
    category: IssueCategory
    confidence: float = Field(ge=0.0, le=1.0)
    position: IssuePosition

    def stamped(self, fragment_id: str, index: int) -> Issue:
        """Return a copy attributed to one fragment."""
        return self.model_copy(
            update={"id": f"{fragment_id}-{index}", "fragment_id": fragment_id},
            deep=True,
        )


# === GROUPING ===


class NormalizedGroup(BaseModel):
    """Fragments sharing one normalized key."""

    normalized_key: str
    representative_text: str
    fragment_ids: list[str] = Field(default_factory=list)

    _ids: set[str] = PrivateAttr(default_factory=set)

    def model_post_init(self, __context) -> None:
        # fragment_ids may arrive with repeats
        self.fragment_ids = list(dict.fromkeys(self.fragment_ids))
        self._ids = set(self.fragment_ids)

    def add(self, fragment_id: str) -> None:
        """Append a fragment id, keeping insertion order and uniqueness."""
        if fragment_id not in self._ids:
            self._ids.add(fragment_id)
            self.fragment_ids.append(fragment_id)

    def has(self, fragment_id: str) -> bool:
        return fragment_id in self._ids


# === OUTPUT ===


class FragmentResult(BaseModel):
    """Per-fragment outcome of a check run, in input order."""

    fragment_id: str
    normalized_key: str = ""
    status: Literal["analyzed", "cached", "failed", "skipped"]
    issues: list[Issue] = Field(default_factory=list)
    error: str | None = None
