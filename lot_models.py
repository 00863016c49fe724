"""
Lot data models.

Defines the record extracted from a lot page and the summary of a run.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class LotRecord(BaseModel):
    """One lot page, extracted once per run and never mutated."""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str = Field(min_length=1)
    description: str = ""
    image: str = ""  # absolute URL or empty
    keep: bool = False


class RunResult(BaseModel):
    """What a run discovered and kept."""
    sale_urls: list[str] = Field(default_factory=list)
    lot_urls: list[str] = Field(default_factory=list)
    records: list[LotRecord] = Field(default_factory=list)
    stats: dict[str, int] = Field(default_factory=dict)
    finished_at: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @property
    def kept(self) -> list[LotRecord]:
        """Records whose keep flag is set, in extraction order."""
        return [r for r in self.records if r.keep]
