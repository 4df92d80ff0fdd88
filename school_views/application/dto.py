"""Application-level DTOs for dashboard sessions."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Generic, Sequence, TypeVar

R = TypeVar("R")


class LoadState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class LoadTicket:
    sequence: int
    requested_at: datetime


@dataclass(slots=True, frozen=True)
class WorkingSetSnapshot(Generic[R]):
    """Immutable view of a session's state at one instant."""

    records: Sequence[R]
    state: LoadState
    loaded_at: datetime | None
    applied_sequence: int
    error: str | None = None

    @property
    def is_failed(self) -> bool:
        return self.state is LoadState.FAILED
