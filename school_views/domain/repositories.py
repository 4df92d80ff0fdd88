"""Repository interfaces anchoring the domain layer."""
from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

RawRecord = Mapping[str, Any]


class RecordSource(Protocol):
    """Provides every raw record of one type in a single bulk fetch.

    Implementations raise ``LoadError`` when the fetch fails.
    """

    def fetch_all(self) -> Sequence[RawRecord]:
        ...
