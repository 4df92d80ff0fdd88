"""Application services orchestrating loads and view passes."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Generic, Iterable, Sequence, TypeVar

from school_views.application.dto import LoadState, LoadTicket, WorkingSetSnapshot
from school_views.config import SETTINGS
from school_views.domain.criteria import ViewRequest
from school_views.domain.metrics import derive_evaluation, derive_payment
from school_views.domain.models import DerivedEvaluation, DerivedPayment
from school_views.domain.repositories import RawRecord, RecordSource
from school_views.domain.results import RecordView
from school_views.domain.services import EVALUATION_PIPELINE, RecordPipeline, payment_pipeline
from school_views.errors import LoadError
from school_views.infrastructure.parsing.evaluations import normalize_evaluation
from school_views.infrastructure.parsing.payments import normalize_payment

logger = logging.getLogger(__name__)

R = TypeVar("R")
S = TypeVar("S")

Ingest = Callable[[RawRecord, datetime], R]


def ingest_payment(raw: RawRecord, now: datetime) -> DerivedPayment:
    return derive_payment(normalize_payment(raw, now=now))


def ingest_evaluation(raw: RawRecord, now: datetime) -> DerivedEvaluation:
    return derive_evaluation(normalize_evaluation(raw, now=now))


class DashboardSession(Generic[R]):
    """Holds the working set of one record type.

    A load is identified by a ticket. The working set only ever moves
    forward: a load that completes after a newer load has already been
    applied is discarded.
    """

    def __init__(self, ingest: Ingest[R], clock: Callable[[], datetime] | None = None) -> None:
        self._ingest = ingest
        self._clock = clock or (lambda: datetime.now(SETTINGS.timezone))
        self._lock = threading.Lock()
        self._next_sequence = 0
        self._snapshot: WorkingSetSnapshot[R] = WorkingSetSnapshot(
            records=(),
            state=LoadState.EMPTY,
            loaded_at=None,
            applied_sequence=0,
        )

    def snapshot(self) -> WorkingSetSnapshot[R]:
        with self._lock:
            return self._snapshot

    @property
    def records(self) -> Sequence[R]:
        return self.snapshot().records

    def begin_load(self) -> LoadTicket:
        with self._lock:
            self._next_sequence += 1
            ticket = LoadTicket(sequence=self._next_sequence, requested_at=self._clock())
            if self._snapshot.state is not LoadState.READY:
                self._snapshot = WorkingSetSnapshot(
                    records=self._snapshot.records,
                    state=LoadState.LOADING,
                    loaded_at=self._snapshot.loaded_at,
                    applied_sequence=self._snapshot.applied_sequence,
                    error=self._snapshot.error,
                )
        logger.debug("Load %d requested", ticket.sequence)
        return ticket

    def complete_load(self, ticket: LoadTicket, raw_records: Iterable[RawRecord]) -> bool:
        """Normalize, derive and apply a finished load.

        Returns ``False`` when the load is stale or its records cannot be
        ingested; the latter is recorded as a failed load.
        """
        now = self._clock()
        try:
            records = tuple(self._ingest(raw, now) for raw in raw_records)
        except Exception as exc:
            logger.exception("Load %d could not be ingested", ticket.sequence)
            self.fail_load(ticket, exc)
            return False
        with self._lock:
            if ticket.sequence <= self._snapshot.applied_sequence:
                logger.info(
                    "Discarding stale load %d; load %d already applied",
                    ticket.sequence,
                    self._snapshot.applied_sequence,
                )
                return False
            self._snapshot = WorkingSetSnapshot(
                records=records,
                state=LoadState.READY,
                loaded_at=now,
                applied_sequence=ticket.sequence,
            )
        logger.info(
            "Load %d applied with %d records (requested %s)",
            ticket.sequence,
            len(records),
            ticket.requested_at.isoformat(),
        )
        return True

    def fail_load(self, ticket: LoadTicket, error: BaseException | str) -> bool:
        """Record a failed load; the previous working set stays in place."""
        message = str(error) or type(error).__name__
        with self._lock:
            if ticket.sequence <= self._snapshot.applied_sequence:
                logger.info("Ignoring failure of stale load %d", ticket.sequence)
                return False
            self._snapshot = WorkingSetSnapshot(
                records=self._snapshot.records,
                state=LoadState.FAILED,
                loaded_at=self._snapshot.loaded_at,
                applied_sequence=ticket.sequence,
                error=message,
            )
        logger.warning("Load %d failed: %s", ticket.sequence, message)
        return True

    def refresh(self, source: RecordSource) -> WorkingSetSnapshot[R]:
        ticket = self.begin_load()
        try:
            raw_records = source.fetch_all()
        except LoadError as exc:
            self.fail_load(ticket, exc)
        else:
            self.complete_load(ticket, raw_records)
        return self.snapshot()


@dataclass(slots=True)
class BuildViewUseCase(Generic[R, S]):
    session: DashboardSession[R]
    pipeline: RecordPipeline[R, S]

    def execute(self, request: ViewRequest) -> RecordView[R, S]:
        return self.pipeline.view(self.session.records, request)


def payment_session(clock: Callable[[], datetime] | None = None) -> DashboardSession[DerivedPayment]:
    return DashboardSession(ingest_payment, clock=clock)


def evaluation_session(clock: Callable[[], datetime] | None = None) -> DashboardSession[DerivedEvaluation]:
    return DashboardSession(ingest_evaluation, clock=clock)


def payment_view_use_case(
    session: DashboardSession[DerivedPayment], as_of: datetime | None = None
) -> BuildViewUseCase:
    return BuildViewUseCase(session=session, pipeline=payment_pipeline(as_of=as_of))


def evaluation_view_use_case(session: DashboardSession[DerivedEvaluation]) -> BuildViewUseCase:
    return BuildViewUseCase(session=session, pipeline=EVALUATION_PIPELINE)
