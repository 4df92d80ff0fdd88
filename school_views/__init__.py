"""In-memory query pipeline for school payment and evaluation lists."""
from school_views.application.use_cases import (
    BuildViewUseCase,
    DashboardSession,
    evaluation_session,
    evaluation_view_use_case,
    payment_session,
    payment_view_use_case,
)
from school_views.domain.criteria import DateRange, FilterCriteria, NumericRange, SortDirection, ViewRequest
from school_views.domain.services import EVALUATION_PIPELINE, RecordPipeline, payment_pipeline
from school_views.infrastructure.repositories.file_sources import (
    InMemoryRecordSource,
    JsonFileRecordSource,
    SheetRecordSource,
)

__all__ = [
    "BuildViewUseCase",
    "DashboardSession",
    "evaluation_session",
    "evaluation_view_use_case",
    "payment_session",
    "payment_view_use_case",
    "DateRange",
    "FilterCriteria",
    "NumericRange",
    "SortDirection",
    "ViewRequest",
    "EVALUATION_PIPELINE",
    "RecordPipeline",
    "payment_pipeline",
    "InMemoryRecordSource",
    "JsonFileRecordSource",
    "SheetRecordSource",
]
