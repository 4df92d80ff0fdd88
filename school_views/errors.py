"""Errors raised by the record view pipeline and its data sources."""


class SchoolViewsError(Exception):
    """Base error for this package."""


class ConfigurationError(SchoolViewsError):
    """Raised when a view request names something the pipeline does not know."""


class UnknownFieldError(ConfigurationError):
    """Raised for an unknown selector, range field or sort key."""


class InvalidPageSizeError(ConfigurationError):
    """Raised when a page size is outside the allowed set."""


class LoadError(SchoolViewsError):
    """Raised when a record source cannot deliver its raw records."""
