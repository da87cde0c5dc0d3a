"""
StateMigrator Exception Hierarchy

This module provides the domain-specific exception hierarchy used by the schema
descriptor, the state transitions and the migration orchestrator.

The exception hierarchy follows a clear domain-based structure:
- StateMigratorError: Base exception for all statemigrator-specific errors
- SchemaError: Schema descriptor declaration failures
- MigrationError: Failures while upgrading a single record
- MissingFieldError: A field the upgrade depends on is absent from the record
- VersionError: Schema version parsing and migration path failures

Each exception class provides:
- Context preservation utilities for exception chaining
- Error codes for programmatic error handling
- Detailed error information for debugging

Usage Examples:
    Missing field handling:
    >>> try:
    ...     upgraded = upgrade_application_state_v0(record)
    ... except MissingFieldError as e:
    ...     logger.error(f"Stored state is corrupted: {e.field_name}")

    Error code checking:
    >>> try:
    ...     migrator.migrate(record, 0, 3)
    ... except VersionError as e:
    ...     if e.error_code == "VERSION_005":
    ...         logger.warning("No migration path registered")
"""

from typing import Any, Dict, Optional


class StateMigratorError(Exception):
    """
    Base exception class for all statemigrator-specific errors.

    Attributes:
        error_code (str): Unique identifier for programmatic error handling
        context (Dict[str, Any]): Additional context information for debugging

    Error Codes:
        STATE_001: Generic statemigrator error
        STATE_002: Unexpected internal error
    """

    def __init__(
        self,
        message: str,
        error_code: str = "STATE_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Initialize the error with message, error code, and context.

        Args:
            message: Human-readable error description
            error_code: Unique identifier for programmatic error handling
            context: Additional context information for debugging
        """
        super().__init__(message)
        self.error_code = error_code
        self.context = dict(context) if context else {}

    def with_context(self, context: Dict[str, Any]) -> 'StateMigratorError':
        """
        Add additional context to the exception and return self for chaining.

        Args:
            context: Dictionary of context information to add

        Returns:
            Self for method chaining

        Example:
            >>> raise MigrationError("Upgrade failed").with_context({
            ...     "resource": "application",
            ...     "from_version": 0,
            ... })
        """
        self.context.update(context)
        return self

    @property
    def message(self) -> str:
        """Return the bare message without code and context."""
        return super().__str__()

    def __str__(self) -> str:
        message = super().__str__()
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{message} [Error Code: {self.error_code}, Context: {context_str}]"
        return f"{message} [Error Code: {self.error_code}]"

    def __repr__(self) -> str:
        """Return a detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={super().__str__()!r}, "
            f"error_code={self.error_code!r}, "
            f"context={self.context!r})"
        )


class SchemaError(StateMigratorError):
    """
    Schema descriptor declaration errors.

    Raised while a descriptor tree is being built, never while it is queried.

    Error Codes:
        SCHEMA_001: Duplicate field name within one block
        SCHEMA_002: Constraint references an unknown field
        SCHEMA_003: Invalid element declaration for the value kind
    """

    def __init__(
        self,
        message: str,
        error_code: str = "SCHEMA_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class MigrationError(StateMigratorError):
    """
    Errors raised while upgrading a single raw record.

    The host runtime should treat these as fatal and non-retryable for the
    affected record: they indicate corrupted or hand-edited persisted state.

    Error Codes:
        MIGRATION_001: Required field missing from the source record
    """

    def __init__(
        self,
        message: str,
        error_code: str = "MIGRATION_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


class MissingFieldError(MigrationError):
    """A field the upgrade depends on is absent from the source record."""

    def __init__(
        self,
        field_name: str,
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Args:
            field_name: Name of the absent field
            context: Additional context such as the transition being applied
        """
        super().__init__(
            f"Required field '{field_name}' is missing from the source record",
            "MIGRATION_001",
            context,
        )
        self.field_name = field_name
        self.context['field_name'] = field_name


class VersionError(StateMigratorError):
    """
    Schema version and migration path errors.

    Error Codes:
        VERSION_001: Invalid record or version value
        VERSION_002: Unexpected failure during migration
        VERSION_003: Transition declared between non-adjacent versions
        VERSION_005: No migration path available
        VERSION_006: Downgrade requested
    """

    def __init__(
        self,
        message: str,
        error_code: str = "VERSION_001",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, error_code, context)


def log_and_raise(
    exception: StateMigratorError,
    logger: Optional[Any] = None,
    level: str = "error"
) -> None:
    """
    Log an exception with context and then raise it.

    Args:
        exception: The exception to log and raise
        logger: Logger instance to use (optional)
        level: Log level ("error", "warning", "critical")

    Raises:
        The provided exception after logging
    """
    if logger is not None:
        log_method = getattr(logger, level, logger.error)
        log_method(f"{exception.__class__.__name__}: {exception.message}")

        if exception.context:
            for key, value in exception.context.items():
                log_method(f"  {key}: {value}")

    raise exception


__all__ = [
    'StateMigratorError',
    'SchemaError',
    'MigrationError',
    'MissingFieldError',
    'VersionError',
    'log_and_raise',
]
