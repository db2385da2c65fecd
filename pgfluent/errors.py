"""Custom exception hierarchy for pgfluent.

All public errors inherit from PgFluentError so callers can catch the base
class for any pgfluent-specific failure.  Every error is raised
synchronously, either by the builder method that received the bad input or
by ``compile()``; none of them is ever deferred to execution time.
"""
from __future__ import annotations

from typing import Any


class PgFluentError(Exception):
    """Base exception for all pgfluent errors."""


class QueryConstructionError(PgFluentError):
    """Raised when a query cannot be built or compiled from its inputs.

    Args:
        message: Human-readable description.
        code: Machine-readable error code (e.g. DUPLICATE_ALIAS).
        details: Extra structured context about the offending input.
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details: dict[str, Any] = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Returns a structured representation of the error."""
        return {
            "error": self.code,
            "message": str(self),
            "details": self.details,
        }


class MalformedExpressionError(QueryConstructionError):
    """Raised when a table, column or alias expression has bad syntax."""

    def __init__(self, expression: str, reason: str, code: str = "MALFORMED_EXPRESSION") -> None:
        super().__init__(
            f"Malformed expression {expression!r}: {reason}",
            code=code,
            details={"expression": expression, "reason": reason},
        )
        self.expression = expression
        self.reason = reason


class EmptyIdentifierError(MalformedExpressionError):
    """Raised when a table, column or key name is empty or blank."""

    def __init__(self, kind: str, expression: str = "") -> None:
        super().__init__(expression, f"{kind} name must not be empty", code="EMPTY_IDENTIFIER")
        self.kind = kind


class DuplicateAliasError(QueryConstructionError):
    """Raised when a FROM/JOIN qualifier is already registered in the scope."""

    def __init__(self, qualifier: str, existing_table: str, new_table: str) -> None:
        super().__init__(
            f"Qualifier '{qualifier}' is already used by table '{existing_table}'; "
            f"cannot register table '{new_table}' under the same name.",
            code="DUPLICATE_ALIAS",
            details={
                "qualifier": qualifier,
                "existing_table": existing_table,
                "new_table": new_table,
            },
        )


class AliasExclusivityViolationError(QueryConstructionError):
    """Raised when an aliased table's original name is used as a qualifier."""

    def __init__(self, reference: str, table: str, alias: str) -> None:
        super().__init__(
            f"Column reference '{reference}' uses table name '{table}', but the "
            f"table is aliased as '{alias}'; use '{alias}' instead.",
            code="ALIAS_EXCLUSIVITY_VIOLATION",
            details={"reference": reference, "table": table, "alias": alias},
        )


class UnresolvedColumnError(QueryConstructionError):
    """Raised when a column reference cannot be resolved against the scope."""

    def __init__(
        self,
        reference: str,
        reason: str,
        candidates: list[str] | None = None,
    ) -> None:
        super().__init__(
            f"Cannot resolve column '{reference}': {reason}",
            code="UNRESOLVED_COLUMN",
            details={"reference": reference, "reason": reason, "candidates": candidates or []},
        )


class InvalidOperandError(QueryConstructionError):
    """Raised when an operator receives an operand of the wrong shape.

    Args:
        message: Human-readable description.
        operator: The operator (or builder method) that rejected the operand.
        operand: The rejected operand.
    """

    def __init__(self, message: str, operator: str | None = None, operand: Any = None) -> None:
        super().__init__(
            message,
            code="INVALID_OPERAND",
            details={"operator": operator, "operand": repr(operand)},
        )
        self.operator = operator
        self.operand = operand


class CompilationError(PgFluentError):
    """Raised when SQL compilation meets a node it does not know how to render.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause


class ExecutorNotConfiguredError(PgFluentError):
    """Raised when ``execute()`` is called without any executor available."""
