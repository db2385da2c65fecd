"""Pydantic settings model controlling compilation.

Settings are plain, validated values passed to
:class:`~pgfluent.client.PgFluent`; the library never reads the
environment itself::

    from pgfluent import CompilerSettings, PgFluent

    db = PgFluent(settings=CompilerSettings(default_array_element_type="integer"))
"""
from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, field_validator

_TYPE_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_ ]*")


class CompilerSettings(BaseModel):
    """Options applied to every query compiled by one ``PgFluent`` instance.

    Attributes:
        default_array_element_type: Cast used for an empty ``ARRAY[]``
            literal when neither the call nor the schema names one.
        quote_reserved_identifiers: Double-quote table/column names that are
            reserved keywords (``"user"``, ``"order"``).
        check_columns: Validate column names against the attached schema,
            rejecting unknown or ambiguous bare names.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_array_element_type: str = "text"
    quote_reserved_identifiers: bool = True
    check_columns: bool = True

    @field_validator("default_array_element_type")
    @classmethod
    def _check_type_name(cls, value: str) -> str:
        value = value.strip()
        if not _TYPE_NAME_RE.fullmatch(value):
            raise ValueError(f"Invalid element type name: {value!r}")
        return value
