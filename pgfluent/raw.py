"""Raw SQL fragments.

``sql()`` builds a fragment that carries its own parameters, numbered
``$1..$k`` relative to the fragment; the compiler renumbers them to fit the
statement.  ``raw()`` builds a parameterless fragment.  Fragment text is
trusted and spliced verbatim::

    from pgfluent import raw, sql

    db.select_from("users").where(sql("created_at > now() - $1::interval", "7 days"))
    db.select_from("users").where(raw("deleted_at IS NULL"))
"""
from __future__ import annotations

from typing import Any

from pgfluent.schema.nodes import RawNode


def sql(text: str, *params: Any) -> RawNode:
    """Return a raw fragment bound to ``params``.

    Args:
        text: SQL text using ``$1``..``$k`` for its own parameters.
        *params: Values for those placeholders, in order.
    """
    return RawNode(sql=text, params=params)


def raw(text: str) -> RawNode:
    """Return a raw fragment without parameters."""
    return RawNode(sql=text)
