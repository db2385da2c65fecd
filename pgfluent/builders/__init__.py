"""Fluent builders returned by :class:`~pgfluent.client.PgFluent`."""
