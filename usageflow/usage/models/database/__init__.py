"""Logical tables for the usage collections."""

from usageflow.usage.models.database.tables import UsageTables, build_tables

__all__ = ["UsageTables", "build_tables"]
