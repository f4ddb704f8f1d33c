from __future__ import annotations


class AttritionError(Exception):
    """Base class for errors raised by the attrition reports."""


class SchemaError(AttritionError):
    """An input table is missing columns the reports depend on."""

    def __init__(self, table: str, missing: list[str]) -> None:
        self.table = table
        self.missing = missing
        super().__init__(f"{table} is missing required columns: {', '.join(missing)}")


class MalformedValueError(AttritionError):
    """A numeric field a report aggregates is null or non-numeric."""

    def __init__(self, report: str, column: str, count: int) -> None:
        self.report = report
        self.column = column
        self.count = count
        super().__init__(f"{report}: {count} row(s) with missing or non-numeric {column}")
