from __future__ import annotations


class KproDoctorError(Exception):
    """Base class for kpro-doctor failures."""


class MissingColumnError(KproDoctorError, KeyError):
    """A column required at the whole-dataset level is absent."""

    def __init__(self, column: str, *, available: list[str] | None = None, source_hint: str | None = None) -> None:
        self.column = column
        self.available = list(available or [])
        self.source_hint = source_hint
        message = f"Required column '{column}' not found in data."
        if source_hint:
            message += f" Run {source_hint} first."
        if self.available:
            shown = ", ".join(self.available[:10])
            extra = f" (+{len(self.available) - 10} more)" if len(self.available) > 10 else ""
            message += f" Available columns: {shown}{extra}"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]
