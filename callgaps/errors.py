"""
Typed failures raised while turning a call export into a ParseResult.

All of them abort the whole parse. Problems confined to a single row are
never raised; they end up in ``Extraction.rejected`` instead.
"""

from __future__ import annotations


class CallFileError(ValueError):
    """Base class for whole-file parse failures."""


class UnrecognizedFormat(CallFileError):
    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(
            f"Unrecognized file format '.{extension}'. "
            "Expected .xlsx (RingCentral) or .csv (Ricochet)."
        )


class MissingSheet(CallFileError):
    def __init__(self, sheet: str):
        self.sheet = sheet
        super().__init__(f'No "{sheet}" sheet found in workbook')


class MissingColumns(CallFileError):
    def __init__(self, columns: list[str]):
        self.columns = list(columns)
        super().__init__(
            "Unrecognized CSV format: missing required column(s) "
            + ", ".join(f"'{c}'" for c in self.columns)
        )


class NoCallsFound(CallFileError):
    def __init__(self, detail: str = "No calls found in file"):
        super().__init__(detail)


class ParseCancelled(CallFileError):
    """The caller abandoned the parse before it could complete."""

    def __init__(self, stage: str):
        self.stage = stage
        super().__init__(f"Parse cancelled after {stage}")
