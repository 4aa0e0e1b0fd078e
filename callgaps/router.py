"""
Format router: picks the vendor extractor for a file by its extension.
"""

from __future__ import annotations

from pathlib import PurePath

from callgaps.errors import UnrecognizedFormat
from callgaps.extract import Extractor
from callgaps.ricochet import RicochetExtractor
from callgaps.ringcentral import RingCentralExtractor

EXTRACTORS: tuple[Extractor, ...] = (RingCentralExtractor(), RicochetExtractor())


def file_extension(file_name: str) -> str:
    """Lower-cased extension without the dot ("" when there is none)."""
    return PurePath(file_name).suffix.lstrip(".").lower()


def select_extractor(file_name: str) -> Extractor:
    ext = file_extension(file_name)
    for extractor in EXTRACTORS:
        if ext in extractor.extensions:
            return extractor
    raise UnrecognizedFormat(ext)
