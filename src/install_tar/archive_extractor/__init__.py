"""
Archive extraction.

This package provides a narrow extraction interface with two implementations:
shelling out to the `tar` executable, or extracting natively with `tarfile`.
"""

from .extractor import (
    ArchiveExtractor,
    ExtractionOutput,
    TarCommandExtractor,
    TarfileExtractor,
    create_extractor,
)

__all__ = [
    "ArchiveExtractor",
    "ExtractionOutput",
    "TarCommandExtractor",
    "TarfileExtractor",
    "create_extractor",
]
