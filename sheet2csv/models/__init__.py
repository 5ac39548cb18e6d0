"""Domain models for the sheet -> CSV exporter.

This package contains the typed cell union, the sheet identifier and
whitelist models, and the configuration / result records shared by the
services.
"""

from .cell import BoolCell, Cell, DateTimeCell, EmptyCell, ErrorCell, FloatCell, IntCell, TextCell
from .config_models import ExportConfig
from .error_record import ErrorRecord
from .export_result import ExportResult
from .sheet_ref import SheetIdentifier, SheetIdentifierKind, SheetResolution
from .whitelist import DEFAULT_DATES_WHITELIST, WhitelistMode, WhitelistSpec

__all__ = [
    # Cell variants
    "Cell",
    "EmptyCell",
    "TextCell",
    "IntCell",
    "FloatCell",
    "BoolCell",
    "ErrorCell",
    "DateTimeCell",
    # Sheet selection
    "SheetIdentifier",
    "SheetIdentifierKind",
    "SheetResolution",
    # Dates whitelist
    "DEFAULT_DATES_WHITELIST",
    "WhitelistMode",
    "WhitelistSpec",
    # Configuration / results
    "ExportConfig",
    "ExportResult",
    "ErrorRecord",
]
