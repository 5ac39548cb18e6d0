"""Export a spreadsheet sheet to CSV, converting date serials in whitelisted columns."""

__version__ = "0.1.0"
