"""
Reading delimiter-separated text files record by record or in DataFrame batches,
and exporting them to Parquet.
"""

from tabfile.io.reader import (
    Tabfile,
    detect_separator,
    open_source,
    read_batches,
    read_rows,
)
from tabfile.io.parquet import ParquetWriter

__all__ = [
    "Tabfile",
    "ParquetWriter",
    "detect_separator",
    "open_source",
    "read_batches",
    "read_rows",
]
