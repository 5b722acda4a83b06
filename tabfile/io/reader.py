"""
Lazy reader for tab-separated (or otherwise delimiter-separated) text files.

Lines flow through three stages: the line source, the skip filter and the
row parser. Leading lines are skipped unconditionally: they are counted but
never decoded or split, whatever their content.
"""

import bz2
import codecs
import gzip
import io
import logging
import lzma
import zlib
import pathlib
from typing import BinaryIO, Iterator, Optional, TextIO, Union

import pandas as pd

from tabfile.onto import (
    DEFAULT_SEPARATOR,
    Record,
    TabfileOpenError,
    TabfileReadError,
)

logger = logging.getLogger(__name__)

COMPRESSION_OPENERS = {
    ".gz": gzip.open,
    ".bz2": bz2.open,
    ".xz": lzma.open,
}

Source = Union[str, pathlib.Path, BinaryIO, TextIO]


def _opener_for(file_path: str):
    suffix = pathlib.Path(file_path).suffix.lower()
    return COMPRESSION_OPENERS.get(suffix, open)


def _single_char(value, what: str) -> str:
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"{what} must be a single character, got {value!r}")
    return value


def _ascii_compatible(encoding: str) -> bool:
    return "\n\t".encode(encoding) == b"\n\t"


def detect_separator(file_path: Union[str, pathlib.Path]) -> str:
    """Comma for .csv files (optionally compressed), tab for everything else."""
    suffixes = [s.lower() for s in pathlib.Path(file_path).suffixes]
    base_suffixes = [s for s in suffixes if s not in COMPRESSION_OPENERS]
    base_suffix = base_suffixes[-1] if base_suffixes else ".tsv"
    return "," if base_suffix == ".csv" else DEFAULT_SEPARATOR


class Tabfile:
    """
    A read-only handle on a delimited file, iterated for its records.

    The source is opened when the Tabfile is created and released once
    iteration is exhausted, a read fails, `close()` is called or the `with`
    block is left. Iteration is forward-only: a consumed Tabfile stays empty.

        with Tabfile.open("data.tsv").separator(",").skip_lines(2) as tf:
            for record in tf:
                print(record.fields[0], record.line)
    """

    def __init__(
        self,
        handle: Union[BinaryIO, TextIO],
        name: str = "<stream>",
        binary: bool = True,
        encoding: str = "utf-8",
    ):
        codecs.lookup(encoding)
        if binary and not _ascii_compatible(encoding):
            # byte-level line splitting only works for ascii supersets
            handle = io.TextIOWrapper(handle, encoding=encoding, newline="\n")
            binary = False
        self._handle = handle
        self._binary = binary
        self.name = name
        self.encoding = encoding

        self._separator = DEFAULT_SEPARATOR
        self._skip_lines = 0
        self._comment_character: Optional[str] = None
        self._skip_empty_lines = False

        self._started = False
        self._line_number = 0
        self._rows = 0

    @classmethod
    def open(
        cls, file_path: Union[str, pathlib.Path], encoding: str = "utf-8"
    ) -> "Tabfile":
        """Open an existing file; `.gz`, `.bz2` and `.xz` files are decompressed on the fly."""
        codecs.lookup(encoding)
        path = str(file_path)
        try:
            handle = _opener_for(path)(path, "rb")
        except OSError as e:
            raise TabfileOpenError(
                f"cannot open {path}: {e.strerror or e}", path=path
            ) from e
        logger.debug(f"opened {path}")
        return cls(handle, name=path, binary=True, encoding=encoding)

    @classmethod
    def from_stream(
        cls,
        stream: Union[BinaryIO, TextIO],
        encoding: str = "utf-8",
        name: Optional[str] = None,
    ) -> "Tabfile":
        """Wrap an already open stream; the Tabfile takes ownership and closes it."""
        binary = not isinstance(stream, io.TextIOBase)
        if name is None:
            name = str(getattr(stream, "name", "<stream>"))
        return cls(stream, name=name, binary=binary, encoding=encoding)

    def _check_configurable(self):
        if self._started:
            raise RuntimeError(
                f"{self.name}: configuration is fixed once iteration has started"
            )

    def separator(self, sep: str) -> "Tabfile":
        """Set the field separator, tab by default."""
        self._check_configurable()
        self._separator = _single_char(sep, "separator")
        return self

    def skip_lines(self, num_lines: int) -> "Tabfile":
        """
        Set the number of leading lines to drop, 0 by default.

        The skipped lines are dropped before any other filter sees them,
        regardless of whether they are empty or look like comments.
        """
        self._check_configurable()
        if isinstance(num_lines, bool) or not isinstance(num_lines, int):
            raise ValueError(f"skip_lines expects an integer, got {num_lines!r}")
        if num_lines < 0:
            raise ValueError(f"skip_lines must be non-negative, got {num_lines}")
        self._skip_lines = num_lines
        return self

    def comment_character(self, comment_character: Optional[str]) -> "Tabfile":
        """Ignore lines starting with `comment_character`; None (the default) keeps all lines."""
        self._check_configurable()
        if comment_character is not None:
            comment_character = _single_char(comment_character, "comment character")
        self._comment_character = comment_character
        return self

    def skip_empty_lines(self, skip: bool = True) -> "Tabfile":
        """Ignore lines that are blank after trimming whitespace; off by default."""
        self._check_configurable()
        self._skip_empty_lines = bool(skip)
        return self

    @property
    def closed(self) -> bool:
        return self._handle is None

    @property
    def line_number(self) -> int:
        """Number of physical lines consumed so far, skipped ones included."""
        return self._line_number

    @property
    def rows_read(self) -> int:
        return self._rows

    def close(self):
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        handle.close()
        logger.debug(f"closed {self.name} after {self._rows} rows")

    def __enter__(self) -> "Tabfile":
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __iter__(self) -> Iterator[Record]:
        return self

    def __next__(self) -> Record:
        self._started = True
        while True:
            raw = self._readline()
            if not raw:
                self.close()
                raise StopIteration
            self._line_number += 1
            if self._line_number <= self._skip_lines:
                continue
            line = self._decode(raw)
            if self._comment_character is not None and line.startswith(
                self._comment_character
            ):
                continue
            if self._skip_empty_lines and line.strip() == "":
                continue
            self._rows += 1
            return Record.parse(line, self._separator, self._line_number)

    def _fail(self, exc: Exception, line_number: int) -> TabfileReadError:
        self.close()
        return TabfileReadError(
            f"{self.name}: read failed at line {line_number}: {exc}",
            path=self.name,
            line_number=line_number,
        )

    def _readline(self):
        if self._handle is None:
            return ""
        try:
            return self._handle.readline()
        except (
            OSError,
            EOFError,
            lzma.LZMAError,
            zlib.error,
            UnicodeDecodeError,
        ) as e:
            raise self._fail(e, self._line_number + 1) from e

    def _decode(self, raw) -> str:
        if not self._binary:
            return raw
        try:
            return raw.decode(self.encoding)
        except UnicodeDecodeError as e:
            raise self._fail(e, self._line_number) from e


def open_source(source: Source, encoding: str = "utf-8") -> Tabfile:
    """Open a path or wrap a stream, whichever `source` is."""
    if hasattr(source, "read"):
        return Tabfile.from_stream(source, encoding=encoding)
    return Tabfile.open(source, encoding=encoding)


def read_rows(
    source: Source,
    separator: str = DEFAULT_SEPARATOR,
    skip_lines: int = 0,
    comment_character: Optional[str] = None,
    skip_empty_lines: bool = False,
    encoding: str = "utf-8",
) -> Iterator[Record]:
    """
    Yield the records of `source`, closing it when the generator finishes or is closed.

    Configuration is validated before the source is opened.
    """
    _single_char(separator, "separator")
    tabfile = open_source(source, encoding=encoding)
    try:
        tabfile.separator(separator).skip_lines(skip_lines).comment_character(
            comment_character
        ).skip_empty_lines(skip_empty_lines)
    except ValueError:
        tabfile.close()
        raise
    with tabfile:
        yield from tabfile


def _rows_to_frame(rows: list[tuple[str, ...]], columns: Optional[list[str]]):
    width = max(len(r) for r in rows)
    if columns is not None:
        width = max(width, len(columns))
    padded = [tuple(r) + (None,) * (width - len(r)) for r in rows]
    if columns is None:
        return pd.DataFrame(padded, dtype=object)
    names = list(columns) + [f"col_{ix}" for ix in range(len(columns), width)]
    return pd.DataFrame(padded, columns=names, dtype=object)


def read_batches(
    source: Source, batch_size: int = 1000, header: bool = False, **kwargs
) -> Iterator[pd.DataFrame]:
    """
    Read a delimited file in batches of pandas DataFrames.

    Args:
        source: path or stream to read
        batch_size: maximum number of rows per batch (default: 1000)
        header: if True, the first record that survives skipping and
                filtering names the columns
        **kwargs: passed to read_rows (separator, skip_lines, comment_character,
                  skip_empty_lines, encoding)

    Yields:
        pd.DataFrame: string cells; rows shorter than the widest row of the batch
        are padded with missing values

    Examples:
        >>> for batch in read_batches("data.tsv", batch_size=5000, skip_lines=3):
        ...     process(batch)
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    columns: Optional[list[str]] = None
    buffer: list[tuple[str, ...]] = []
    for record in read_rows(source, **kwargs):
        if header and columns is None:
            columns = list(record.fields)
            continue
        buffer.append(record.fields)
        if len(buffer) == batch_size:
            yield _rows_to_frame(buffer, columns)
            buffer = []
    if buffer:
        yield _rows_to_frame(buffer, columns)
