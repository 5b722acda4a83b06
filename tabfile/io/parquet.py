import pathlib
from typing import Iterable, List, Optional, Sequence

import pyarrow as pa
from pyarrow import parquet as pq
import logging

from tabfile.onto import Record

logger = logging.getLogger(__name__)


class ParquetWriter:
    """
    Writes records to Parquet with an explicit all-string schema, one column per field
    """

    def __init__(
        self,
        output_path: pathlib.Path,
        column_names: Sequence[str],
        use_record_batch: bool = True,
    ):
        if not column_names:
            raise ValueError("At least one column is required")
        self.output_path = output_path
        self.column_names = list(column_names)
        self.writer: Optional[pq.ParquetWriter] = None
        self.schema: pa.Schema = self._get_schema()
        self.total_rows = 0
        self.use_record_batch = use_record_batch

    def _get_schema(self) -> pa.Schema:
        """Define schema explicitly - no guessing from data"""
        return pa.schema([pa.field(name, pa.string()) for name in self.column_names])

    def _records_to_arrow_arrays(self, data: List[Record]) -> list:
        """Transpose records into one string array per column, nulls for missing fields"""
        width = len(self.column_names)
        columns: list[list[Optional[str]]] = [[] for _ in range(width)]
        for record in data:
            if len(record) > width:
                raise ValueError(
                    f"line {record.line_number}: {len(record)} fields, "
                    f"only {width} columns in schema"
                )
            for ix in range(width):
                columns[ix].append(record.fields[ix] if ix < len(record) else None)
        return [pa.array(values, type=pa.string()) for values in columns]

    def write_batch(self, data: Iterable[Record]):
        """Write a batch of records to Parquet"""
        data = list(data)
        if not data:
            logger.info("Skipping empty batch")
            return

        arrays = self._records_to_arrow_arrays(data)

        if self.writer is None:
            self.writer = pq.ParquetWriter(str(self.output_path), self.schema)
            logger.info(f"Initialized Parquet writer with schema: {self.schema}")

        if self.use_record_batch:
            self.writer.write_batch(pa.record_batch(arrays, schema=self.schema))
        else:
            self.writer.write_table(pa.table(arrays, schema=self.schema))

        self.total_rows += len(data)
        logger.info(f"Wrote batch with {len(data)} rows. Total: {self.total_rows}")

    def close(self):
        """Close the writer; an empty file with the schema is written if nothing was"""
        if self.writer is None:
            self.writer = pq.ParquetWriter(str(self.output_path), self.schema)
        self.writer.close()
        logger.info(f"Closed Parquet writer. Total rows written: {self.total_rows}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        if exc_type is not None:
            # output only survives complete exports
            pathlib.Path(self.output_path).unlink(missing_ok=True)
            logger.warning(f"Removed incomplete output {self.output_path}")
