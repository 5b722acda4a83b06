# pylint: disable=E1120

import itertools
import logging.config
import pathlib

import click

from tabfile.io.parquet import ParquetWriter
from tabfile.io.reader import Tabfile, detect_separator, open_source
from tabfile.onto import TabfileError

logger = logging.getLogger(__name__)

ESCAPES = {"\\t": "\t", "\\n": "\n", "\\r": "\r", "\\\\": "\\"}


def _unescape(value):
    return ESCAPES.get(value, value) if value is not None else None


def _setup_logging(logging_conf, verbose):
    if logging_conf is not None:
        logging.config.fileConfig(logging_conf, disable_existing_loggers=False)
    else:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s - %(levelname)s - %(message)s",
        )


def _open(path: pathlib.Path, separator, skip_lines, comment_character, skip_empty):
    if str(path) == "-":
        tabfile = open_source(click.get_binary_stream("stdin"))
        separator = separator or "\t"
    else:
        tabfile = Tabfile.open(path)
        separator = separator or detect_separator(path)
    try:
        tabfile.separator(_unescape(separator)).skip_lines(
            skip_lines
        ).comment_character(_unescape(comment_character)).skip_empty_lines(
            skip_empty
        )
    except ValueError as e:
        tabfile.close()
        raise click.BadParameter(str(e))
    logger.debug(
        f"reading {tabfile.name} with separator {separator!r}, skipping {skip_lines} lines"
    )
    return tabfile


def reader_options(f):
    f = click.option(
        "--skip-empty-lines",
        is_flag=True,
        default=False,
        help="drop blank lines (after the skipped ones)",
    )(f)
    f = click.option(
        "--comment-character",
        type=click.STRING,
        default=None,
        help="drop lines starting with this character (after the skipped ones)",
    )(f)
    f = click.option(
        "--skip-lines",
        type=click.IntRange(min=0),
        default=0,
        help="number of leading lines dropped unconditionally",
    )(f)
    f = click.option(
        "--separator",
        type=click.STRING,
        default=None,
        help="field separator; `,` for .csv files and tab otherwise; `\\t` is understood",
    )(f)
    f = click.argument("path", type=click.Path(path_type=pathlib.Path, allow_dash=True))(
        f
    )
    return f


@click.group()
@click.option(
    "--logging-conf",
    type=click.Path(path_type=pathlib.Path, exists=True, dir_okay=False),
    default=None,
    help="logging.config file; plain INFO logging to stderr otherwise",
)
@click.option("--verbose", is_flag=True, default=False)
def cli(logging_conf, verbose):
    _setup_logging(logging_conf, verbose)


@cli.command()
@reader_options
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["tsv", "json"]),
    default="tsv",
    help="re-join fields with tabs or emit one json object per record",
)
@click.option(
    "--head",
    type=click.IntRange(min=0),
    default=None,
    help="number of records to print (skip it for all records)",
)
def view(path, separator, skip_lines, comment_character, skip_empty_lines, output_format, head):
    """Print the records of PATH."""
    try:
        with _open(path, separator, skip_lines, comment_character, skip_empty_lines) as tf:
            for record in itertools.islice(tf, head):
                if output_format == "json":
                    click.echo(record.to_json())
                else:
                    click.echo("\t".join(record.fields))
    except TabfileError as e:
        raise click.ClickException(str(e))


@cli.command()
@reader_options
def count(path, separator, skip_lines, comment_character, skip_empty_lines):
    """Print the number of records in PATH."""
    try:
        with _open(path, separator, skip_lines, comment_character, skip_empty_lines) as tf:
            n = sum(1 for _ in tf)
    except TabfileError as e:
        raise click.ClickException(str(e))
    click.echo(n)


@cli.command()
@reader_options
@click.argument("output", type=click.Path(path_type=pathlib.Path, dir_okay=False))
@click.option(
    "--header",
    is_flag=True,
    default=False,
    help="take column names from the first record",
)
@click.option(
    "--batch-size",
    type=click.IntRange(min=1),
    default=1000,
    help="number of records per Parquet batch",
)
def convert(
    path,
    separator,
    skip_lines,
    comment_character,
    skip_empty_lines,
    output,
    header,
    batch_size,
):
    """Convert PATH to a Parquet file OUTPUT with string columns."""
    try:
        with _open(path, separator, skip_lines, comment_character, skip_empty_lines) as tf:
            if header:
                first = next(tf, None)
                column_names = list(first.fields) if first is not None else []
            else:
                column_names = []
            batch = list(itertools.islice(tf, batch_size))
            if not column_names:
                width = max((len(r) for r in batch), default=1)
                column_names = [f"col_{ix}" for ix in range(width)]
            with ParquetWriter(output, column_names) as writer:
                while batch:
                    writer.write_batch(batch)
                    batch = list(itertools.islice(tf, batch_size))
            n_rows = writer.total_rows
    except (TabfileError, ValueError) as e:
        raise click.ClickException(str(e))
    logger.info(f"{n_rows} records from {path} written to {output}")


if __name__ == "__main__":
    cli()
