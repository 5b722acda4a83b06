import json

import pyarrow.parquet as pq
from click.testing import CliRunner

from tabfile.cli import cli


def test_view(write_file, four_column):
    path = write_file(four_column)
    result = CliRunner().invoke(
        cli,
        [
            "view",
            str(path),
            "--skip-lines",
            "2",
            "--comment-character",
            "#",
            "--skip-empty-lines",
            "--head",
            "2",
        ],
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["foo\tbar\tbaz\tquux", "alpha\tbeta\tgamma\tdelta"]


def test_view_json(write_file, simple):
    result = CliRunner().invoke(
        cli, ["view", str(write_file(simple)), "--format", "json", "--skip-lines", "1"]
    )
    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["fields"] == ["c", "d"]


def test_count_csv_separator_detected(write_file):
    path = write_file(b"h1,h2\na,b\nc,d\n", name="sample.csv")
    result = CliRunner().invoke(cli, ["count", str(path), "--skip-lines", "1"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "2"


def test_escaped_separator(write_file):
    path = write_file(b"a\tb\n", name="sample.csv")
    result = CliRunner().invoke(cli, ["view", str(path), "--separator", "\\t"])
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["a\tb"]


def test_stdin(simple):
    result = CliRunner().invoke(cli, ["count", "-"], input=simple)
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "2"


def test_convert(write_file, tmp_path):
    path = write_file(b"# generated\nname\tvalue\nx\t1\ny\t2\n")
    output = tmp_path / "out.parquet"
    result = CliRunner().invoke(
        cli,
        ["convert", str(path), str(output), "--skip-lines", "1", "--header", "--batch-size", "1"],
    )
    assert result.exit_code == 0, result.output
    assert pq.read_table(output).to_pydict() == {"name": ["x", "y"], "value": ["1", "2"]}


def test_convert_without_header(write_file, tmp_path):
    output = tmp_path / "out.parquet"
    result = CliRunner().invoke(
        cli, ["convert", str(write_file(b"a\tb\nc\td\n")), str(output)]
    )
    assert result.exit_code == 0, result.output
    assert pq.read_table(output).column_names == ["col_0", "col_1"]


def test_missing_file(tmp_path):
    result = CliRunner().invoke(cli, ["view", str(tmp_path / "missing.tsv")])
    assert result.exit_code == 1
    assert "cannot open" in result.output


def test_bad_separator(write_file, simple):
    result = CliRunner().invoke(cli, ["view", str(write_file(simple)), "--separator", ";;"])
    assert result.exit_code == 2


def test_logging_conf(write_file, simple, tmp_path):
    conf = tmp_path / "logging.conf"
    conf.write_text(
        "[loggers]\nkeys=root\n\n[handlers]\nkeys=h\n\n[formatters]\nkeys=f\n\n"
        "[logger_root]\nlevel=WARNING\nhandlers=h\n\n"
        "[handler_h]\nclass=NullHandler\nformatter=f\nargs=()\n\n"
        "[formatter_f]\nformat=%(message)s\n"
    )
    result = CliRunner().invoke(
        cli, ["--logging-conf", str(conf), "count", str(write_file(simple))]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == "2"


def test_convert_wider_record_in_later_batch(write_file, tmp_path):
    output = tmp_path / "out.parquet"
    path = write_file(b"a\tb\nc\td\ne\tf\tg\n")
    result = CliRunner().invoke(
        cli, ["convert", str(path), str(output), "--batch-size", "2"]
    )
    assert result.exit_code == 1
    assert "line 3" in result.output
    assert not output.exists()
