import pytest


@pytest.fixture(scope="module")
def four_column():
    return (
        b"line noise\n\nfoo\tbar\tbaz\tquux\nalpha\tbeta\tgamma\tdelta\n\n"
        b"Leonardo\tMichelangelo\tDonatello\tRaphael\n#please ignore me\nred\tyellow\tgreen"
    )


@pytest.fixture(scope="module")
def unicode_content():
    return "ä line with Ünicöde symböls\tmøre wørds tø ræd\néverything îs strànge\t💣ℝ is it?\n".encode(
        "utf-8"
    )


@pytest.fixture(scope="module")
def empty_fields():
    return b"\t\t\tleft\t\t\tright\t\t\t"


@pytest.fixture(scope="module")
def simple():
    return b"a\tb\nc\td\n"


@pytest.fixture
def write_file(tmp_path):
    """Write bytes to a file under tmp_path and return its path."""

    def _write(content: bytes, name: str = "sample.tsv"):
        path = tmp_path / name
        path.write_bytes(content)
        return path

    return _write
