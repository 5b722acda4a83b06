import dataclasses

from dataclass_wizard import JSONWizard

DEFAULT_SEPARATOR = "\t"


class TabfileError(OSError):
    """Base class for failures while opening or reading a delimited file"""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path


class TabfileOpenError(TabfileError):
    """The source could not be opened: missing file, permissions, a directory..."""


class TabfileReadError(TabfileError):
    """Reading a line failed after the source was opened"""

    def __init__(
        self, message: str, path: str | None = None, line_number: int | None = None
    ):
        super().__init__(message, path=path)
        self.line_number = line_number


def _content_end(line: str) -> int:
    # fields never extend past the first line break
    end = len(line)
    for eol in ("\n", "\r"):
        pos = line.find(eol)
        if pos != -1 and pos < end:
            end = pos
    return end


@dataclasses.dataclass(frozen=True)
class Record(JSONWizard):
    """
    One line of a delimited file.

    Keeps the original line, line ending included, next to the parsed fields.
    `line_number` is the 1-based physical line in the source, skipped lines counted.
    """

    class _(JSONWizard.Meta):
        key_transform_with_dump = "SNAKE"

    line: str
    fields: tuple[str, ...]
    line_number: int = 0

    @classmethod
    def parse(
        cls, line: str, separator: str = DEFAULT_SEPARATOR, line_number: int = 0
    ) -> "Record":
        content = line[: _content_end(line)]
        return cls(
            line=line, fields=tuple(content.split(separator)), line_number=line_number
        )

    def len(self) -> int:
        return len(self.fields)

    def __len__(self):
        return len(self.fields)

    def __getitem__(self, ix):
        return self.fields[ix]

    def __iter__(self):
        return iter(self.fields)
