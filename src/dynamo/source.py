"""Source units and positions within them."""

from bisect import bisect_right

from pydantic import BaseModel, ConfigDict


class Position(BaseModel):
    """A location in a source unit. Line and column are 1-based."""

    model_config = ConfigDict(frozen=True)

    filename: str = ""
    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class SourceFile:
    """A named source text with offset -> line/column mapping."""

    def __init__(self, name: str, text: str):
        self.name = name
        self.text = text
        self._line_starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._line_starts.append(i + 1)

    def __len__(self) -> int:
        return len(self.text)

    def position(self, offset: int) -> Position:
        offset = max(0, min(offset, len(self.text)))
        idx = bisect_right(self._line_starts, offset) - 1
        return Position(
            filename=self.name,
            offset=offset,
            line=idx + 1,
            column=offset - self._line_starts[idx] + 1,
        )

    def line_text(self, line: int) -> str:
        """Return the text of a 1-based line, without its newline."""
        if line < 1 or line > len(self._line_starts):
            return ""
        start = self._line_starts[line - 1]
        end = self.text.find("\n", start)
        if end == -1:
            end = len(self.text)
        return self.text[start:end]
