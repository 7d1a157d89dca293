"""Diagnostic buffer shared by the scanner, parser and semantic pass."""

from dataclasses import dataclass, field

from .source import Position, SourceFile

TAB_WIDTH = 8


@dataclass
class Diagnostic:
    message: str
    pos: Position | None = None
    filename: str = ""

    def __str__(self) -> str:
        if self.pos is not None:
            return f"{self.pos}: {self.message}"
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


def render_caret(
    source: SourceFile, pos: Position, message: str, tab_width: int = TAB_WIDTH
) -> str:
    """Format a diagnostic as header, offending source line and caret line.

    Tabs in the source line are expanded to ``tab_width`` spaces and the
    caret is shifted by the same amount, so it sits under the column.
    """
    line = source.line_text(pos.line)
    prefix = "".join(
        " " * tab_width if ch == "\t" else " " for ch in line[: pos.column - 1]
    )
    shown = line.replace("\t", " " * tab_width)
    return f"{pos}: error: {message}\n{shown}\n{prefix}^"


@dataclass
class ErrorList:
    """Ordered diagnostics plus a running error count."""

    filename: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def add(self, message: str, pos: Position | None = None) -> Diagnostic:
        diag = Diagnostic(message=message, pos=pos, filename=self.filename)
        self.diagnostics.append(diag)
        return diag

    @property
    def count(self) -> int:
        return len(self.diagnostics)

    def __len__(self) -> int:
        return len(self.diagnostics)

    def __iter__(self):
        return iter(self.diagnostics)

    def __str__(self) -> str:
        return "\n".join(str(d) for d in self.diagnostics)

    def render(self, source: SourceFile, tab_width: int = TAB_WIDTH) -> str:
        """Render every diagnostic, with caret lines where a position is known."""
        out = []
        for d in self.diagnostics:
            if d.pos is None:
                out.append(str(d))
            else:
                out.append(render_caret(source, d.pos, d.message, tab_width))
        return "\n".join(out)
