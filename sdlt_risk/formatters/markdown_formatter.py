from __future__ import annotations

from pathlib import Path
import textwrap
from typing import Any, Dict, List, Optional, Sequence

import yaml

from sdlt_risk.formatters.base import BaseFormatter, to_plain


class MarkdownFormatter(BaseFormatter):
    _MAX_LINE_LENGTH = 120

    def write(self, data: Any, output_path: Path) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(str(data))

    def file_extension(self) -> str:
        return ".md"

    @classmethod
    def render(
        cls,
        title: str,
        body: str,
        frontmatter: Optional[Dict[str, Any]] = None,
    ) -> str:
        parts = []
        if frontmatter:
            fm_text = yaml.safe_dump(
                to_plain(frontmatter),
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            ).rstrip("\n")
            parts.append(f"---\n{fm_text}\n---\n")
        if title:
            parts.append(f"# {title}\n")
        if body:
            wrapped_body = cls._wrap_body(body.rstrip("\n"))
            parts.append(wrapped_body + "\n")
        return "\n".join(parts)

    @staticmethod
    def table(
        headers: Sequence[str],
        rows: Sequence[Sequence[Any]],
        numeric: Sequence[int] = (),
    ) -> str:
        """Render a pipe table; columns listed in *numeric* are right-aligned."""
        cells: List[List[str]] = [[str(h) for h in headers]]
        cells.extend([str(c) for c in row] for row in rows)
        widths = [max(len(r[i]) for r in cells) for i in range(len(headers))]

        def _line(row: List[str]) -> str:
            padded = [
                cell.rjust(widths[i]) if i in numeric else cell.ljust(widths[i])
                for i, cell in enumerate(row)
            ]
            return "| " + " | ".join(padded) + " |"

        rule = [
            "-" * (widths[i] + 1) + ":" if i in numeric else "-" * (widths[i] + 2)
            for i in range(len(headers))
        ]
        lines = [_line(cells[0]), "|" + "|".join(rule) + "|"]
        lines.extend(_line(row) for row in cells[1:])
        return "\n".join(lines)

    @classmethod
    def _wrap_body(cls, body: str) -> str:
        wrapped_lines = []
        for line in body.splitlines():
            if cls._should_preserve_line(line):
                wrapped_lines.append(line)
                continue
            wrapped_lines.append(
                textwrap.fill(
                    line,
                    width=cls._MAX_LINE_LENGTH,
                    break_long_words=False,
                    break_on_hyphens=False,
                )
            )
        return "\n".join(wrapped_lines)

    @classmethod
    def _should_preserve_line(cls, line: str) -> bool:
        if not line or len(line) <= cls._MAX_LINE_LENGTH:
            return True
        if line.startswith(("#", "- ", "* ", "> ", "|", "```", "    ", "\t")):
            return True
        return "`" in line or "](" in line or "**" in line
