from __future__ import annotations

import re

import markdownify

# TinyMCE leaves these behind as spacer paragraphs.
_EMPTY_PARAGRAPH_RE = re.compile(r"<p>\s*(&nbsp;|\s)*</p>", re.IGNORECASE)


def html_to_markdown(html: str) -> str:
    """Convert rich-text HTML (e.g. a questionnaire's key information) to Markdown."""
    if not html:
        return ""
    html = _EMPTY_PARAGRAPH_RE.sub("", html)
    md: str = markdownify.markdownify(html, heading_style="ATX", bullets="-")
    md = md.replace("\u00ad", "")
    md = md.replace("\u00a0", " ")
    md = md.replace("&nbsp;", " ")
    md = "\n".join(line.rstrip() for line in md.splitlines())
    while "\n\n\n" in md:
        md = md.replace("\n\n\n", "\n\n")
    return _demote_headings(md.strip())


def _demote_headings(md: str) -> str:
    """Shift headings below the report's own ``##`` sections."""
    lines = []
    for line in md.splitlines():
        if re.match(r"^#{1,4} ", line):
            line = "##" + line
        lines.append(line)
    return "\n".join(lines)
