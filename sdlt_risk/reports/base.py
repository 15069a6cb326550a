from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List

from sdlt_risk.formatters.json_formatter import JsonFormatter
from sdlt_risk.formatters.markdown_formatter import MarkdownFormatter
from sdlt_risk.formatters.yaml_formatter import YamlFormatter


class BaseReporter(ABC):
    def __init__(
        self,
        output_dir: Path,
        *,
        force: bool = False,
        keep_raw_json: bool = False,
    ) -> None:
        self.output_dir = output_dir
        self.force = force
        self.keep_raw_json = keep_raw_json
        self._overwrite_all = False
        self._md_formatter = MarkdownFormatter()
        self._json_formatter = JsonFormatter()
        self._yaml_formatter = YamlFormatter()

    @abstractmethod
    def write(self, reports: List[Any]) -> None:
        """Write *reports* to output_dir."""
        ...

    def _ensure_output_dir(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _log(self, message: str) -> None:
        print(message)

    def _should_write(self, path: Path) -> bool:
        """Check whether *path* should be written, prompting if needed."""
        if not path.exists():
            return True
        if self.force or self._overwrite_all:
            return True
        while True:
            answer = input(
                f"Overwrite existing {path.name}? [Yes/No/All] "
            ).strip().lower()
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            if answer in ("a", "all"):
                self._overwrite_all = True
                return True

    def _write_document(self, name: str, markdown: str, data: Any) -> None:
        """Write rendered Markdown plus the structured data as YAML (and JSON)."""
        md_path = self.output_dir / (name + self._md_formatter.file_extension())
        if self._should_write(md_path):
            self._md_formatter.write(markdown, md_path)

        yaml_path = self.output_dir / (name + self._yaml_formatter.file_extension())
        if self._should_write(yaml_path):
            self._yaml_formatter.write(data, yaml_path)

        if self.keep_raw_json:
            json_path = self.output_dir / (name + self._json_formatter.file_extension())
            if self._should_write(json_path):
                self._json_formatter.write(data, json_path)
