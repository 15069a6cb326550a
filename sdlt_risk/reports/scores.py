from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from sdlt_risk.dataset import Dataset
from sdlt_risk.formatters.markdown_formatter import MarkdownFormatter
from sdlt_risk.html_converter import html_to_markdown
from sdlt_risk.models.score import PairContribution, ScopeScore, ScoreReport, ScoringFailure
from sdlt_risk.reports.base import BaseReporter


class ScoreReporter(BaseReporter):
    def __init__(
        self,
        dataset: Dataset,
        output_dir: Path,
        *,
        force: bool = False,
        keep_raw_json: bool = False,
    ) -> None:
        super().__init__(output_dir, force=force, keep_raw_json=keep_raw_json)
        self.dataset = dataset

    def write(
        self,
        reports: List[ScoreReport],
        failures: Optional[List[ScoringFailure]] = None,
    ) -> None:
        failures = failures or []
        self._ensure_output_dir()
        self._log("Writing risk scores...")

        stems: List[str] = []
        for report in reports:
            stem = _file_stem(report)
            self._write_document(stem, self._render_report(report), report)
            stems.append(stem)

        self._write_index(reports, failures)

        summary = f" done ({len(stems)} submissions"
        if failures:
            summary += f", {len(failures)} failed"
        summary += ")"
        if stems:
            self._log("Writing risk scores... " + ", ".join(stems) + summary)
        else:
            self._log("Writing risk scores..." + summary)

    def _render_report(self, report: ScoreReport) -> str:
        frontmatter: Dict[str, Any] = {
            "submission": report.submission_id,
            "questionnaire": report.questionnaire_name,
            "scores": {
                f"{scope.scope}:{scope.name}": round(scope.score, 2)
                for scope in report.scopes
            },
            "approval_bypassed": report.approval_bypassed,
            "expires_on": report.expires_on,
            "scored_by": report.actor,
        }

        parts: List[str] = []
        questionnaire = self.dataset.questionnaires.get(report.questionnaire_id)
        if questionnaire is not None and questionnaire.key_information:
            parts.append("## Key information")
            parts.append("")
            parts.append(html_to_markdown(questionnaire.key_information))
            parts.append("")
        if not report.scopes:
            parts.append("[//]: # (Questionnaire is not a risk questionnaire)")
        for scope in report.scopes:
            parts.extend(self._render_scope(scope))

        return MarkdownFormatter.render(
            title=f"Submission {report.submission_id} — {report.questionnaire_name}",
            body="\n".join(parts),
            frontmatter=frontmatter,
        )

    def _render_scope(self, scope: ScopeScore) -> List[str]:
        parts = [
            f"## {scope.scope.capitalize()}: {scope.name}",
            "",
            f"- **Formula:** {scope.formula}",
            f"- **Score:** {scope.score:g}",
        ]
        if scope.dominant is not None:
            parts.append(f"- **Dominant finding:** {self._pair_label(scope.dominant)}")
        parts.append("")

        if not scope.contributions:
            parts.append("[//]: # (No weighted risks for this scope)")
            parts.append("")
            return parts

        rows = [
            [
                self._selection_label(p.selection_id),
                self._risk_label(p.risk_id),
                self._control_label(p.control_id),
                p.weight,
                p.likelihood,
                p.impact,
                f"{p.likelihood_penalty}%",
                f"{p.impact_penalty}%",
                f"{p.raw_score:g}",
                f"{p.penalised_score:g}",
            ]
            for p in scope.contributions
        ]
        parts.append(MarkdownFormatter.table(
            ["Answer", "Risk", "Control", "Weight", "L", "I", "L pen.", "I pen.",
             "Raw", "Penalised"],
            rows,
            numeric=(3, 4, 5, 6, 7, 8, 9),
        ))
        parts.append("")

        parts.append("### Control totals")
        parts.append("")
        for control_id, total in sorted(
            scope.control_totals.items(), key=lambda item: item[1], reverse=True,
        ):
            parts.append(f"- {self._control_label(control_id)}: {total:g}")
        parts.append("")
        return parts

    def _write_index(
        self,
        reports: List[ScoreReport],
        failures: List[ScoringFailure],
    ) -> None:
        now = datetime.now(timezone.utc)
        frontmatter: Dict[str, Any] = {
            "generated": now.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "submission_count": len(reports),
            "failure_count": len(failures),
        }

        body_parts: List[str] = []
        noun = "submission" if len(reports) == 1 else "submissions"
        body_parts.append(f"{len(reports)} {noun} scored on {now.strftime('%Y-%m-%d')}.")
        body_parts.append("")
        for report in reports:
            stem = _file_stem(report)
            body_parts.append(
                f"## [Submission {report.submission_id}]({stem}.md) — {report.questionnaire_name}"
            )
            body_parts.append("")
            for scope in report.scopes:
                body_parts.append(
                    f"- **{scope.scope.capitalize()} {scope.name}:** "
                    f"{scope.score:g} ({scope.formula})"
                )
            if report.approval_bypassed:
                body_parts.append("- **Approval:** bypassed")
            if report.expires_on:
                body_parts.append(f"- **Expires:** {report.expires_on}")
            body_parts.append("")

        if failures:
            body_parts.append("## Failed submissions")
            body_parts.append("")
            for failure in failures:
                body_parts.append(f"- Submission {failure.submission_id}: {failure.message}")
            body_parts.append("")

        md_content = MarkdownFormatter.render(
            title="Risk Scores",
            body="\n".join(body_parts),
            frontmatter=frontmatter,
        )

        index_path = self.output_dir / "index.md"
        if self._should_write(index_path):
            self._md_formatter.write(md_content, index_path)

    def _pair_label(self, pair: PairContribution) -> str:
        return (
            f"{self._risk_label(pair.risk_id)} on {self._control_label(pair.control_id)} "
            f"({self._component_label(pair.component_id)})"
        )

    def _risk_label(self, risk_id: int) -> str:
        risk = self.dataset.risks.get(risk_id)
        return risk.name if risk and risk.name else f"Risk #{risk_id}"

    def _control_label(self, control_id: int) -> str:
        control = self.dataset.controls.get(control_id)
        return control.name if control and control.name else f"Control #{control_id}"

    def _component_label(self, component_id: int) -> str:
        component = self.dataset.components.get(component_id)
        return component.name if component and component.name else f"Component #{component_id}"

    def _selection_label(self, selection_id: int) -> str:
        selection = self.dataset.selection(selection_id)
        return selection.label if selection and selection.label else f"#{selection_id}"


def _file_stem(report: ScoreReport) -> str:
    return f"submission-{report.submission_id}"
