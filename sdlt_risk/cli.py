from __future__ import annotations

import argparse
import getpass
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from sdlt_risk.client import SdltClient
from sdlt_risk.config import read_config, read_scoring_config, write_config
from sdlt_risk.dataset import DATASET_FILENAME, Dataset, load_dataset, parse_dataset
from sdlt_risk.exceptions import ConfigError, ValidationError
from sdlt_risk.formatters.yaml_formatter import YamlFormatter
from sdlt_risk.models.config import AppConfig, ScoringConfig
from sdlt_risk.models.score import ScoringFailure
from sdlt_risk.models.submission import Submission
from sdlt_risk.reports.scores import ScoreReporter
from sdlt_risk.scoring import RiskScoreEngine

_SUBDIRS = ("scores",)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdlt-risk",
        description="Risk score engine for SDLT risk questionnaires.",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "--init",
        metavar="API_URL",
        help="Initialize configuration with the SDLT API URL.",
    )
    group.add_argument(
        "--pull", action="store_true",
        help=f"Download the risk dataset from the SDLT API into {DATASET_FILENAME}.",
    )
    group.add_argument(
        "--validate", nargs="?", const=DATASET_FILENAME, metavar="DATASET",
        help="Check weight sets, answer selections and questionnaires in a dataset.",
    )
    group.add_argument(
        "--score", nargs="?", const=DATASET_FILENAME, metavar="DATASET",
        help="Score every submission in a dataset and write reports to scores/.",
    )
    parser.add_argument(
        "--force", action="store_true",
        help="Overwrite existing files without confirmation.",
    )
    parser.add_argument(
        "--keep-raw-json", action="store_true",
        help="Also write raw JSON files alongside Markdown and YAML.",
    )
    parser.add_argument(
        "--actor", metavar="NAME",
        help="Name recorded as the user running the scoring (default: login name).",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging.",
    )
    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _run_init(api_url: str) -> None:
    if not api_url.startswith("https://"):
        raise ConfigError("API URL must start with https://")

    bearer_token = getpass.getpass("Enter your bearer token: ")
    if not bearer_token.strip():
        raise ConfigError("Bearer token cannot be empty.")

    config = AppConfig(api_url=api_url, bearer_token=bearer_token.strip())

    cwd = Path.cwd()
    write_config(cwd, config, ScoringConfig())

    for subdir in _SUBDIRS:
        (cwd / subdir).mkdir(exist_ok=True)

    print("Configuration saved to .sdlt-risk.ini")
    print("Created directories: " + ", ".join(f"{d}/" for d in _SUBDIRS))


def _run_pull(args: argparse.Namespace) -> None:
    cwd = Path.cwd()
    client = SdltClient(read_config(cwd))

    print("Downloading risk dataset...")
    raw = client.get_dataset()
    dataset = parse_dataset(raw)

    path = cwd / DATASET_FILENAME
    if path.exists() and not args.force:
        answer = input(f"Overwrite existing {path.name}? [Yes/No] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Download skipped.")
            return

    YamlFormatter().write(raw, path)
    print(
        f"Downloading risk dataset... done ({len(dataset.questionnaires)} questionnaires, "
        f"{len(dataset.weight_matrix)} weight sets, {len(dataset.submissions)} submissions)"
    )


def _messages(errors: Dict[str, List[str]], records: Optional[List[str]] = None) -> List[str]:
    labels = list(errors) if records is None else [r for r in records if r in errors]
    return [f"{label}: {message}" for label in labels for message in errors[label]]


def _check(dataset: Dataset, config: ScoringConfig) -> None:
    messages = _messages(dataset.validate(config))
    if messages:
        for message in messages:
            logger.debug("Validation: %s", message)
        raise ValidationError(messages)


def _run_validate(dataset_path: str) -> None:
    cwd = Path.cwd()
    dataset = load_dataset(cwd / dataset_path)
    _check(dataset, read_scoring_config(cwd))
    print(
        f"{dataset_path} is valid: {len(dataset.weight_matrix)} weight sets, "
        f"{len(dataset.questionnaires)} questionnaires, {len(dataset.tasks)} tasks."
    )


def _default_actor() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"


def _partition(
    dataset: Dataset,
    errors: Dict[str, List[str]],
) -> Tuple[List[Submission], List[ScoringFailure]]:
    """Split submissions into scorable ones and failures caused by invalid records."""
    scorable: List[Submission] = []
    blocked: List[ScoringFailure] = []
    for submission in dataset.submissions:
        messages = _messages(errors, dataset.submission_records(submission))
        if messages:
            blocked.append(ScoringFailure(
                submission_id=submission.id,
                message="Invalid records: " + "; ".join(messages),
            ))
        else:
            scorable.append(submission)
    return scorable, blocked


def _run_score(args: argparse.Namespace) -> None:
    cwd = Path.cwd()
    config = read_scoring_config(cwd)
    dataset = load_dataset(cwd / args.score)

    errors = dataset.validate(config)
    if errors:
        print(f"Warning: {args.score} has invalid records:")
        for message in _messages(errors):
            logger.debug("Validation: %s", message)
            print(f"  - {message}")
    scorable, failures = _partition(dataset, errors)

    actor = args.actor or _default_actor()
    engine = RiskScoreEngine(dataset, config)
    reports, scoring_failures = engine.score_all(scorable, actor=actor)
    failures.extend(scoring_failures)

    reporter = ScoreReporter(
        dataset, cwd / "scores",
        force=args.force,
        keep_raw_json=args.keep_raw_json,
    )
    reporter.write(reports, failures)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    _configure_logging(args.verbose)

    if args.init:
        _run_init(args.init)
    elif args.pull:
        _run_pull(args)
    elif args.validate:
        _run_validate(args.validate)
    elif args.score:
        _run_score(args)
    else:
        parser.print_help()
