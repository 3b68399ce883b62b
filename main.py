"""
CLI entry point for the AutoApply cover letter worker.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from automation import ApplicationAutomator
from config import DEFAULT_CONFIG_PATH, Settings, load_settings
from cover_letter import LETTER_TEMPERATURE, CoverLetterSynthesizer
from errors import ValidationError
from intake import ApplicationIntake
from job_queue import JobQueue, run_workers
from llm_handler import create_llm_client
from personal_info import PersonalInfoResolver
from pipeline import PipelineOrchestrator
from reporting import save_document, write_results_json
from web_scraper import JobDescriptionResolver, SeleniumPageRenderer


class TruncatingFormatter(logging.Formatter):
    """Formatter that truncates log messages to a maximum length."""

    def __init__(self, max_length: int = 200, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_length = max_length

    def format(self, record):
        formatted = super().format(record)
        if len(formatted) > self.max_length:
            formatted = formatted[:self.max_length] + "... (truncated)"
        return formatted


def configure_logging(settings: Settings) -> None:
    """
    Configure logging according to settings.

    Args:
        settings: Application settings dataclass.
    """
    log_format = settings.log_format or "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    datefmt = settings.log_date_format or "%Y-%m-%d %H:%M:%S"

    console_formatter = TruncatingFormatter(max_length=200, fmt=log_format, datefmt=datefmt)
    file_formatter = logging.Formatter(fmt=log_format, datefmt=datefmt)

    handlers = []
    if settings.log_file:
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    log_level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(level=log_level, handlers=handlers)

    # Suppress verbose HTTP and browser logging
    for noisy in ("urllib3", "selenium", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate tailored cover letters from job postings.")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="JSON configuration file")
    parser.add_argument("--url", help="Job posting URL")
    parser.add_argument("--cv", type=Path, help="CV document (.pdf, .txt or .md)")
    parser.add_argument("--name", default="", help="Applicant name")
    parser.add_argument("--email", default="", help="Applicant email")
    parser.add_argument(
        "--batch",
        type=Path,
        help='JSON file with a list of {"url", "cv", "info": {"name", "email"}} entries',
    )
    args = parser.parse_args(argv)
    if not args.batch and not (args.url and args.cv):
        parser.error("either --batch or both --url and --cv are required")
    return args


def load_submissions(args: argparse.Namespace) -> List[Dict[str, Any]]:
    """Collect submissions from the command line or a batch file."""
    if args.batch:
        with args.batch.open("r", encoding="utf-8") as handle:
            entries = json.load(handle)
        if not isinstance(entries, list):
            raise ValueError(f"Batch file must contain a JSON list: {args.batch}")
        base = args.batch.resolve().parent
        submissions = []
        for entry in entries:
            cv = entry.get("cv") if isinstance(entry, dict) else None
            if cv and not Path(cv).is_absolute():
                cv = base / cv
            submissions.append(
                {
                    "url": entry.get("url") if isinstance(entry, dict) else None,
                    "info": entry.get("info") if isinstance(entry, dict) else None,
                    "cv": cv,
                }
            )
        return submissions
    return [{"url": args.url, "info": {"name": args.name, "email": args.email}, "cv": args.cv}]


def build_orchestrator(settings: Settings) -> PipelineOrchestrator:
    """Wire the pipeline components from settings."""
    llm = create_llm_client(settings)
    renderer = SeleniumPageRenderer(
        navigation_timeout=settings.navigation_timeout_seconds,
        settle_seconds=settings.settle_seconds,
        headless=settings.headless,
        save_html=settings.save_html,
    )
    automator = None
    if settings.automate:
        automator = ApplicationAutomator(renderer, submit=settings.submit_applications)
    return PipelineOrchestrator(
        description_resolver=JobDescriptionResolver(renderer, llm),
        personal_info_resolver=PersonalInfoResolver(llm),
        synthesizer=CoverLetterSynthesizer(create_llm_client(settings, temperature=LETTER_TEMPERATURE)),
        automator=automator,
    )


async def run(settings: Settings, submissions: List[Dict[str, Any]]) -> int:
    """
    Queue submissions, process them and write outputs.

    Returns:
        Number of requests that did not complete.
    """
    queue = await JobQueue.connect(settings.redis_url, max_attempts=settings.max_attempts)
    try:
        return await _process(settings, queue, submissions)
    finally:
        await queue.close()


async def _process(settings: Settings, queue: JobQueue, submissions: List[Dict[str, Any]]) -> int:
    intake = ApplicationIntake(queue, settings.upload_dir)
    await queue.restore_interrupted()

    rejected = 0
    for submission in submissions:
        try:
            await intake.submit(submission["url"], submission["info"], submission["cv"])
        except ValidationError as exc:
            logging.error("Rejected submission for %s: %s", submission.get("url"), exc)
            rejected += 1

    if await queue.pending_count() == 0:
        logging.warning("Nothing to process")
        return rejected

    orchestrator = build_orchestrator(settings)
    results = await run_workers(queue, orchestrator, concurrency=settings.workers)

    document_paths = {}
    for result in results:
        saved = save_document(result, settings.output_dir)
        if saved:
            document_paths[result.job_id] = saved
    write_results_json(results, settings.results_file, document_paths)

    failed = [result for result in results if not result.succeeded]
    for result in failed:
        logging.error(
            "Job %s failed at %s: %s",
            result.job_id,
            result.failure.stage.value if result.failure else "unknown",
            result.failure.message if result.failure else "",
        )
    logging.info(
        "Processed %d requests: %d completed, %d failed, %d rejected",
        len(results),
        len(results) - len(failed),
        len(failed),
        rejected,
    )
    return len(failed) + rejected


def main(argv: Optional[List[str]] = None) -> None:
    """Execute the cover letter workflow."""
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
        submissions = load_submissions(args)
    except (FileNotFoundError, ValueError) as exc:
        logging.error("Configuration error: %s", exc)
        sys.exit(1)

    configure_logging(settings)
    logging.info("Starting AutoApply worker (%s, %d worker(s))", settings.llm_provider, settings.workers)

    try:
        unsuccessful = asyncio.run(run(settings, submissions))
    except Exception as exc:
        logging.exception("Fatal error occurred: %s", exc)
        sys.exit(1)

    if unsuccessful:
        sys.exit(1)
    logging.info("Finished run successfully.")


if __name__ == "__main__":
    main()
