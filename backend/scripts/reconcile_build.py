"""Reconcile a finished CI build with its Jira ticket.

Meant to run as a post-build step. Job metadata defaults to the usual
Jenkins environment variables.

Usage examples:

    python scripts/reconcile_build.py --result FAILURE --previous-result SUCCESS
    python scripts/reconcile_build.py --result SUCCESS --previous-result FAILURE --store file --store-dir /var/ci/jobs
    python scripts/reconcile_build.py --job "nightly/api" --build-number 42 --result FAILURE --previous-result FAILURE
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from pydantic import ValidationError

BASE_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(BASE_DIR))

from buildtracker.core.config import settings  # noqa: E402
from buildtracker.core.deps import build_ticket_store  # noqa: E402
from buildtracker.core.exceptions import BuildTrackerException  # noqa: E402
from buildtracker.core.logging import setup_logging  # noqa: E402
from buildtracker.db.session import SessionLocal  # noqa: E402
from buildtracker.integrations.jira.client import JiraClient  # noqa: E402
from buildtracker.schemas.build import BuildReport  # noqa: E402
from buildtracker.services.reconciler import reconcile  # noqa: E402

logger = logging.getLogger("reconcile_build")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile a CI build outcome with its Jira ticket")
    parser.add_argument("--job", default=os.getenv("JOB_NAME", ""), help="Job name (else JOB_NAME)")
    parser.add_argument(
        "--build-number",
        type=int,
        default=int(os.getenv("BUILD_NUMBER") or 0),
        help="Build number (else BUILD_NUMBER)",
    )
    parser.add_argument("--build-url", default=os.getenv("BUILD_URL", ""), help="Build URL (else BUILD_URL)")
    parser.add_argument(
        "--root-url",
        default=os.getenv("JENKINS_URL", ""),
        help="CI root URL used in the issue summary (else JENKINS_URL, then CI_ROOT_URL)",
    )
    parser.add_argument("--result", required=True, help="Current build result: SUCCESS, FAILURE or ABORTED")
    parser.add_argument("--previous-result", default="", help="Previous build result; omit for the first build")
    parser.add_argument("--project-key", default="", help="Override Jira project key (else JIRA_PROJECT_KEY)")
    parser.add_argument("--test-description", default="", help="Text included in created issues")
    parser.add_argument("--assignee", default="", help="Jira account id to assign created issues to")
    parser.add_argument("--components", default="", help="Comma-separated Jira component names")
    parser.add_argument(
        "--store",
        default=settings.TICKET_STORE_BACKEND,
        choices=["database", "file"],
        help="Where the tracked ticket is kept (default: TICKET_STORE_BACKEND)",
    )
    parser.add_argument("--store-dir", default="", help="Directory for the file store (else TICKET_STORE_DIR)")
    return parser.parse_args(argv)


def build_report(args: argparse.Namespace) -> BuildReport:
    return BuildReport(
        job_name=args.job,
        build_number=args.build_number,
        build_url=args.build_url,
        root_url=args.root_url or None,
        result=args.result,
        previous_result=args.previous_result or None,
        project_key=args.project_key or None,
        test_description=args.test_description or None,
        assignee=args.assignee or None,
        components=args.components or None,
    )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(settings.LOG_LEVEL)

    try:
        report = build_report(args)
    except ValidationError as exc:
        logger.error("Invalid build metadata: %s", exc)
        return 2

    db = None
    try:
        if args.store == "database":
            db = SessionLocal()
        store = build_ticket_store(args.store, db=db, directory=args.store_dir or None)
        result = reconcile(report, client=JiraClient(), store=store)
    except BuildTrackerException as exc:
        logger.error("Reconcile failed for %s #%s: %s", report.job_name, report.build_number, exc.message)
        print(json.dumps(exc.to_dict()))
        return 1
    finally:
        if db is not None:
            db.close()

    print(result.model_dump_json())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
