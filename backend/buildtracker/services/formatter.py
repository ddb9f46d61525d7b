"""Human-readable ticket text built from build metadata."""

from __future__ import annotations

from dataclasses import dataclass

MAX_SUMMARY_LEN = 255
NO_DESCRIPTION = "No description is provided"


@dataclass(frozen=True)
class BuildInfo:
    job_name: str
    build_number: int
    build_url: str = ""
    root_url: str = ""

    @property
    def console_url(self) -> str:
        if not self.build_url:
            return ""
        base = self.build_url if self.build_url.endswith("/") else f"{self.build_url}/"
        return f"{base}console"


def _run_lines(label: str, build: BuildInfo) -> list[str]:
    lines = [f"- {label} : #{build.build_number} {build.build_url}".rstrip()]
    if build.console_url:
        lines.append(f"-- console log : {build.console_url}")
    return lines


def issue_summary(build: BuildInfo) -> str:
    summary = f"Test {build.job_name} failure"
    if build.root_url:
        summary = f"{summary} - {build.root_url}"
    return summary[:MAX_SUMMARY_LEN]


def issue_description(build: BuildInfo, test_description: str | None = None) -> str:
    lines = [
        f"The test {build.job_name} has failed.",
        "",
        (test_description or "").strip() or NO_DESCRIPTION,
        "",
        *_run_lines("First failed run", build),
        "",
        "If it is a false alarm please notify the CI tools team:",
        "1. Move the issue to the tools project.",
        "2. Set the component to the CI to Jira integration.",
    ]
    return "\n".join(lines)


def still_failing_comment(build: BuildInfo) -> str:
    return "\n".join(["- Job is still failing.", *_run_lines("Failed run", build)])


def now_passing_comment(build: BuildInfo) -> str:
    return "\n".join(["- Job is not failing but the issue is still open.", *_run_lines("Passed run", build)])


def forget_comment(build: BuildInfo) -> str:
    return "\n".join(
        [
            f"- Issue is closed; {build.job_name} stops tracking it.",
            *_run_lines("Last observed run", build),
        ]
    )
