"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    APP_NAME: str = "CI Build Ticket Tracker"
    ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'build_tickets.db'}"

    # jira credentials
    JIRA_BASE_URL: str = ""
    JIRA_EMAIL: str = ""
    JIRA_API_TOKEN: str = ""
    JIRA_PROJECT_KEY: str = ""
    JIRA_ISSUE_TYPE: str = "Bug"
    JIRA_TIMEOUT_SECONDS: float = 25.0
    JIRA_MAX_RETRIES: int = 3
    # Extra status names accepted by the projection, e.g. "Code Review=open,Verified=resolved".
    JIRA_EXTRA_STATUS_MAP: str = ""

    # CI side
    CI_ROOT_URL: str = ""
    CI_API_TOKEN: str = ""

    TICKET_STORE_BACKEND: str = "database"
    TICKET_STORE_DIR: str = str(BASE_DIR / "jobs")

    DEFAULT_ASSIGNEE: str = ""
    DEFAULT_COMPONENTS: str = ""
    DEFAULT_TEST_DESCRIPTION: str = ""
    COMMENT_ON_FORGET: bool = False

    model_config = SettingsConfigDict(env_file=str(BASE_DIR / ".env"), env_file_encoding="utf-8")

    @property
    def jira_ready(self) -> bool:
        return bool(
            self.JIRA_BASE_URL.strip()
            and self.JIRA_EMAIL.strip()
            and self.JIRA_API_TOKEN.strip()
        )

    @property
    def default_components(self) -> list[str]:
        return [item.strip() for item in self.DEFAULT_COMPONENTS.split(",") if item.strip()]

    @property
    def extra_status_map(self) -> dict[str, str]:
        mapping: dict[str, str] = {}
        for pair in self.JIRA_EXTRA_STATUS_MAP.split(","):
            name, sep, value = pair.partition("=")
            if not sep or not name.strip() or not value.strip():
                continue
            mapping[name.strip()] = value.strip()
        return mapping


settings = Settings()
