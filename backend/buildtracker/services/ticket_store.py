"""Per-job persistence of the tracked ticket.

Each job owns at most one record. Records of different jobs are stored
independently (one row or one file per job), so concurrent builds of
different jobs never touch the same record. Builds of the same job must be
serialized by the CI layer; no locking is done here.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from buildtracker.core.exceptions import StoreUnavailable
from buildtracker.core.sanitize import safe_path_component
from buildtracker.models.job_ticket_record import JobTicketRecord

logger = logging.getLogger(__name__)

ISSUE_FILENAME = "issue.txt"
BUILD_LINE_PREFIX = "build="


@dataclass(frozen=True)
class TicketRecord:
    job_name: str
    ticket_key: str
    last_build_number: int | None = None


class TicketStore(Protocol):
    def load(self, job_name: str) -> TicketRecord | None: ...

    def save(self, job_name: str, ticket_key: str, build_number: int | None = None) -> None: ...

    def mark_build(self, job_name: str, build_number: int) -> None: ...

    def clear(self, job_name: str) -> None: ...


class SqlTicketStore:
    """Store backed by the ``job_ticket_records`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _row(self, job_name: str) -> JobTicketRecord | None:
        return self.db.query(JobTicketRecord).filter(JobTicketRecord.job_name == job_name).first()

    def _fail(self, job_name: str, operation: str, exc: SQLAlchemyError) -> StoreUnavailable:
        self.db.rollback()
        logger.warning("Ticket store %s failed for %s: %s", operation, job_name, exc)
        return StoreUnavailable(f"Ticket store {operation} failed", job_name=job_name)

    def load(self, job_name: str) -> TicketRecord | None:
        try:
            row = self._row(job_name)
        except SQLAlchemyError as exc:
            raise self._fail(job_name, "read", exc) from exc
        if row is None:
            return None
        return TicketRecord(job_name=row.job_name, ticket_key=row.ticket_key, last_build_number=row.last_build_number)

    def save(self, job_name: str, ticket_key: str, build_number: int | None = None) -> None:
        try:
            row = self._row(job_name)
            if row is None:
                row = JobTicketRecord(job_name=job_name, ticket_key=ticket_key)
                self.db.add(row)
            row.ticket_key = ticket_key
            row.last_build_number = build_number
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail(job_name, "write", exc) from exc

    def mark_build(self, job_name: str, build_number: int) -> None:
        try:
            row = self._row(job_name)
            if row is None:
                return
            row.last_build_number = build_number
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail(job_name, "write", exc) from exc

    def clear(self, job_name: str) -> None:
        try:
            self.db.query(JobTicketRecord).filter(JobTicketRecord.job_name == job_name).delete()
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail(job_name, "delete", exc) from exc


class FileTicketStore:
    """Store keeping one ``issue.txt`` per job directory.

    The first line holds the ticket key, an optional second line
    ``build=<number>`` the last applied build.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, job_name: str) -> Path:
        return self.root / safe_path_component(job_name) / ISSUE_FILENAME

    def load(self, job_name: str) -> TicketRecord | None:
        path = self.path_for(job_name)
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Ticket store read failed for %s: %s", job_name, exc)
            raise StoreUnavailable("Ticket store read failed", job_name=job_name) from exc

        ticket_key = lines[0].strip() if lines else ""
        if not ticket_key:
            return None
        build_number: int | None = None
        for line in lines[1:]:
            value = line.strip()
            if value.startswith(BUILD_LINE_PREFIX):
                try:
                    build_number = int(value[len(BUILD_LINE_PREFIX):])
                except ValueError:
                    logger.warning("Ignoring malformed build marker in %s: %r", path, value)
        return TicketRecord(job_name=job_name, ticket_key=ticket_key, last_build_number=build_number)

    def _write(self, job_name: str, ticket_key: str, build_number: int | None) -> None:
        path = self.path_for(job_name)
        content = f"{ticket_key}\n"
        if build_number is not None:
            content += f"{BUILD_LINE_PREFIX}{build_number}\n"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".issue-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.warning("Ticket store write failed for %s: %s", job_name, exc)
            raise StoreUnavailable("Ticket store write failed", job_name=job_name) from exc

    def save(self, job_name: str, ticket_key: str, build_number: int | None = None) -> None:
        self._write(job_name, ticket_key, build_number)

    def mark_build(self, job_name: str, build_number: int) -> None:
        record = self.load(job_name)
        if record is None:
            return
        self._write(job_name, record.ticket_key, build_number)

    def clear(self, job_name: str) -> None:
        try:
            self.path_for(job_name).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Ticket store delete failed for %s: %s", job_name, exc)
            raise StoreUnavailable("Ticket store delete failed", job_name=job_name) from exc
