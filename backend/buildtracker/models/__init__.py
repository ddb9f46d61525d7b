"""Convenience imports for Alembic metadata discovery."""

from buildtracker.models.job_ticket_record import JobTicketRecord  # noqa: F401
