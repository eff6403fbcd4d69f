"""Scheduled jobs, exposed as ``flask jobs ...`` commands for cron.

Suggested crontab (server local time)::

    0 23 * * *  cd /srv/presensi && flask --app presensi.main jobs mark-absences
    0 1 * * *   cd /srv/presensi && flask --app presensi.main jobs sync-leaves

Every job is safe to re-run: absence marking skips users that already have a
record for the day, leave sync rewrites the same values, and attendance sync
adds its audit tag to a record at most once.
"""

from __future__ import annotations

import logging

import click
from flask import Flask
from flask.cli import AppGroup

from .attendance.model import JobReport
from .common.datetime_utils import now_local, parse_iso_date
from .container import Container

logger = logging.getLogger(__name__)


def _echo_report(name: str, report: JobReport) -> None:
    click.echo(
        f"{name}: created={report.created} updated={report.updated} "
        f"skipped={report.skipped} failed={report.failed}"
    )
    for err in report.errors:
        click.echo(f"  ! {err}", err=True)


def register(app: Flask, container: Container) -> None:
    jobs = AppGroup("jobs", help="Scheduled attendance jobs.")

    @jobs.command("mark-absences")
    def mark_absences():
        """Create ABSENT / leave records for users without one today."""
        _echo_report("mark-absences", container.attendance_service.mark_absences_for_today())

    @jobs.command("sync-leaves")
    def sync_leaves():
        """Write leave days for every approved request still running."""
        _echo_report("sync-leaves", container.leave_sync.synchronize_active())

    @jobs.command("sync-attendance")
    @click.option("--start", "start", default=None, help="YYYY-MM-DD, default today")
    @click.option("--end", "end", default=None, help="YYYY-MM-DD, default start")
    @click.option("--user-id", type=int, default=None)
    def sync_attendance(start, end, user_id):
        """Re-derive statuses of existing records from approved leave."""
        start_date = parse_iso_date(start) if start else now_local().date()
        end_date = parse_iso_date(end) if end else start_date
        if start_date > end_date:
            raise click.BadParameter("--start must be on or before --end")
        report = container.attendance_service.synchronize_with_leave_requests(start_date, end_date, user_id=user_id)
        _echo_report("sync-attendance", report)

    app.cli.add_command(jobs)
