"""CLI entry point: wakasync export / report / projects."""

import click

from wakasync import config
from wakasync.db import WakapiDatabase
from wakasync.errors import WakasyncError
from wakasync.log import setup_logging


def _date_range_options(required: bool):
    def decorator(f):
        f = click.option("--to", "to_date", required=required, metavar="YYYY-MM-DD",
                         help="Last day to export (inclusive)")(f)
        f = click.option("--from", "from_date", required=required, metavar="YYYY-MM-DD",
                         help="First day to export")(f)
        return f
    return decorator


def _source_options(f):
    f = click.option("--user", envvar="WAKAPI_USER", default=None,
                     help="Only read heartbeats of this Wakapi user id")(f)
    f = click.option("--db", envvar="WAKAPI_DB", default=str(config.DB_PATH), show_default=True,
                     help="Wakapi SQLite database path")(f)
    return f


def _aggregation_options(f):
    f = click.option("--per-day", is_flag=True, default=False,
                     help="Aggregate each day separately (sessions never cross midnight)")(f)
    f = click.option("--min-duration", type=int, default=config.MIN_SESSION_SECONDS, show_default=True,
                     help="Drop sessions shorter than this many seconds")(f)
    f = click.option("--gap", type=int, default=config.GAP_THRESHOLD_SECONDS, show_default=True,
                     help="Inactivity gap in seconds that ends a session")(f)
    return f


def _common_options(f):
    f = click.option("--verbose", "-v", is_flag=True, default=False, help="Debug logging")(f)
    f = click.option("--tz", envvar="WAKASYNC_TZ", default=config.DISPLAY_TZ, show_default=True,
                     help="Timezone for date arguments and output")(f)
    return f


@click.group()
def cli():
    """wakasync: export Wakapi coding sessions to Solidtime."""


@cli.command()
@_date_range_options(required=True)
@_source_options
@_aggregation_options
@click.option("--solidtime-url", envvar="SOLIDTIME_URL", default=None, help="URL of the Solidtime instance")
@click.option("--solidtime-key", envvar="SOLIDTIME_API_KEY", default=None, help="Solidtime API key")
@click.option("--organization-id", envvar="SOLIDTIME_ORGANIZATION_ID", default=None,
              help="Solidtime organization to export to")
@click.option("--member-id", envvar="SOLIDTIME_MEMBER_ID", default=None,
              help="Solidtime member id (looked up from the API key if omitted)")
@click.option("--dry-run", "-d", is_flag=True, default=False, help="Read everything, write nothing")
@click.option("--mock-remote", is_flag=True, default=False,
              help="Export into an in-memory stand-in instead of Solidtime")
@click.option("--round-quarter-hour", is_flag=True, default=False,
              help="Round exported entry bounds to the nearest 15 minutes")
@_common_options
def export(from_date, to_date, db, user, gap, min_duration, per_day, solidtime_url, solidtime_key,
           organization_id, member_id, dry_run, mock_remote, round_quarter_hour, tz, verbose):
    """Export sessions between two dates to Solidtime."""
    from wakasync.export import ExportOptions, run_export
    from wakasync.remote import select_repository

    setup_logging(verbose, config.LOG_FILE)
    try:
        zone = config.get_timezone(tz)
        time_range = config.parse_date_range(from_date, to_date, zone)
        settings = None
        if not mock_remote:
            settings = config.SolidtimeSettings.from_values(
                solidtime_url, solidtime_key, organization_id, member_id
            )
        repository = select_repository(settings, dry_run=dry_run, mock=mock_remote)
        options = ExportOptions(
            gap_threshold=gap,
            min_duration=min_duration,
            per_day=per_day,
            round_quarter_hour=round_quarter_hour,
            user_id=user,
            tz=zone,
        )

        with WakapiDatabase.open(db) as source:
            stats, result = run_export(source, repository, time_range, options)
    except WakasyncError as e:
        raise click.ClickException(str(e)) from e

    if dry_run and result.planned:
        click.echo("Would create:")
        for session in result.planned:
            click.echo(
                f"  [{session.identifier}] {session.time_range.format_local(zone)}"
                f" | {session.time_range.format_duration()} | {session.display_name}"
            )

    click.echo(
        f"Done. "
        f"{stats['heartbeats']} heartbeats, "
        f"{stats['sessions']} sessions, "
        f"{stats['planned']} to create, "
        f"{stats['created']} created, "
        f"{stats['skipped']} already exported."
    )
    if dry_run:
        click.echo("This was a dry run - no changes were made to Solidtime.")


@cli.command()
@_date_range_options(required=True)
@_source_options
@_aggregation_options
@_common_options
def report(from_date, to_date, db, user, gap, min_duration, per_day, tz, verbose):
    """Print the sessions aggregated from Wakapi, without exporting."""
    from wakasync.export import ExportOptions, generate_input_report
    from wakasync.report import format_report

    setup_logging(verbose, config.LOG_FILE)
    try:
        zone = config.get_timezone(tz)
        time_range = config.parse_date_range(from_date, to_date, zone)
        options = ExportOptions(
            gap_threshold=gap, min_duration=min_duration, per_day=per_day, user_id=user, tz=zone
        )
        with WakapiDatabase.open(db) as source:
            input_report, _ = generate_input_report(source, time_range, options)
    except WakasyncError as e:
        raise click.ClickException(str(e)) from e

    click.echo(format_report(input_report, zone))


@cli.command()
@_date_range_options(required=True)
@_source_options
@_common_options
def projects(from_date, to_date, db, user, tz, verbose):
    """List Wakapi projects with activity and their identifiers."""
    from wakasync.sessions import project_identifier

    setup_logging(verbose, config.LOG_FILE)
    try:
        time_range = config.parse_date_range(from_date, to_date, config.get_timezone(tz))
        with WakapiDatabase.open(db) as source:
            labels = source.get_projects(time_range, user)
    except WakasyncError as e:
        raise click.ClickException(str(e)) from e

    for label in labels:
        click.echo(f"[{project_identifier(label)}] {label}")
    click.echo(f"{len(labels)} projects.")


if __name__ == "__main__":
    cli()
