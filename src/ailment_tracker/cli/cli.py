"""Command-line interface for the ailment tracker."""

import json
import logging
from pathlib import Path

import click
from dotenv import load_dotenv

from ailment_tracker.config import get_settings
from ailment_tracker.db.session import init_db, make_engine
from ailment_tracker.helpers.ailment_helpers import sample_ailments, validate_ailment
from ailment_tracker.helpers.formatters import (
    format_duration,
    format_percentage,
    parse_duration,
)
from ailment_tracker.models.inputs import CreateAilmentInput
from ailment_tracker.models.display_row import RowType
from ailment_tracker.services.ailment_service import AilmentService
from ailment_tracker.services.chart import build_bubble_chart
from ailment_tracker.sync.flattening import flatten

_INDENT = "  "


def _service() -> AilmentService:
    return AilmentService.from_settings()


@click.group()
@click.version_option(package_name="ailment-tracker")
def main():
    """Ailment Tracker: ailments, their treatments, diagnostics and side effects."""
    load_dotenv()
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command("init-db")
def init_db_command():
    """Create the ailments table if it does not exist."""
    settings = get_settings()
    init_db(make_engine(settings.database_url))
    click.echo(f"Database ready: {settings.database_url}")


@main.command()
def seed():
    """Store the sample ailments (Migraine, Type 2 Diabetes)."""
    count = _service().seed(sample_ailments())
    click.echo(f"Seeded {count} ailments")


@main.command("list")
def list_command():
    """List stored ailments."""
    ailments = _service().find_all()
    if not ailments:
        click.echo("No ailments stored")
        return
    for ailment in ailments:
        details = ailment.ailment
        click.echo(
            f"{ailment.id}  {details.name or 'Unnamed Ailment'}  "
            f"duration={format_duration(details.duration)}  "
            f"intensity={format_percentage(details.intensity)}  "
            f"severity={format_percentage(details.severity)}  "
            f"treatments={len(ailment.treatments)}  "
            f"diagnostics={len(ailment.diagnostics)}"
        )


@main.command()
@click.argument("ailment_id")
def show(ailment_id: str):
    """Print one ailment as JSON."""
    ailment = _service().find_one(ailment_id)
    if ailment is None:
        raise click.ClickException(f"Ailment {ailment_id} not found")
    click.echo(json.dumps(ailment.to_document(), indent=2))
    for problem in validate_ailment(ailment):
        click.echo(f"warning: {problem}", err=True)


@main.command()
@click.option("-n", "--name", required=True, help="Ailment name")
@click.option("--description", default="", help="Free-text description")
@click.option(
    "-d", "--duration", default="0s", show_default=True, help='Duration, e.g. "2h 30m"'
)
@click.option("-i", "--intensity", default=0, show_default=True, help="Intensity 0-100")
@click.option("-s", "--severity", default=0, show_default=True, help="Severity 0-100")
@click.option("--id", "ailment_id", default=None, help="Client-supplied id")
def create(
    name: str,
    description: str,
    duration: str,
    intensity: int,
    severity: int,
    ailment_id: str | None,
):
    """Create an ailment with no treatments or diagnostics."""
    ailment = _service().create(
        CreateAilmentInput(
            id=ailment_id,
            ailment={
                "name": name,
                "description": description,
                "duration": parse_duration(duration),
                "intensity": intensity,
                "severity": severity,
            },
        )
    )
    click.echo(f"Created {ailment.id} (version {ailment.version})")


@main.command()
@click.argument("ailment_id")
def delete(ailment_id: str):
    """Delete an ailment and everything nested in it."""
    if not _service().delete(ailment_id):
        raise click.ClickException(f"Ailment {ailment_id} not found")
    click.echo(f"Deleted {ailment_id}")


@main.command()
@click.option(
    "-e", "--expand", multiple=True, help="Id to expand (repeatable)"
)
@click.option("--expand-all", is_flag=True, help="Expand every ailment and child")
def rows(expand: tuple[str, ...], expand_all: bool):
    """Print the flattened grid rows."""
    ailments = _service().find_all()
    expanded = set(expand)
    if expand_all:
        for ailment in ailments:
            expanded.add(ailment.id)
            expanded.update(t.id for t in ailment.treatments)
            expanded.update(d.id for d in ailment.diagnostics)

    for row in flatten(ailments, expanded):
        marker = " "
        if row.has_children:
            marker = "-" if row.is_expanded else "+"
        extra = ""
        if row.row_type in (RowType.TREATMENT, RowType.DIAGNOSTIC):
            extra = f"  efficacy={format_percentage(row.efficacy)}"
        elif row.severity is not None:
            extra = f"  severity={format_percentage(row.severity)}"
        click.echo(
            f"{_INDENT * row.level}{marker} [{row.row_type.value}] "
            f"{row.name or '(unnamed)'}  "
            f"{format_duration(row.duration)}  "
            f"intensity={format_percentage(row.intensity)}{extra}"
        )


@main.command()
@click.option("-o", "--output", type=click.Path(), help="Output file path (JSON)")
def chart(output: str | None):
    """Print the bubble-chart data (duration vs intensity, top treatment pies)."""
    data = build_bubble_chart(_service().find_all())
    click.echo(f"Average intensity: {data.average_intensity:.1f}%")
    for point in data.points:
        top = point.top_treatment
        click.echo(
            f"  {point.ailment_name}: {point.duration_formatted}, "
            f"intensity {point.intensity}%, severity {point.severity}%, "
            f"top treatment {top.name + f' ({top.efficacy}%)' if top else 'None'}"
        )

    if output:
        Path(output).write_text(json.dumps(data.model_dump(), indent=2))
        click.echo(f"\nChart data saved to: {output}")


if __name__ == "__main__":
    main()
