import argparse
import logging
from collections.abc import Callable, Mapping
from importlib.metadata import version
from typing import Any

import functions_framework
from rich.console import Console
from rich.table import Table

from .applier import RecommendationApplier
from .config import Settings
from .exceptions import AutosizerError
from .logger import logger, setup_logger
from .payload import parse_payload, validate_payload


def apply_sizing_recommendations(
    event: Mapping[str, Any],
    context: Any = None,
    callback: Callable[..., None] | None = None,
) -> str | None:
    """
    Checks for machine type recommendations and applies them to the labeled
    Compute Engine instances of a zone.

    Expects a Pub/Sub message whose base64 data is a JSON object with
    'zone' and either 'labelKey'/'labelValue' or 'label' ("key=value").

    Returns the outcome message. When a callback is given, the outcome is
    also reported as callback(None, message), and a failure as
    callback(err) instead of being raised.
    """
    try:
        settings = Settings.from_env()
        setup_logger(level=settings.log_level_number)

        payload = validate_payload(event)
        message = RecommendationApplier(settings=settings).run(payload)
    except Exception as e:
        logger.error(f"Applying sizing recommendations failed: {e}")
        if callback is None:
            raise
        callback(e)
        return None

    if callback is not None:
        callback(None, message)
    return message


@functions_framework.cloud_event
def handle_cloud_event(cloud_event: Any) -> str | None:
    """Entry point for Pub/Sub triggered functions (CloudEvent signature)."""
    return apply_sizing_recommendations(cloud_event.data.get("message", {}))


def _print_plan(console: Console, changes: list[Any], zone: str) -> None:
    if not changes:
        console.print(f"[green]No applicable recommendations in {zone}.[/green]")
        return

    table = Table(title=f"Planned Machine Type Changes ({len(changes)})")
    table.add_column("Instance", style="cyan")
    table.add_column("Current")
    table.add_column("Recommended", style="green")
    table.add_column("Target")

    for c in changes:
        table.add_row(
            c.instance_name, c.current_type, c.recommended_type, c.target_machine_type
        )

    console.print(table)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Autosizer: apply GCE machine type recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show what would change for instances labeled autosize=true
  autosizer --zone us-central1-a --label autosize=true --dry-run

  # Apply the recommendations in a specific project
  autosizer --project-id my-project --zone us-central1-a \\
      --label-key autosize --label-value true
""",
    )
    try:
        ver = version("autosizer")
    except Exception:
        ver = "unknown"
    parser.add_argument("--version", action="version", version=f"Autosizer v{ver}")

    parser.add_argument("--zone", required=True, help="Zone of the instances")
    parser.add_argument("--project-id", help="GCP Project ID (default: ADC project)")

    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--label", help="Eligibility label as key=value")
    group.add_argument("--label-key", help="Eligibility label key")
    parser.add_argument("--label-value", help="Eligibility label value")

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list the changes, do not stop or resize anything",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logs")

    args = parser.parse_args()

    console = Console()
    body = {
        "zone": args.zone,
        "label": args.label,
        "labelKey": args.label_key,
        "labelValue": args.label_value,
    }

    try:
        settings = Settings.from_env()
        setup_logger(
            level=logging.DEBUG if args.verbose else settings.log_level_number
        )
        payload = parse_payload(body)
        applier = RecommendationApplier(project_id=args.project_id, settings=settings)

        if args.dry_run:
            _print_plan(console, applier.plan(payload), payload.zone)
        else:
            console.print(applier.run(payload))
    except AutosizerError as e:
        logger.error(f"Autosizer Failed: {e}")
        exit(1)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[bold red]Operation cancelled by user.[/bold red]")
        exit(130)
