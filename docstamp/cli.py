"""
Command-line interface for docstamp.

Usage:
    docstamp render input.html -o output.pdf --text "INTERNAL" --position multiple
    docstamp render input.html --settings watermark.json
    docstamp plan input.html --json
    docstamp version
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .config import ProcessingOptions
from .exceptions import DocStampError, SettingsError
from .models.watermark import CornerType, PageRangeType, PositionType, Template, WatermarkSettings
from .pipeline import ProcessingResult, WatermarkPipeline
from .renderers.surface import RecordingSurface
from .utils.rich_logger import RichLogger, setup_logging

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="docstamp",
        description="docstamp - paginated, watermarked PDF rendering for extracted documents",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  docstamp render report.html -o report.pdf
  docstamp render report.html --template draft --position multiple
  docstamp plan report.html --json
  docstamp version
        """,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (default: WARNING)",
    )
    parser.add_argument(
        "--no-rich",
        action="store_true",
        help="Use plain logging output instead of rich",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser("render", help="Render markup to a watermarked PDF")
    render_parser.add_argument("input", help="Input HTML (or plain text) file")
    render_parser.add_argument(
        "-o", "--output",
        help="Output PDF path (default: input name with .pdf extension)",
    )
    _add_settings_arguments(render_parser)

    plan_parser = subparsers.add_parser("plan", help="Show the page plan without writing a PDF")
    plan_parser.add_argument("input", help="Input HTML (or plain text) file")
    plan_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    _add_settings_arguments(plan_parser)

    subparsers.add_parser("version", help="Show version information")
    return parser


def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--settings", help="Watermark settings JSON file")
    parser.add_argument("--text", help="Watermark text ({pageNumber} is substituted)")
    parser.add_argument("--opacity", type=float, help="Opacity, 0-100")
    parser.add_argument("--font-size", help="small, medium, large or a size in points")
    parser.add_argument("--color", help="Watermark colour (#rrggbb)")
    parser.add_argument("--position", choices=[p.value for p in PositionType], help="Position type")
    parser.add_argument("--corner", choices=[c.value for c in CornerType], help="Corner for corner positioning")
    parser.add_argument("--template", choices=[t.value for t in Template], help="Text template")
    parser.add_argument("--page-range", choices=[r.value for r in PageRangeType], help="Pages to watermark")


def build_settings(args: argparse.Namespace) -> WatermarkSettings:
    """
    Merge the settings file and command-line overrides.

    Raises:
        SettingsError: If the file cannot be read or a value is invalid
    """
    data: Dict[str, Any] = {}
    if getattr(args, "settings", None):
        path = Path(args.settings)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SettingsError("Settings file could not be read", f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise SettingsError("Settings file must contain a JSON object", str(path))

    if args.text is not None:
        data["text"] = args.text
    if args.opacity is not None:
        data["opacity"] = args.opacity
    if args.font_size is not None:
        data["fontSize"] = args.font_size
    if args.color is not None:
        data["color"] = args.color
    if args.position is not None or args.corner is not None:
        position = dict(data.get("position") or {})
        if args.position is not None:
            position["type"] = args.position
        if args.corner is not None:
            position["corner"] = args.corner
        data["position"] = position
    if args.template is not None:
        data["template"] = args.template
    if args.page_range is not None:
        page_specific = dict(data.get("pageSpecific") or {})
        page_specific["pageRange"] = args.page_range
        data["pageSpecific"] = page_specific

    return WatermarkSettings.from_dict(data)


def _read_input(path: Path) -> Optional[bytes]:
    if not path.exists():
        return None
    return path.read_bytes()


def cmd_render(args, console: RichLogger) -> int:
    """Handle render command."""
    input_path = Path(args.input)
    markup = _read_input(input_path)
    if markup is None:
        console.failure(f"File not found: {input_path}")
        return 1
    output_path = Path(args.output) if args.output else input_path.with_suffix(".pdf")

    try:
        settings = build_settings(args)
    except SettingsError as e:
        console.failure(str(e))
        return 2

    with console.progress() as progress:
        task = progress.add_task("Rendering", total=100)

        def on_progress(event):
            progress.update(task, completed=event.percent, description=event.stage.capitalize())

        pipeline = WatermarkPipeline(settings, ProcessingOptions(progress_callback=on_progress))
        try:
            result = pipeline.process(markup)
        except DocStampError as e:
            console.failure(str(e))
            return 1

    output_path.write_bytes(result.artifact)
    if result.used_fallback:
        console.panel("Processing failed", f"{result.error}\nA processing notice was written to {output_path}", style="red")
        return 1
    console.success(f"Saved: {output_path} ({result.page_count} pages)")
    return 0


def plan_summary(result: ProcessingResult) -> Dict[str, Any]:
    """Summarize a processing result as plain data."""
    summary: Dict[str, Any] = {
        "pages": result.page_count,
        "used_fallback": result.used_fallback,
    }
    if result.pagination is not None:
        pagination = result.pagination
        summary.update({
            "break_indices": list(pagination.break_indices),
            "complexity": pagination.metrics.complexity.value,
            "page_height": pagination.strategy.page_height,
            "max_elements_per_page": pagination.strategy.max_elements_per_page,
            "page_details": [
                {
                    "number": page.number,
                    "elements": list(page.element_indices),
                    "continuation": page.is_continuation,
                    "watermarks": page.watermark_count,
                }
                for page in pagination.pages
            ],
        })
    if result.error is not None:
        summary["error"] = str(result.error)
    return summary


def cmd_plan(args, console: RichLogger) -> int:
    """Handle plan command."""
    input_path = Path(args.input)
    markup = _read_input(input_path)
    if markup is None:
        console.failure(f"File not found: {input_path}")
        return 1

    try:
        settings = build_settings(args)
    except SettingsError as e:
        console.failure(str(e))
        return 2

    pipeline = WatermarkPipeline(settings, surface_factory=lambda session: RecordingSurface())
    summary = plan_summary(pipeline.process(markup))

    if args.json:
        print(json.dumps(summary, indent=2))
    else:
        rows: Dict[str, Any] = {key: value for key, value in summary.items() if key != "page_details"}
        console.table(f"Page plan: {input_path.name}", rows)
        for page in summary.get("page_details", []):
            marker = " (continued)" if page["continuation"] else ""
            console.console.print(
                f"  page {page['number']}{marker}: elements {_format_range(page['elements'])}, "
                f"{page['watermarks']} watermark(s)"
            )
    return 0


def _format_range(indices: List[int]) -> str:
    if not indices:
        return "-"
    if indices == list(range(indices[0], indices[-1] + 1)):
        return f"{indices[0]}-{indices[-1]}" if len(indices) > 1 else str(indices[0])
    return ", ".join(str(i) for i in indices)


def cmd_version(args=None) -> int:
    """Handle version command."""
    print(f"docstamp v{__version__}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    console = RichLogger()
    setup_logging(args.log_level, use_rich=not args.no_rich, console=console.console)

    if args.command == "render":
        return cmd_render(args, console)
    if args.command == "plan":
        return cmd_plan(args, console)
    if args.command == "version":
        return cmd_version(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
