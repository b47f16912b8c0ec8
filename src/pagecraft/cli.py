"""CLI entry point for PageCraft."""

from __future__ import annotations

import argparse
from pathlib import Path

from pagecraft import __version__, logger
from pagecraft.dependencies import ensure_cli_dependencies_for_assemble, ensure_cli_dependencies_for_classify
from pagecraft.exceptions import PackageError
from pagecraft.layout import SUPPORTED_PAGES_PER_SHEET
from pagecraft.logging import configure_logging
from pagecraft.session import Workspace
from pagecraft.settings import Settings, get_settings
from pagecraft.typing.enums import NumberPosition, Orientation
from pagecraft.typing.models import (
    ImageWatermarkTransform,
    LayoutSpec,
    PageNumberTransform,
    TextWatermarkTransform,
    Transform,
    UploadFile,
)


PageRange = tuple[int, int | None]


def parse_page_selection(value: str) -> list[PageRange]:
    """Parse a 1-based page selection such as `1-3,5`; used as the `--pages` type.

    An open range `4-` runs to the end of each document, `-2` starts at page 1.

    Args:
        value (str): Selection expression.

    Raises:
        argparse.ArgumentTypeError: If the expression is malformed or selects nothing.

    Returns:
        list[PageRange]: `(first, last)` pairs; `last` is None for an open range.
    """
    ranges: list[PageRange] = []
    for raw_part in value.split(","):
        part = raw_part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_text, end_text = part.split("-", 1)
                start = int(start_text) if start_text.strip() else 1
                end = int(end_text) if end_text.strip() else None
            else:
                start = end = int(part)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"Invalid page selection: {value!r}") from exc
        if start < 1 or (end is not None and end < start):
            raise argparse.ArgumentTypeError(f"Invalid page selection: {value!r}")
        ranges.append((start, end))
    if not ranges:
        raise argparse.ArgumentTypeError(f"Empty page selection: {value!r}")
    return ranges


def expand_page_ranges(ranges: list[PageRange], page_count: int) -> list[int]:
    """Turn parsed ranges into 0-based indices of one document.

    Pages beyond the document are ignored.

    Args:
        ranges (list[PageRange]): Output of `parse_page_selection`.
        page_count (int): Number of pages in the document.

    Returns:
        list[int]: Selected 0-based indices in expression order.
    """
    indices: list[int] = []
    for start, end in ranges:
        last = page_count if end is None else min(end, page_count)
        indices.extend(page - 1 for page in range(start, last + 1))
    return indices


def default_output_name(inputs: list[Path], pages_per_sheet: int) -> Path:
    """Return the output file name used when `--output` is omitted.

    Args:
        inputs (list[Path]): Input files.
        pages_per_sheet (int): Pages per output sheet.

    Returns:
        Path: Output path.
    """
    if pages_per_sheet > 1 and len(inputs) == 1:
        return Path(f"{pages_per_sheet}-in-1-{inputs[0].name}")
    return Path("merged.pdf")


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="pagecraft")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    assemble_parser = subparsers.add_parser("assemble", help="Assemble pages of one or more PDFs into a new PDF")
    assemble_parser.add_argument("inputs", nargs="+", type=Path)
    assemble_parser.add_argument("--output", type=Path, default=None, dest="output_path")
    assemble_parser.add_argument(
        "--pages-per-sheet",
        type=int,
        choices=SUPPORTED_PAGES_PER_SHEET,
        default=1,
        dest="pages_per_sheet",
    )
    assemble_parser.add_argument(
        "--orientation",
        type=Orientation.from_str,
        default=Orientation.PORTRAIT,
        choices=list(Orientation),
    )
    assemble_parser.add_argument("--margin", type=float, default=None, dest="margin_pt")
    assemble_parser.add_argument("--invert", action="store_true", dest="invert_colors")
    assemble_parser.add_argument(
        "--pages",
        type=parse_page_selection,
        default=None,
        dest="pages",
        help="Page selection applied to each input, e.g. 1-3,5",
    )

    assemble_parser.add_argument("--number-format", default=None, dest="number_format")
    assemble_parser.add_argument(
        "--number-position",
        type=NumberPosition.from_str,
        default=NumberPosition.BOTTOM_CENTER,
        choices=list(NumberPosition),
        dest="number_position",
    )
    assemble_parser.add_argument("--number-size", type=float, default=12.0, dest="number_size")
    assemble_parser.add_argument("--number-margin", type=float, default=36.0, dest="number_margin")

    watermark_group = assemble_parser.add_mutually_exclusive_group()
    watermark_group.add_argument("--watermark-text", default=None, dest="watermark_text")
    watermark_group.add_argument("--watermark-image", type=Path, default=None, dest="watermark_image")
    assemble_parser.add_argument("--watermark-opacity", type=float, default=0.5, dest="watermark_opacity")
    assemble_parser.add_argument("--watermark-rotation", type=float, default=-45.0, dest="watermark_rotation")
    assemble_parser.add_argument("--watermark-size", type=float, default=50.0, dest="watermark_size")
    assemble_parser.add_argument("--watermark-scale", type=float, default=0.5, dest="watermark_scale")

    classify_parser = subparsers.add_parser("classify", help="Report pages with a dark background")
    classify_parser.add_argument("input_path", type=Path)

    return parser


def _build_layout_spec(args: argparse.Namespace, settings: Settings) -> LayoutSpec:
    """Build the layout configuration from CLI arguments.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        LayoutSpec: Layout configuration.
    """
    margin = args.margin_pt if args.margin_pt is not None else settings.default_margin_pt
    return LayoutSpec(
        pages_per_sheet=args.pages_per_sheet,
        orientation=args.orientation,
        margin_pt=margin,
        invert_colors=args.invert_colors,
    )


def _build_transforms(args: argparse.Namespace) -> list[Transform]:
    """Build the ordered transform list from CLI arguments.

    Args:
        args (argparse.Namespace): Parsed CLI args.

    Returns:
        list[Transform]: Transforms; numbering first, then the watermark.
    """
    transforms: list[Transform] = []
    if args.number_format:
        transforms.append(
            PageNumberTransform(
                format=args.number_format,
                position=args.number_position,
                font_size_pt=args.number_size,
                margin_pt=args.number_margin,
            ),
        )
    if args.watermark_text:
        transforms.append(
            TextWatermarkTransform(
                text=args.watermark_text,
                font_size_pt=args.watermark_size,
                opacity=args.watermark_opacity,
                rotation_degrees=args.watermark_rotation,
            ),
        )
    elif args.watermark_image:
        transforms.append(
            ImageWatermarkTransform(
                image=args.watermark_image.read_bytes(),
                scale=args.watermark_scale,
                opacity=args.watermark_opacity,
                rotation_degrees=args.watermark_rotation,
            ),
        )
    return transforms


def _read_upload(path: Path) -> UploadFile:
    return UploadFile(filename=path.name, data=path.read_bytes(), last_modified=path.stat().st_mtime)


def run_assemble(args: argparse.Namespace, settings: Settings) -> int:
    """Run the `assemble` command.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        int: Exit code.
    """
    spec = _build_layout_spec(args, settings)
    transforms = _build_transforms(args)
    output_path = args.output_path or default_output_name(args.inputs, spec.pages_per_sheet)

    with Workspace(settings=settings) as workspace:
        report = workspace.upload(_read_upload(path) for path in args.inputs)
        for failure in report.failures:
            logger.warning("Skipped input", extra={"filename": failure.filename, "reason": failure.reason})

        if args.pages:
            page_counts = {source.identity: source.page_count for source in report.sources}
            selections: dict[str, set[int]] = {}
            for ref in report.page_refs:
                if ref.source_id not in selections:
                    selections[ref.source_id] = set(expand_page_ranges(args.pages, page_counts[ref.source_id]))
                if ref.original_index not in selections[ref.source_id]:
                    workspace.remove(ref.stable_id)

        if not workspace.pages:
            logger.error("No pages to assemble")
            return 1

        data = workspace.export(spec, transforms)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    logger.info("Assembly written", extra={"output_path": str(output_path), "bytes": len(data)})
    return 0


def run_classify(args: argparse.Namespace, settings: Settings) -> int:
    """Run the `classify` command and print one line per page.

    Args:
        args (argparse.Namespace): Parsed CLI args.
        settings (Settings): Runtime settings.

    Returns:
        int: Exit code.
    """
    with Workspace(settings=settings) as workspace:
        report = workspace.upload([_read_upload(args.input_path)])
        if not report.sources:
            for failure in report.failures:
                logger.error("Could not load input", extra={"filename": failure.filename, "reason": failure.reason})
            return 1

        source = report.sources[0]
        results = workspace.classify(source.identity)

    for index, result in sorted(results.items()):
        label = "dark" if result.is_dark else "light"
        print(f"{source.filename} page {index + 1}: {label} (confidence {result.confidence:.2f})")  # noqa: T201
    return 0


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Args:
        argv (list[str] | None): Arguments; `sys.argv` when omitted.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command not in {"assemble", "classify"}:
        parser.print_help()
        return 0

    try:
        if args.command == "assemble":
            ensure_cli_dependencies_for_assemble(needs_image=args.watermark_image is not None)
            return run_assemble(args, settings)
        ensure_cli_dependencies_for_classify()
        return run_classify(args, settings)
    except PackageError:
        logger.exception("Command failed", extra={"command": args.command})
        return 1
    except KeyboardInterrupt:
        logger.info("Command aborted by user", extra={"command": args.command})
        return 130
    except Exception:
        logger.exception("Unexpected error", extra={"command": args.command})
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
