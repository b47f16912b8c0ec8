from __future__ import annotations

import argparse
from argparse import Namespace
from pathlib import Path

import pytest

from pagecraft import cli
from pagecraft.exceptions import AssemblyError
from pagecraft.settings import Settings
from pagecraft.typing.enums import NumberPosition, Orientation
from pagecraft.typing.models import ClassificationResult, PageNumberTransform, TextWatermarkTransform


def _assemble_args(tmp_path: Path, **overrides: object) -> Namespace:
    values: dict[str, object] = {
        "command": "assemble",
        "inputs": [tmp_path / "a.pdf"],
        "output_path": tmp_path / "out.pdf",
        "pages_per_sheet": 1,
        "orientation": Orientation.PORTRAIT,
        "margin_pt": None,
        "invert_colors": False,
        "pages": None,
        "number_format": None,
        "number_position": NumberPosition.BOTTOM_CENTER,
        "number_size": 12.0,
        "number_margin": 36.0,
        "watermark_text": None,
        "watermark_image": None,
        "watermark_opacity": 0.5,
        "watermark_rotation": -45.0,
        "watermark_size": 50.0,
        "watermark_scale": 0.5,
    }
    values.update(overrides)
    return Namespace(**values)


def test_build_parser_supports_version_flag(capsys) -> None:
    parser = cli.build_parser()

    with pytest.raises(SystemExit) as exc_info:
        parser.parse_args(["--version"])
    assert exc_info.value.code == 0

    captured = capsys.readouterr()
    assert "0.1.0" in captured.out


def test_build_parser_parses_assemble_options() -> None:
    args = cli.build_parser().parse_args(
        ["assemble", "a.pdf", "b.pdf", "--pages-per-sheet", "4", "--orientation", "landscape", "--invert"],
    )

    assert args.inputs == [Path("a.pdf"), Path("b.pdf")]
    assert args.pages_per_sheet == 4
    assert args.orientation == Orientation.LANDSCAPE
    assert args.invert_colors is True


def test_build_parser_rejects_unsupported_pages_per_sheet() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["assemble", "a.pdf", "--pages-per-sheet", "3"])


def test_watermark_text_and_image_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["assemble", "a.pdf", "--watermark-text", "X", "--watermark-image", "w.png"])


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1-3,5", [0, 1, 2, 4]),
        ("4-", [3, 4, 5]),
        ("-2", [0, 1]),
        ("2, 2", [1, 1]),
        ("5-9", [4, 5]),
    ],
)
def test_page_selection_expands_per_document(value: str, expected: list[int]) -> None:
    assert cli.expand_page_ranges(cli.parse_page_selection(value), page_count=6) == expected


@pytest.mark.parametrize("value", ["a", "0", "3-1", "1-b", ","])
def test_parse_page_selection_rejects_malformed_input(value: str) -> None:
    with pytest.raises(argparse.ArgumentTypeError):
        cli.parse_page_selection(value)


def test_bad_page_selection_is_a_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["assemble", "a.pdf", "--pages", "3-1"])

    assert exc_info.value.code == 2
    assert "Invalid page selection" in capsys.readouterr().err


def test_build_parser_parses_page_selection() -> None:
    args = cli.build_parser().parse_args(["assemble", "a.pdf", "--pages", "1-2,4-"])

    assert args.pages == [(1, 2), (4, None)]


def test_default_output_name() -> None:
    assert cli.default_output_name([Path("in/report.pdf")], 4) == Path("4-in-1-report.pdf")
    assert cli.default_output_name([Path("a.pdf"), Path("b.pdf")], 4) == Path("merged.pdf")
    assert cli.default_output_name([Path("a.pdf")], 1) == Path("merged.pdf")


def test_build_layout_spec_falls_back_to_configured_margin(tmp_path: Path) -> None:
    spec = cli._build_layout_spec(_assemble_args(tmp_path, pages_per_sheet=2), Settings(default_margin_pt=7))

    assert spec.pages_per_sheet == 2
    assert spec.margin_pt == 7


def test_build_transforms_orders_numbering_before_watermark(tmp_path: Path) -> None:
    transforms = cli._build_transforms(
        _assemble_args(tmp_path, number_format="{p}/{n}", watermark_text="DRAFT"),
    )

    assert isinstance(transforms[0], PageNumberTransform)
    assert transforms[0].format == "{p}/{n}"
    assert isinstance(transforms[1], TextWatermarkTransform)
    assert transforms[1].text == "DRAFT"


def test_run_assemble_applies_page_selection(fake_fitz, mocker, tmp_path: Path) -> None:
    (tmp_path / "a.pdf").write_bytes(b"%PDF-a")
    pipeline_cls = mocker.patch("pagecraft.session.AssemblyPipeline")
    pipeline_cls.return_value.assemble.return_value = b"%PDF-out"

    result = cli.run_assemble(_assemble_args(tmp_path, pages=[(1, 1), (3, 3)]), Settings())

    assert result == 0
    refs = pipeline_cls.return_value.assemble.call_args.args[0]
    assert [ref.original_index for ref in refs] == [0, 2]
    assert (tmp_path / "out.pdf").read_bytes() == b"%PDF-out"


def test_run_assemble_fails_without_pages(fake_fitz, tmp_path: Path) -> None:
    (tmp_path / "a.pdf").write_bytes(b"not a pdf")

    assert cli.run_assemble(_assemble_args(tmp_path), Settings()) == 1
    assert not (tmp_path / "out.pdf").exists()


def test_run_classify_prints_one_line_per_page(fake_fitz, mocker, tmp_path: Path, capsys) -> None:
    (tmp_path / "a.pdf").write_bytes(b"%PDF-a")
    mocker.patch(
        "pagecraft.session.RasterPool.classify",
        return_value={
            1: ClassificationResult(is_dark=False, confidence=0.0),
            0: ClassificationResult(is_dark=True, confidence=0.75),
        },
    )

    result = cli.run_classify(Namespace(command="classify", input_path=tmp_path / "a.pdf"), Settings())

    assert result == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines == ["a.pdf page 1: dark (confidence 0.75)", "a.pdf page 2: light (confidence 0.00)"]


def test_main_runs_assemble_flow(mocker, tmp_path: Path) -> None:
    parser = mocker.Mock()
    parser.parse_args.return_value = _assemble_args(tmp_path)

    mocker.patch("pagecraft.cli.build_parser", return_value=parser)
    mocker.patch("pagecraft.cli.get_settings", return_value=Settings())
    mock_deps = mocker.patch("pagecraft.cli.ensure_cli_dependencies_for_assemble")
    mock_run = mocker.patch("pagecraft.cli.run_assemble", return_value=0)

    result = cli.main()

    assert result == 0
    mock_deps.assert_called_once_with(needs_image=False)
    mock_run.assert_called_once()


def test_main_returns_error_code_on_package_error(mocker, tmp_path: Path) -> None:
    parser = mocker.Mock()
    parser.parse_args.return_value = _assemble_args(tmp_path)

    mocker.patch("pagecraft.cli.build_parser", return_value=parser)
    mocker.patch("pagecraft.cli.get_settings", return_value=Settings())
    mocker.patch("pagecraft.cli.ensure_cli_dependencies_for_assemble")
    mocker.patch("pagecraft.cli.run_assemble", side_effect=AssemblyError(message="boom"))

    assert cli.main() == 1


def test_main_without_command_prints_help(mocker, capsys) -> None:
    mocker.patch("pagecraft.cli.get_settings", return_value=Settings())

    assert cli.main([]) == 0
    assert "usage" in capsys.readouterr().out.lower()
