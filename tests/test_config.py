from pathlib import Path

import pytest
import typer

from h5pbatch.cli.main import resolve_config
from h5pbatch.core.config import BatchConfiguration, build_configuration
from h5pbatch.core.errors import ConfigurationError
from h5pbatch.core.formats import ExportFormat, ExportSelection

BASE = ["-i", "in", "-o", "out"]


def test_defaults() -> None:
    config = resolve_config(BASE)
    assert config.input_dir == Path("in")
    assert config.output_dir == Path("out")
    assert config.export_format is ExportSelection.BOTH
    assert config.mastery_score == 75
    assert config.css_path is None
    assert config.language == "en"
    assert config.margin_x == 0
    assert config.margin_y == 20
    assert config.max_width == 1200
    assert config.restrict_width is True
    assert config.show_embed is True
    assert config.show_rights is True
    assert config.verbose is False


def test_resolution_is_deterministic() -> None:
    argv = BASE + ["-f", "scorm", "-m", "90", "--marginX", "-5", "--hideRights"]
    assert resolve_config(argv) == resolve_config(argv)


def test_all_flags() -> None:
    config = resolve_config(
        [
            "--input", "h5p-files",
            "--output", "exports",
            "--format", "external",
            "--masteryScore", "80",
            "--css", "custom.css",
            "--language", "de",
            "--marginX", "-10",
            "--marginY", "5",
            "--maxWidth", "800",
            "--no-restrictWidth",
            "--hideEmbed",
            "--hideRights",
            "--verbose",
        ]
    )
    assert config == BatchConfiguration(
        input_dir=Path("h5p-files"),
        output_dir=Path("exports"),
        export_format=ExportSelection.EXTERNAL,
        mastery_score=80,
        css_path=Path("custom.css"),
        language="de",
        margin_x=-10,
        margin_y=5,
        max_width=800,
        restrict_width=False,
        show_embed=False,
        show_rights=False,
        verbose=True,
    )


def test_restrict_width_flag_keeps_default_on() -> None:
    assert resolve_config(BASE + ["--restrictWidth"]).restrict_width is True


@pytest.mark.parametrize(
    "selector, formats",
    [
        ("scorm", (ExportFormat.SCORM,)),
        ("external", (ExportFormat.EXTERNAL,)),
        ("both", (ExportFormat.SCORM, ExportFormat.EXTERNAL)),
    ],
)
def test_format_selector(selector, formats) -> None:
    assert resolve_config(BASE + ["-f", selector]).formats == formats


def test_invalid_format() -> None:
    with pytest.raises(ConfigurationError, match="Format must be: scorm, external, or both"):
        resolve_config(BASE + ["-f", "pdf"])


@pytest.mark.parametrize("selector", ["SCORM", "Both", " scorm"])
def test_format_is_case_sensitive(selector) -> None:
    with pytest.raises(ConfigurationError, match="Format must be"):
        resolve_config(BASE + ["-f", selector])


def test_invalid_format_reported_before_other_flags() -> None:
    with pytest.raises(ConfigurationError, match="Format must be"):
        resolve_config(BASE + ["--masteryScore", "abc", "-f", "pdf"])


@pytest.mark.parametrize(
    "argv, message",
    [
        (["-o", "out"], "--input is required"),
        (["-i", "in"], "--output is required"),
        ([], "--input and --output are required"),
        (["-i", "", "-o", "out"], "--input is required"),
    ],
)
def test_missing_paths(argv, message) -> None:
    with pytest.raises(ConfigurationError, match=message):
        resolve_config(argv)


@pytest.mark.parametrize(
    "flag, hint",
    [
        ("--i", "Did you mean -i or --input?"),
        ("--o", "Did you mean -o or --output?"),
        ("--f", "Did you mean -f or --format?"),
        ("--m", "Did you mean -m or --masteryScore?"),
    ],
)
def test_unknown_option_hints(flag, hint) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_config([flag, "x"] + BASE)
    assert f"Unknown option: {flag}" in str(exc_info.value)
    assert hint in str(exc_info.value)


def test_unknown_option() -> None:
    with pytest.raises(ConfigurationError, match="Use --help for usage information"):
        resolve_config(BASE + ["--bogus"])


def test_non_integer_mastery() -> None:
    with pytest.raises(ConfigurationError):
        resolve_config(BASE + ["-m", "high"])


@pytest.mark.parametrize("score", ["-1", "101"])
def test_mastery_out_of_range(score) -> None:
    with pytest.raises(ConfigurationError, match="between 0 and 100"):
        resolve_config(BASE + ["-m", score])


def test_max_width_must_be_positive() -> None:
    with pytest.raises(ConfigurationError, match="positive"):
        resolve_config(BASE + ["--maxWidth", "0"])


def test_help_exits_successfully(capsys) -> None:
    with pytest.raises(typer.Exit) as exc_info:
        resolve_config(["--help"])
    assert exc_info.value.exit_code == 0
    assert "Usage" in capsys.readouterr().out


def test_resolution_touches_no_files(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    resolve_config(["-i", "missing-in", "-o", "missing-out"])
    with pytest.raises(ConfigurationError):
        resolve_config(["-i", "missing-in", "--bogus"])
    assert list(tmp_path.iterdir()) == []


def test_build_configuration_direct() -> None:
    config = build_configuration("in", "out", export_format="external", mastery_score=0)
    assert config.formats == (ExportFormat.EXTERNAL,)
    options = config.export_options(ExportFormat.EXTERNAL)
    assert options.mastery_score == 0
    assert options.restrict_width_and_center is True
    assert options.include_reporter is False
