from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mdcc import __version__, cli
from mdcc.exceptions import ArgumentFileError, InvalidConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


@pytest.mark.unit
def test_split_groups_on_double_dash() -> None:
    assert cli.split_groups(["a", "--x", "--", "b", "--", "--"]) == [["a", "--x"], ["b"]]


@pytest.mark.unit
def test_expand_at_arguments(tmp_path: Path) -> None:
    single = tmp_path / "instructions.md"
    single.write_text("Convert to YAML.\nKeep comments.\n", encoding="utf-8")
    listing = tmp_path / "files.txt"
    listing.write_text("src/*.py\n\n  docs/*.md  \n", encoding="utf-8")

    expanded = cli.expand_at_arguments([f"@@{listing}", "--file-instructions", f"@{single}", "@"])

    assert expanded == ["src/*.py", "docs/*.md", "--file-instructions", "Convert to YAML.\nKeep comments.", "@"]


@pytest.mark.unit
def test_expand_at_arguments_keeps_literal_when_no_such_file(tmp_path: Path) -> None:
    missing = f"@{tmp_path / 'nope.txt'}"

    assert cli.expand_at_arguments(["--line-contains", "@Override", missing, "@@Override"]) == [
        "--line-contains",
        "@Override",
        missing,
        "@@Override",
    ]


@pytest.mark.unit
def test_expand_at_arguments_unreadable_file(tmp_path: Path) -> None:
    with pytest.raises(ArgumentFileError):
        cli.expand_at_arguments([f"@{tmp_path}"])


@pytest.mark.unit
def test_main_accepts_at_sign_regex(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "Main.java").write_text("class Main {\n    @Override\n    void run() {}\n}\n", encoding="utf-8")

    assert cli.main(["*.java", "--line-contains", "@Override", "--lines-after", "1"]) == 0

    assert "```\n    @Override\n    void run() {}\n```" in capsys.readouterr().out


@pytest.mark.unit
def test_parse_args_contains_feeds_file_and_line_filters() -> None:
    settings = cli.parse_args(["src/**", "--contains", "(?i)llm", "--lines", "2", "--lines-after", "0"])

    group = settings.groups[0]
    assert [p.pattern for p in group.include_file_contains] == ["(?i)llm"]
    assert [p.pattern for p in group.include_line_contains] == ["(?i)llm"]
    assert group.lines_before == 2
    assert group.lines_after == 0


@pytest.mark.unit
def test_parse_args_builds_one_group_per_segment() -> None:
    max_threads = 4
    settings = cli.parse_args(
        [
            "*.md",
            "--line-numbers",
            "--verbose",
            "--",
            "src/*.cs",
            "--remove-all-lines",
            r"^\s*//",
            "--threads",
            str(max_threads),
            "--file-instructions",
            "step one",
            "step two",
        ],
    )

    first, second = settings.groups
    assert first.globs == ["*.md"]
    assert first.line_numbers is True
    assert second.globs == ["src/*.cs"]
    assert second.line_numbers is False
    assert second.file_instructions == ["step one", "step two"]
    assert second.threads == max_threads
    assert settings.verbose is True


@pytest.mark.unit
def test_parse_args_loads_config_file(tmp_path: Path) -> None:
    config = tmp_path / "mdcc.yaml"
    config.write_text("debug: true\ngroups:\n  - globs: ['docs/*.md']\n", encoding="utf-8")

    settings = cli.parse_args(["--config", str(config), "--", "src/*.py"])

    assert [g.globs for g in settings.groups] == [["docs/*.md"], ["src/*.py"]]
    assert settings.debug is True


@pytest.mark.unit
def test_parse_args_requires_globs() -> None:
    with pytest.raises(InvalidConfigurationError, match="No file patterns"):
        cli.parse_args(["--verbose"])


@pytest.mark.unit
def test_parse_args_version_flag(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        cli.parse_args(["--version"])

    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_main_without_arguments_prints_usage(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main([]) == 1

    out = capsys.readouterr().out
    assert "MDCC - Markdown Context Creator" in out
    assert "USAGE: mdcc" in out


@pytest.mark.unit
def test_main_rejects_invalid_regex_before_reading_files(
    capsys: pytest.CaptureFixture[str],
    mocker: MockerFixture,
) -> None:
    run = mocker.patch.object(cli, "run")

    assert cli.main(["*.py", "--line-contains", "(broken"]) == 2

    run.assert_not_called()
    assert "Invalid regular expression" in capsys.readouterr().out


@pytest.mark.unit
def test_main_rejects_negative_radius(mocker: MockerFixture) -> None:
    run = mocker.patch.object(cli, "run")

    assert cli.main(["*.py", "--lines-before", "-1"]) == 2

    run.assert_not_called()
