from __future__ import annotations

import re
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from mdcc.exceptions import InvalidConfigurationError
from mdcc.settings import GroupSettings, Settings, compile_patterns

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.unit
def test_group_settings_defaults() -> None:
    group = GroupSettings(globs=["*.py"])

    assert group.lines_before == 0
    assert group.lines_after == 0
    assert group.line_numbers is False
    assert group.file_instructions == []
    assert group.filters_lines is False


@pytest.mark.unit
def test_group_settings_compiles_patterns() -> None:
    group = GroupSettings(globs=["*"], include_line_contains=["(?i)todo"], remove_all_lines=re.compile("^#"))

    assert group.include_line_contains[0].search("TODO: x")
    assert group.remove_all_lines[0].pattern == "^#"
    assert group.filters_lines is True


@pytest.mark.unit
def test_group_settings_rejects_invalid_regex() -> None:
    with pytest.raises(ValidationError, match="Invalid regular expression"):
        GroupSettings(globs=["*"], include_line_contains=["(unclosed"])


@pytest.mark.unit
def test_group_settings_rejects_negative_radius_and_missing_globs() -> None:
    with pytest.raises(ValidationError):
        GroupSettings(globs=["*"], lines_before=-1)
    with pytest.raises(ValidationError):
        GroupSettings(globs=[])


@pytest.mark.unit
def test_compile_patterns_accepts_none_and_single_string() -> None:
    assert compile_patterns(None) == []
    assert [p.pattern for p in compile_patterns("abc")] == ["abc"]


@pytest.mark.unit
def test_settings_from_yaml(tmp_path: Path) -> None:
    config = tmp_path / "mdcc.yaml"
    config.write_text(
        "verbose: true\n"
        "groups:\n"
        "  - globs: ['src/**/*.py']\n"
        "    include_line_contains: ['def ']\n"
        "    lines_after: 2\n"
        "  - globs: ['*.md']\n"
        "    threads: 3\n",
        encoding="utf-8",
    )

    settings = Settings.from_yaml(config)

    assert settings.verbose is True
    assert len(settings.groups) == 2
    assert settings.groups[0].lines_after == 2
    assert settings.groups[1].threads == 3


@pytest.mark.unit
def test_settings_from_yaml_rejects_non_mapping(tmp_path: Path) -> None:
    config = tmp_path / "mdcc.yaml"
    config.write_text("- just\n- a list\n", encoding="utf-8")

    with pytest.raises(InvalidConfigurationError, match="must contain a mapping"):
        Settings.from_yaml(config)


@pytest.mark.unit
def test_settings_from_yaml_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigurationError, match="Cannot load config file"):
        Settings.from_yaml(tmp_path / "absent.yaml")
