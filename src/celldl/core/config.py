"""
Project configuration for the celldl command line.

Settings live in ``celldl.toml`` or under ``[tool.celldl]`` in
``pyproject.toml``:

    [format]
    indent = 2
    line_ending = "lf"
    blank_lines_between_statements = true

    [diagnostics]
    max_errors = 100
    show_hints = true
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .printer import StringifyOptions

CONFIG_FILENAME = "celldl.toml"

LINE_ENDINGS = {"lf": "\n", "crlf": "\r\n"}


@dataclass
class FormatConfig:
    """Printer settings used by ``celldl fmt``."""

    indent: int = 2
    indent_string: str | None = None  # overrides indent, e.g. "\t"
    line_ending: str = "lf"  # "lf" | "crlf"
    blank_lines_between_statements: bool = True


@dataclass
class DiagnosticsConfig:
    """Report settings used by ``celldl check``."""

    max_errors: int = 100
    show_hints: bool = True


@dataclass
class CellDLConfig:
    format: FormatConfig = field(default_factory=FormatConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    source: Path | None = None  # file the settings were read from

    def to_stringify_options(self) -> StringifyOptions:
        indent = self.format.indent_string
        if indent is None:
            indent = " " * self.format.indent
        return StringifyOptions(
            indent=indent,
            line_ending=LINE_ENDINGS[self.format.line_ending],
            blank_lines_between_statements=self.format.blank_lines_between_statements,
        )


def _expect(value: Any, kind: type | tuple[type, ...], key: str) -> Any:
    # bool is an int subclass; reject it where a number is expected
    if isinstance(value, bool) and kind is int:
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    if not isinstance(value, kind):
        raise ConfigError(f"'{key}' has the wrong type: {value!r}")
    return value


def parse_config(data: dict[str, Any], source: Path | None = None) -> CellDLConfig:
    """
    Build a CellDLConfig from already-decoded TOML data.

    Raises:
        ConfigError: If a value has the wrong type or is out of range
    """
    format_data = data.get("format", {})
    diagnostics_data = data.get("diagnostics", {})

    indent = _expect(format_data.get("indent", 2), int, "format.indent")
    if indent < 0:
        raise ConfigError(f"'format.indent' must not be negative, got {indent}")

    indent_string = format_data.get("indent_string")
    if indent_string is not None:
        _expect(indent_string, str, "format.indent_string")

    line_ending = _expect(format_data.get("line_ending", "lf"), str, "format.line_ending")
    if line_ending not in LINE_ENDINGS:
        valid = ", ".join(LINE_ENDINGS)
        raise ConfigError(f"Unknown line ending '{line_ending}'. Valid values: {valid}")

    format_config = FormatConfig(
        indent=indent,
        indent_string=indent_string,
        line_ending=line_ending,
        blank_lines_between_statements=_expect(
            format_data.get("blank_lines_between_statements", True),
            bool,
            "format.blank_lines_between_statements",
        ),
    )

    max_errors = _expect(diagnostics_data.get("max_errors", 100), int, "diagnostics.max_errors")
    if max_errors < 1:
        raise ConfigError(f"'diagnostics.max_errors' must be at least 1, got {max_errors}")

    diagnostics_config = DiagnosticsConfig(
        max_errors=max_errors,
        show_hints=_expect(
            diagnostics_data.get("show_hints", True), bool, "diagnostics.show_hints"
        ),
    )

    return CellDLConfig(format=format_config, diagnostics=diagnostics_config, source=source)


def load_config(path: Path) -> CellDLConfig:
    """
    Load settings from ``celldl.toml`` or from ``[tool.celldl]`` in a pyproject.

    Raises:
        ConfigError: If the file is not valid TOML or holds invalid settings
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    if path.name == "pyproject.toml":
        data = data.get("tool", {}).get("celldl", {})

    return parse_config(data, source=path)


def find_config(start_dir: Path) -> CellDLConfig:
    """
    Walk up from ``start_dir`` to the first directory holding settings.

    A ``celldl.toml`` wins over a ``pyproject.toml`` in the same directory, and
    a pyproject without a ``[tool.celldl]`` table is skipped. Defaults are
    returned when nothing is found.
    """
    directory = start_dir.resolve()
    for candidate in [directory, *directory.parents]:
        config_path = candidate / CONFIG_FILENAME
        if config_path.is_file():
            return load_config(config_path)

        pyproject = candidate / "pyproject.toml"
        if pyproject.is_file():
            try:
                data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"{pyproject}: {e}") from e
            if "celldl" in data.get("tool", {}):
                return load_config(pyproject)

    return CellDLConfig()
