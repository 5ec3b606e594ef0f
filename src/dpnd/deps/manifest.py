"""Manifest parsing: output directory plus the desired dependencies.

A manifest looks like:

    # Where dependencies are placed, relative to the manifest.
    target/deps

    my_scripts git git://host/my_scripts.git abcd1234

Blank lines and lines starting with `#` (after leading whitespace) are
ignored. The first remaining line is the output directory; every other line
is `local_name tool_name source version`.
"""
import re
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from dpnd.core.errors import ParseError, ParseErrorKind
from dpnd.tools.registry import ToolRegistry

BAD_DEP_NAME_CHAR = re.compile(r"[^A-Za-z0-9._-]")
# Only ASCII whitespace separates fields.
FIELD_SEPARATOR = re.compile(r"[ \t\n\r\f]+")

Line = Tuple[int, str]


class Dependency(BaseModel):
    """A pinned reference to an external source.

    Two dependencies are equal when tool, source and version all match; the
    local name is the key of the mapping that holds them.
    """

    model_config = ConfigDict(frozen=True)

    tool_name: str = Field(..., description="Name of the fetch tool that retrieves this dependency")
    source: str = Field(..., description="Opaque locator passed to the tool, e.g. a repository URL")
    version: str = Field(..., description="Opaque revision passed to the tool")

    def to_line(self, local_name: str) -> str:
        return f"{local_name} {self.tool_name} {self.source} {self.version}"


class Manifest(BaseModel):
    """Parsed manifest: desired state of one project."""

    output_dir: Path = Field(..., description="Output directory, relative to the manifest's directory")
    deps: Dict[str, Dependency] = Field(default_factory=dict)


def iter_lines(text: str) -> Iterator[Line]:
    """Yield `(line_number, line)` pairs with 1-based line numbers."""
    for i, line in enumerate(text.split("\n")):
        if line.endswith("\r"):
            line = line[:-1]
        yield i + 1, line


def is_skippable(line: str) -> bool:
    return line == "" or line.startswith("#")


def parse_manifest(text: str, registry: ToolRegistry, ledger_name: str) -> Manifest:
    """Parse manifest text into its output directory and dependencies.

    Raises:
        ParseError: On any grammar violation; `path` is left for the caller.
    """
    lines = iter_lines(text)
    output_dir = parse_output_dir(lines)
    deps = parse_dep_lines(lines, registry, ledger_name)
    return Manifest(output_dir=output_dir, deps=deps)


def parse_output_dir(lines: Iterator[Line]) -> Path:
    """Consume lines up to and including the output directory line."""
    for line_number, raw in lines:
        line = raw.lstrip()
        if is_skippable(line):
            continue

        parts: List[str] = []
        for part in line.rstrip().split("/"):
            if part in (".", ".."):
                raise ParseError(
                    ParseErrorKind.INVALID_OUTPUT_DIR_PART,
                    line_number=line_number,
                    line=line,
                    part=part,
                )
            if part:
                parts.append(part)

        if not parts:
            raise ParseError(
                ParseErrorKind.MISSING_OUTPUT_DIR,
                line_number=line_number,
                line=line,
            )
        return Path(*parts)

    raise ParseError(ParseErrorKind.MISSING_OUTPUT_DIR)


def parse_dep_lines(
    lines: Iterable[Line],
    registry: ToolRegistry,
    ledger_name: str,
    validate_names: bool = True,
) -> Dict[str, Dependency]:
    """Parse `local_name tool_name source version` lines.

    Name validation (allowed characters, reserved ledger name) is skipped
    when `validate_names` is False, which is how ledgers are read. Field
    count, names that aren't a single path component (`.`, `..`, anything
    with a separator), duplicates and unknown tools are always checked.
    """
    deps: Dict[str, Dependency] = {}
    defined_on: Dict[str, int] = {}

    for line_number, raw in lines:
        line = raw.lstrip()
        if is_skippable(line):
            continue

        fields = [f for f in FIELD_SEPARATOR.split(line) if f]
        if len(fields) != 4:
            raise ParseError(
                ParseErrorKind.INVALID_DEP_SPEC,
                line_number=line_number,
                line=line,
            )
        local_name, tool_name, source, version = fields

        if validate_names:
            bad = BAD_DEP_NAME_CHAR.search(local_name)
            if bad:
                raise ParseError(
                    ParseErrorKind.INVALID_DEP_NAME_CHAR,
                    line_number=line_number,
                    line=line,
                    dep_name=local_name,
                    bad_char_index=bad.start(),
                )
            if local_name == ledger_name:
                raise ParseError(
                    ParseErrorKind.RESERVED_DEP_NAME,
                    line_number=line_number,
                    line=line,
                    dep_name=local_name,
                )

        # Checked for ledgers too: the name becomes a directory under the
        # output directory, so it must be a single path component.
        if local_name in (".", ".."):
            raise ParseError(
                ParseErrorKind.RESERVED_DEP_NAME,
                line_number=line_number,
                line=line,
                dep_name=local_name,
            )
        if "/" in local_name or "\\" in local_name:
            bad_index = min(i for i, c in enumerate(local_name) if c in "/\\")
            raise ParseError(
                ParseErrorKind.INVALID_DEP_NAME_CHAR,
                line_number=line_number,
                line=line,
                dep_name=local_name,
                bad_char_index=bad_index,
            )

        if local_name in defined_on:
            raise ParseError(
                ParseErrorKind.DUPLICATE_DEP_NAME,
                line_number=line_number,
                line=line,
                dep_name=local_name,
                orig_line_number=defined_on[local_name],
            )

        if tool_name not in registry:
            raise ParseError(
                ParseErrorKind.UNKNOWN_TOOL,
                line_number=line_number,
                line=line,
                dep_name=local_name,
                tool_name=tool_name,
            )

        defined_on[local_name] = line_number
        deps[local_name] = Dependency(tool_name=tool_name, source=source, version=version)

    return deps
