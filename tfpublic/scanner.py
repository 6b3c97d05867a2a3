"""Discovery of marker-annotated output declarations in Terraform sources."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from .errors import UnreadableFile
from .logging import get_logger
from .models import AnnotatedDeclaration

DEFAULT_MARKER = "@public"
DEFAULT_KEYWORD = "output"

_DECLARATION_SUFFIXES = (".tf", ".tf.json")
_COMMENT_PREFIXES = ("#", "//")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".terraform",
    ".terragrunt-cache",
    ".idea",
    "node_modules",
}

_VALUE_ASSIGNMENT = re.compile(r"^\s*value\s*=(?P<expression>.*)$")


class _State(Enum):
    SEEKING = "seeking"
    ANNOTATED = "annotated"


def _split_code(line: str) -> Tuple[str, int, int]:
    """Return the line without trailing comments plus its brace counts.

    Braces and comment markers inside double-quoted strings are ignored.
    """
    opens = 0
    closes = 0
    in_string = False
    escaped = False
    index = 0
    while index < len(line):
        char = line[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "#" or line.startswith("//", index):
            return line[:index], opens, closes
        elif char == "{":
            opens += 1
        elif char == "}":
            closes += 1
        index += 1
    return line, opens, closes


def _capture_block(lines: Sequence[str], start: int) -> Tuple[List[str], int]:
    """Collect lines from ``start`` until the opening brace is balanced.

    Returns the captured lines and the index of the first line after the block.
    A block left open at end of file is closed there, and a stray closing brace
    seen before any opening brace ends the capture.
    """
    captured: List[str] = []
    depth = 0
    opened = False
    index = start
    while index < len(lines):
        line = lines[index]
        captured.append(line)
        index += 1
        _, opens, closes = _split_code(line)
        depth += opens - closes
        opened = opened or opens > 0
        if depth <= 0 and (opened or closes > 0):
            break
    return captured, index


def _unquote(expression: str) -> str:
    if len(expression) >= 2 and expression.startswith('"') and expression.endswith('"'):
        inner = expression[1:-1]
        return inner.replace('\\"', '"').replace("\\\\", "\\")
    return expression


def _iter_declaration_files(root: Path, excluded: Sequence[str]) -> Iterator[Path]:
    excluded_set = {item.strip("/") for item in excluded if item.strip("/")}
    for dirpath, dirnames, filenames in os.walk(root):
        current_dir = Path(dirpath)
        rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

        kept = []
        for name in sorted(dirnames):
            if name in _EXCLUDED_DIRS:
                continue
            rel_path = f"{rel_dir}/{name}" if rel_dir else name
            if rel_path in excluded_set:
                continue
            kept.append(name)
        dirnames[:] = kept

        for filename in sorted(filenames):
            if filename.endswith(_DECLARATION_SUFFIXES):
                yield current_dir / filename


class AnnotationScanner:
    """Finds declarations tagged as publicly exposable by a marker comment."""

    def __init__(
        self,
        marker: str = DEFAULT_MARKER,
        *,
        keyword: str = DEFAULT_KEYWORD,
        exclude_dirs: Iterable[str] = (),
    ) -> None:
        if not marker:
            raise ValueError("marker token must be a non-empty string")
        self.marker = marker
        self.keyword = keyword
        self.exclude_dirs = list(exclude_dirs)
        self.logger = get_logger("scanner")
        self._keyword_start = re.compile(rf"{re.escape(keyword)}\s+\"")
        self._name_pattern = re.compile(rf"{re.escape(keyword)}\s+\"([^\"]+)\"")

    def scan(self, root: str | Path) -> List[AnnotatedDeclaration]:
        """Return annotated declarations across every declaration file under ``root``."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {root}")

        declarations: List[AnnotatedDeclaration] = []
        for path in _iter_declaration_files(root_path, self.exclude_dirs):
            self.logger.debug("Processing file: %s", path)
            declarations.extend(
                self.scan_file(path, display_path=path.relative_to(root_path))
            )
        return declarations

    def scan_file(
        self, path: Path, *, display_path: Optional[Path] = None
    ) -> List[AnnotatedDeclaration]:
        """Scan a single file; read and decode failures abort with UnreadableFile."""
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise UnreadableFile(path, str(exc)) from exc
        return self.scan_text(text, display_path or path)

    def scan_text(self, text: str, file: Path) -> List[AnnotatedDeclaration]:
        lines = text.splitlines()
        declarations: List[AnnotatedDeclaration] = []
        state = _State.SEEKING
        index = 0
        while index < len(lines):
            stripped = lines[index].strip()
            if stripped.startswith(_COMMENT_PREFIXES):
                if self.marker in stripped:
                    if state is _State.SEEKING:
                        self.logger.debug("%s annotation found at %s:%d", self.marker, file, index + 1)
                    state = _State.ANNOTATED
                index += 1
                continue

            # Unrelated code between the marker and the block keeps the annotation pending.
            if state is _State.ANNOTATED and self._keyword_start.match(stripped):
                start_line = index + 1
                block, index = _capture_block(lines, index)
                declaration = self._extract(block, file, start_line)
                if declaration is not None:
                    declarations.append(declaration)
                else:
                    self.logger.debug(
                        "Annotated block at %s:%d has no name or value; skipping",
                        file,
                        start_line,
                    )
                state = _State.SEEKING
                continue

            index += 1
        return declarations

    def _extract(
        self, block: Sequence[str], file: Path, line: int
    ) -> Optional[AnnotatedDeclaration]:
        text = "\n".join(block)
        name_match = self._name_pattern.search(text)
        if name_match is None:
            return None

        expression = self._value_expression(text)
        if not expression:
            return None

        return AnnotatedDeclaration(
            file=file,
            line=line,
            name=name_match.group(1),
            reference_expression=expression,
        )

    @staticmethod
    def _value_expression(block_text: str) -> Optional[str]:
        start = block_text.find("{")
        end = block_text.rfind("}")
        if start == -1:
            return None
        body = block_text[start + 1 : end] if end > start else block_text[start + 1 :]

        depth = 0
        for raw_line in body.split("\n"):
            code, opens, closes = _split_code(raw_line)
            if depth == 0:
                match = _VALUE_ASSIGNMENT.match(code)
                if match is not None:
                    return _unquote(match.group("expression").strip())
            depth += opens - closes
        return None


__all__ = ["AnnotationScanner", "DEFAULT_KEYWORD", "DEFAULT_MARKER"]
