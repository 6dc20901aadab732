"""Stack capture, stack filtering and source-path rewriting for error reports."""

from __future__ import annotations

import functools
import inspect
import os
import re
import sysconfig
import traceback
from typing import NamedTuple

from errtrail.config import Config
from errtrail.consts import Severity

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_STACK_HEADER = "Stack (most recent call last):"
_FRAME_LINE = re.compile(r'^\s*File "([^"]+)"')
_FILE_REFERENCE = re.compile(r'File "([^"]+)"')

_PRIORITY = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class CallerInfo(NamedTuple):
    """Source location of the code that created an error."""

    file: str
    line: int
    function: str


@functools.lru_cache(maxsize=None)
def find_project_root() -> str:
    """Return the absolute working directory, fixed at first call."""
    try:
        return os.path.abspath(os.getcwd())
    except OSError:
        return ""


def _stdlib_root() -> str:
    return sysconfig.get_paths().get("stdlib", "")


def _in_package(path: str) -> bool:
    return os.path.abspath(path).startswith(_PACKAGE_DIR + os.sep)


def _relocate(path: str) -> str:
    """Map a path under the project root to /root/..., under the stdlib to /python/..."""
    for base, prefix in ((find_project_root(), "/root/"), (_stdlib_root(), "/python/")):
        if not base or not path.startswith(base):
            continue
        try:
            rel = os.path.relpath(path, base)
        except ValueError:
            continue
        if not rel.startswith(".."):
            return prefix + rel.replace(os.sep, "/")
    return path


def _rewrite_line(line: str) -> str:
    body = line.lstrip(" \t")
    indent = line[: len(line) - len(body)]
    if _FILE_REFERENCE.search(body):
        body = _FILE_REFERENCE.sub(lambda m: f'File "{_relocate(m.group(1))}"', body)
    else:
        parts = body.split()
        if parts:
            moved = _relocate(parts[0])
            if moved != parts[0]:
                body = " ".join([moved, *parts[1:]])
    return indent + body


def rewrite_paths(raw: str) -> str:
    """Rewrite absolute paths in a stack dump; every line gets a trailing newline."""
    return "".join(_rewrite_line(line) + "\n" for line in raw.split("\n"))


def filter_internal(raw: str) -> str:
    """Drop every frame of a stack dump whose file lives inside this package."""
    lines = raw.split("\n")
    kept = [lines[0]]
    keep = True
    for line in lines[1:]:
        match = _FRAME_LINE.match(line)
        if match:
            keep = not _in_package(match.group(1))
        if keep and line:
            kept.append(line)
    return "".join(line + "\n" for line in kept)


def capture_stack(config: Config, severity: Severity | int) -> str:
    """Return the caller's stack, or "" when disabled or below the configured level."""
    if not config.capture_stack:
        return ""
    if _PRIORITY.get(severity, 0) < _PRIORITY.get(config.stack_severity_level, 0):
        return ""
    frames = traceback.format_stack()[:-1]
    raw = _STACK_HEADER + "\n" + "".join(frames)
    if config.filter_internal_stack:
        raw = filter_internal(raw)
    return rewrite_paths(raw)


def get_caller_info() -> CallerInfo:
    """Return the first frame outside this package, with its path rewritten."""
    frame = inspect.currentframe()
    try:
        while frame is not None:
            code = frame.f_code
            if not _in_package(code.co_filename):
                qualname = getattr(code, "co_qualname", code.co_name)
                module = inspect.getmodulename(code.co_filename) or ""
                function = f"{module}.{qualname}" if module else qualname
                return CallerInfo(_relocate(code.co_filename), frame.f_lineno, function)
            frame = frame.f_back
    finally:
        del frame
    return CallerInfo("unknown", 0, "unknown")