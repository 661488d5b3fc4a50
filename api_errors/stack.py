"""Call-site capture and conversion to structured stack frames."""
from __future__ import annotations

import logging
import os
import re
import traceback
from collections.abc import Iterable
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .schemas import StackFrame

logger = logging.getLogger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))
_FRAME_LINE = re.compile(r'^\s*File "(?P<file>[^"]*)", line (?P<line>\d+)(?:, in (?P<function>.+))?$')
_FRAMES = TypeAdapter(list[StackFrame])


def capture_stack(limit: int | None = None) -> str:
    """Return the current call stack as traceback text, innermost frame last.

    Frames inside this package are left out so the trace starts at the
    caller that constructed the error.
    """
    frames = [
        frame
        for frame in traceback.extract_stack()
        if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR + os.sep)
    ]
    if limit is not None:
        frames = frames[-limit:] if limit > 0 else []
    return "".join(traceback.format_list(frames))


def exception_stack(exc: BaseException) -> str | None:
    """Traceback text of a raised exception, or None if it was never raised."""
    if exc.__traceback__ is None:
        return None
    return "".join(traceback.format_tb(exc.__traceback__))


def stack_to_structured(raw: str | None) -> list[StackFrame]:
    """Parse traceback text into frames, innermost first."""
    if not raw:
        return []
    frames: list[StackFrame] = []
    for line in raw.splitlines():
        match = _FRAME_LINE.match(line)
        if match is None:
            # Source lines and exception headers carry no frame data.
            continue
        frames.append(
            StackFrame(
                function=match.group("function"),
                file=match.group("file"),
                line=int(match.group("line")),
            )
        )
    frames.reverse()
    return frames


def coerce_frames(value: Any) -> list[StackFrame] | None:
    """Validate a pre-built structured stack, or return None if unusable."""
    if value is None:
        return None
    try:
        return _FRAMES.validate_python(value)
    except ValidationError:
        logger.warning("Ignoring malformed structured stack of type %s", type(value).__name__)
        return None


def frames_to_json(frames: Iterable[StackFrame]) -> list[dict[str, Any]]:
    return [frame.model_dump(exclude_none=True) for frame in frames]
