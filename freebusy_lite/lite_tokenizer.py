"""Line unfolding and content-line splitting for iCalendar text - freebusy_lite."""

import logging
import re
from typing import Optional, Union

from icalendar.parser import Contentline

from .lite_models import ContentLine, PropertyParams

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r?\n")


def unfold_lines(raw_text: str) -> list[str]:
    """Join folded physical lines into logical lines.

    A physical line starting with a single space or tab continues the previous
    logical line; that leading character is removed and the rest appended.
    A continuation with nothing before it is dropped. Trailing whitespace is
    trimmed from every logical line.

    >>> unfold_lines("A:1\\r\\n B\\r\\nC:2")
    ['A:1B', 'C:2']
    """
    unfolded: list[str] = []
    for line in _LINE_BREAK.split(raw_text):
        if line.startswith((" ", "\t")):
            if not unfolded:
                continue
            unfolded[-1] = (unfolded[-1] + line[1:]).rstrip()
        else:
            unfolded.append(line.rstrip())
    return unfolded



def _first_value(value: Union[str, list[str]]) -> str:
    """Parameter values given as a comma list keep their first entry."""
    if isinstance(value, list):
        return value[0] if value else ""
    return value


def parse_content_line(line: str) -> Optional[ContentLine]:
    """Split a logical line into property name, parameters and value.

    Property and parameter names are upper-cased; parameter values keep
    their case with surrounding quotes removed. A parameter repeated on one
    line keeps its last value.

    Returns:
        ContentLine, or None when the line has no name/value separator or
        its parameters cannot be parsed
    """
    content_line = Contentline(line)
    if content_line.value_separator_index() <= 0:
        return None

    try:
        name, params, value = content_line.parts()
    except ValueError as e:
        logger.debug("Ignoring unparseable content line: %s", e)
        return None

    pairs = [(key.upper(), _first_value(raw)) for key, raw in params.items()]
    return ContentLine(
        name=name.upper(), params=PropertyParams.from_pairs(pairs), value=value.strip()
    )
