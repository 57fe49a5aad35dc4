"""
Greedy word wrapping of extracted statements to a fixed column width.
"""

import logging
from typing import List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LINE_WIDTH = 170


class LineWrapper:
    """
    Reflow every non-blank line so that no output line is wider than
    ``width`` characters. Blank lines (paragraph separators) are kept.
    A word longer than the width is put on a line of its own, untouched.
    """

    def __init__(self, width: Optional[int] = DEFAULT_LINE_WIDTH):
        if width is None or width <= 0:
            logger.debug(f"Invalid line width {width!r}, using {DEFAULT_LINE_WIDTH}")
            width = DEFAULT_LINE_WIDTH
        self.width = width

    def wrap(self, text: str) -> str:
        out_lines: List[str] = []
        for line in text.split('\n'):
            if not line.strip():
                out_lines.append('')
                continue
            out_lines.extend(self.wrap_line(line))
        return '\n'.join(out_lines)

    def wrap_line(self, line: str) -> List[str]:
        wrapped: List[str] = []
        current: List[str] = []
        current_length = 0

        for word in line.split():
            if not current:
                current, current_length = [word], len(word)
            elif current_length + 1 + len(word) <= self.width:
                current.append(word)
                current_length += 1 + len(word)
            else:
                wrapped.append(' '.join(current))
                current, current_length = [word], len(word)

        if current:
            wrapped.append(' '.join(current))
        return wrapped
