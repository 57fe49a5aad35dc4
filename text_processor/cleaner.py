"""
Text cleaner for extracted statements

Statements on the judge are often pasted from a word processor, so the raw
text stream contains style sheets, conditional comments and other authoring
leftovers. TextCleaner removes them and normalizes the blank-line structure:

1. remove HTML comment blocks (vendor editor dumps first)
2. drop junk lines (CSS, bare tags, "none"/"html" markers)
3. collapse runs of blank lines
4. trim leading blank lines
5. put exactly one blank line around section headings
6. trim trailing blank lines
"""

import re
import logging
from typing import List

logger = logging.getLogger(__name__)

# Word/Outlook pastes: conditional comments and style definition dumps
VENDOR_COMMENT_RE = re.compile(
    r'<!--\s*(?:\[if\s[^\]]*\]|/\*\s*(?:Font|Style|List|Page)\s+Definitions\s*\*/).*?-->',
    re.DOTALL | re.IGNORECASE
)
COMMENT_RE = re.compile(r'<!--.*?-->', re.DOTALL)

JUNK_LINE_PATTERNS = [
    re.compile(r'^(?:none|html)$', re.IGNORECASE),
    re.compile(r'^(?:</?[A-Za-z][\w:-]*(?:\s+[^>]*)?/?>\s*)+$'),   # bare tag fragments
    re.compile(r'^/\*'),                                   # CSS comment start
    re.compile(r'\*/$'),                                   # CSS comment end
    re.compile(r'^[\w\s.#:,>*\[\]="\'-]*\{\s*(?:[\w-]+\s*:.*)?$'),  # selector {
    re.compile(r'^(?:mso-[\w-]+|[a-z]+(?:-[a-z]+)+)\s*:[^;$]*;\s*\}?$'),
    re.compile(r'^(?:margin|padding|color|size|border|width|height|font|background|panose-1)'
               r'\s*:[^;$]*;\s*\}?$'),
    re.compile(r'^@(?:page|font-face|list)\b', re.IGNORECASE),
    re.compile(r'font-family', re.IGNORECASE),
    re.compile(r'^[{}\s;]+$'),                             # bare braces
    re.compile(r'^(?:<!--|-->|<!\[endif\]>?)$', re.IGNORECASE),
    # script statements
    re.compile(r'^(?:(?:var|let|const|function|if|else|for|while|return)\b'
               r'|(?:document|window|MathJax)\.).*[;{}]$'),
]

SECTION_HEADINGS = {
    'problem', 'problem statement', 'statement', 'legend',
    'input', 'input format', 'input data', 'input specification',
    'output', 'output format', 'output data', 'output specification',
    'example', 'examples', 'sample', 'samples', 'sample input', 'sample output',
    'note', 'notes',
    'time limit', 'memory limit', 'limits',
    'условие', 'условие задачи',
    'входные данные', 'формат входных данных', 'формат ввода',
    'выходные данные', 'формат выходных данных', 'формат вывода',
    'пример', 'примеры', 'примечание', 'примечания',
    'ограничение времени', 'ограничение памяти', 'ограничения',
}


class TextCleaner:
    """
    Strip authoring artifacts from extracted text and normalize blank lines
    """

    def clean(self, text: str) -> str:
        if not text:
            return ""

        text = self.remove_comments(text)
        lines = self.drop_junk_lines(text.split('\n'))
        lines = self.collapse_blank_lines(lines)
        lines = self.trim_leading_blank_lines(lines)
        lines = self.space_section_headings(lines)
        lines = self.trim_trailing_blank_lines(lines)
        return '\n'.join(lines)

    def remove_comments(self, text: str) -> str:
        text = text.replace('\r\n', '\n').replace('\r', '\n')
        text = VENDOR_COMMENT_RE.sub('', text)
        return COMMENT_RE.sub('', text)

    def is_junk_line(self, line: str) -> bool:
        return any(pattern.search(line) for pattern in JUNK_LINE_PATTERNS)

    def drop_junk_lines(self, lines: List[str]) -> List[str]:
        kept = []
        for line in lines:
            line = line.strip()
            if line and self.is_junk_line(line):
                logger.debug(f"Dropping junk line: {line[:60]!r}")
                continue
            kept.append(line)
        return kept

    @staticmethod
    def collapse_blank_lines(lines: List[str]) -> List[str]:
        out: List[str] = []
        for line in lines:
            if not line and out and not out[-1]:
                continue
            out.append(line)
        return out

    @staticmethod
    def trim_leading_blank_lines(lines: List[str]) -> List[str]:
        start = 0
        while start < len(lines) and not lines[start]:
            start += 1
        return lines[start:]

    @staticmethod
    def trim_trailing_blank_lines(lines: List[str]) -> List[str]:
        end = len(lines)
        while end > 0 and not lines[end - 1]:
            end -= 1
        return lines[:end]

    @staticmethod
    def is_section_heading(line: str) -> bool:
        return line.rstrip(':').strip().lower() in SECTION_HEADINGS

    def space_section_headings(self, lines: List[str]) -> List[str]:
        out: List[str] = []
        for line in lines:
            if not self.is_section_heading(line):
                # blank already emitted after the previous heading
                if not line and out and not out[-1]:
                    continue
                out.append(line)
                continue

            if out and out[-1]:
                out.append('')
            out.append(line)
            out.append('')
        return out
