"""text_processor.math_normalizer
=================================

Reduction of MathJax ``<script type="math/tex">`` payloads to a bare TeX
expression plus a display/inline flag.

Statement pages carry their formulas as raw TeX inside script tags, wrapped
in whatever delimiters the author happened to type (``$$``, ``\\[``,
``\\(``, ``$``) or in none at all, sometimes surrounded by stray HTML
comment fragments.  :class:`MathNormalizer` strips those delimiters and, when
asked to, applies a small table of plain-text substitutions so the formula
reads well in a fixed-width document.  No real TeX parsing is attempted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger(__name__)

# (opening, closing, display) in match priority order
DELIMITERS = (
    ('$$', '$$', True),
    ('\\[', '\\]', True),
    ('\\(', '\\)', False),
    ('$', '$', False),
)

COMMENT_TRIM_RE = re.compile(
    r'^\s*(?:<!--.*?-->\s*)*(.*?)(?:\s*<!--.*?-->\s*)*\s*$', re.DOTALL
)
BRACED_EXPONENT_RE = re.compile(r'\^\{(\d+)\}')

# Order matters: longer commands first
SUBSTITUTIONS: Dict[str, str] = {
    r'\cdot': '*',
    r'\times': 'x',
    r'\leq': '<=',
    r'\le': '<=',
    r'\geq': '>=',
    r'\ge': '>=',
    r'\ldots': '...',
    r'\;': ' ',
}


@dataclass(frozen=True)
class Formula:
    """Normalized formula ready to be written as ``$expr$`` or ``$$expr$$``."""
    expression: str
    display: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.expression

    def render(self) -> str:
        if self.display:
            return f"$${self.expression}$$"
        return f"${self.expression}$"


def _command_pattern(command: str) -> re.Pattern:
    # Letter commands must not swallow a longer name (\le vs \left)
    if command[-1].isalpha():
        return re.compile(re.escape(command) + r'(?![A-Za-z])')
    return re.compile(re.escape(command))


class MathNormalizer:
    """Strip TeX delimiters and optionally apply plain-text substitutions.

    Args:
        substitutions: apply the cosmetic pass (exponent collapsing and the
            :data:`SUBSTITUTIONS` table) to every normalized expression.
    """

    def __init__(self, substitutions: bool = False):
        self.substitutions = substitutions
        self._patterns = [(_command_pattern(cmd), repl) for cmd, repl in SUBSTITUTIONS.items()]

    def normalize(self, raw: str) -> Formula:
        """Normalize a raw script payload.

        >>> MathNormalizer().normalize('$$x^2$$')
        Formula(expression='x^2', display=True)
        >>> MathNormalizer().normalize('\\\\(y\\\\)')
        Formula(expression='y', display=False)
        """
        formula = self._strip_delimiters(raw or '')
        if self.substitutions and not formula.is_empty:
            formula = Formula(self.apply_substitutions(formula.expression), formula.display)
        return formula

    def _strip_delimiters(self, raw: str) -> Formula:
        text = raw.strip()
        if not text:
            return Formula('', False)

        for opening, closing, display in DELIMITERS:
            min_length = len(opening) + len(closing)
            if len(text) > min_length and text.startswith(opening) and text.endswith(closing):
                return Formula(text[len(opening):-len(closing)].strip(), display)

        match = COMMENT_TRIM_RE.match(text)
        if match:
            text = match.group(1)
        return Formula(text.strip(), False)

    def apply_substitutions(self, expression: str) -> str:
        """Cosmetic pass: ``^{10}`` -> ``^10``, ``\\le`` -> ``<=`` and friends."""
        expression = BRACED_EXPONENT_RE.sub(r'^\1', expression)
        for pattern, replacement in self._patterns:
            expression = pattern.sub(replacement, expression)
        return expression
