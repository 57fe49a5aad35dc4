"""
Text processing package for AESC Client
Turns parsed statement pages into clean fixed-width text
"""

from .math_normalizer import MathNormalizer, Formula
from .text_extractor import TextExtractor, ExtractionContext, ImageMode, Asset
from .cleaner import TextCleaner
from .line_wrapper import LineWrapper, DEFAULT_LINE_WIDTH

__all__ = [
    'MathNormalizer',
    'Formula',
    'TextExtractor',
    'ExtractionContext',
    'ImageMode',
    'Asset',
    'TextCleaner',
    'LineWrapper',
    'DEFAULT_LINE_WIDTH'
]
