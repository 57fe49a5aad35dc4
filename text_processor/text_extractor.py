"""
Text extractor for AESC Client

This module walks a parsed statement page (BeautifulSoup tree) depth first and
synthesizes the plain-text statement: paragraphs separated by blank lines,
"- " list items, formulas from MathJax script tags written as $expr$ or
$$expr$$, and images either referenced as downloaded files or replaced by
their alt text.

Example:
    >>> soup = BeautifulSoup("<p>Let <script type='math/tex'>n</script> be</p>", 'lxml')
    >>> context = ExtractionContext(base_url="http://server.aesc.msu.ru/cs/")
    >>> TextExtractor(ImageMode.INLINE).extract(soup, context)
    'Let $n$ be\\n\\n'
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from text_processor.math_normalizer import MathNormalizer
from utils.error_handler import AescClientError
from utils.file_manager import FileManager
from utils.url_parser import URLParser

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r'\s+')

BLOCK_TAGS = {'p', 'div', 'section', 'article'}
LIST_TAGS = {'ul', 'ol'}
RAW_TEXT_TAGS = {'style', 'script'}

IMAGE_PLACEHOLDER = "[IMAGE]"
LIST_ITEM_PREFIX = "- "


class ImageMode(Enum):
    """How <img> elements are rendered"""
    FILE = "file"       # download to the assets dir, emit [IMAGE: path] / Alt: lines
    INLINE = "inline"   # no I/O, emit alt text or [IMAGE] in the running text


@dataclass
class Asset:
    """Image saved (or meant to be saved) next to the statement"""
    sequence_number: int
    source_url: str
    saved_path: str
    extension: str
    downloaded: bool = False


@dataclass
class ExtractionContext:
    """
    Per-run extraction state.

    Attributes:
        base_url: URL relative links are resolved against
        assets_dir: directory for downloaded images; None disables downloads
        image_sequence: number given to the next image, starts at 1
        assets: images seen during the run, in document order
    """
    base_url: str
    assets_dir: Optional[Path] = None
    image_sequence: int = 1
    assets: List[Asset] = field(default_factory=list)

    def next_image_number(self) -> int:
        number = self.image_sequence
        self.image_sequence += 1
        return number


class _TextBuffer:
    """Accumulates output and tracks whether we are at the start of a line."""

    def __init__(self):
        self._parts: List[str] = []
        self._line: List[str] = []
        self._prefix_only = False

    @property
    def at_line_start(self) -> bool:
        return not self._line

    @property
    def after_space(self) -> bool:
        return self.at_line_start or self._line[-1].endswith(' ')

    def write(self, text: str) -> None:
        if text:
            self._line.append(text)
            self._prefix_only = False

    def write_prefix(self, prefix: str) -> None:
        """Start a line with a marker such as "- " that the next write continues."""
        self.start_line()
        self._line.append(prefix)
        self._prefix_only = True

    def newline(self) -> None:
        self._parts.append(''.join(self._line).rstrip() + '\n')
        self._line = []
        self._prefix_only = False

    def start_line(self) -> None:
        # A line holding only a prefix already is a fresh line
        if not self.at_line_start and not self._prefix_only:
            self.newline()

    def end_line(self) -> None:
        if not self.at_line_start:
            self.newline()

    def paragraph_break(self) -> None:
        if self._prefix_only:
            return
        self.start_line()
        if self._parts and self._parts[-1] != '\n':
            self._parts.append('\n')

    def getvalue(self) -> str:
        return ''.join(self._parts) + ''.join(self._line)


class TextExtractor:
    """
    Depth-first DOM walk that turns a statement page into text.

    Args:
        image_mode (ImageMode): FILE downloads images and writes markers,
            INLINE writes alt text only
        math_normalizer (Optional[MathNormalizer]): formula normalizer,
            defaults to one without cosmetic substitutions
        fetch_asset (Optional[Callable[[str, Path], object]]): downloader used
            in FILE mode, typically BaseScraper.download_to_file
    """

    def __init__(self, image_mode: ImageMode = ImageMode.INLINE,
                 math_normalizer: Optional[MathNormalizer] = None,
                 fetch_asset: Optional[Callable[[str, Path], object]] = None):
        self.image_mode = image_mode
        self.math_normalizer = math_normalizer or MathNormalizer()
        self.fetch_asset = fetch_asset
        self.url_parser = URLParser()
        self._buffer = _TextBuffer()
        self._context: Optional[ExtractionContext] = None

    def extract(self, root, context: ExtractionContext) -> str:
        """
        Extract text from a parsed page.

        Args:
            root: BeautifulSoup document or Tag to start from
            context (ExtractionContext): run state; its image counter and
                asset list are updated

        Returns:
            str: raw text, to be passed through TextCleaner and LineWrapper
        """
        self._buffer = _TextBuffer()
        self._context = context
        if root is not None:
            self._walk(root)
        return self._buffer.getvalue()

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _walk(self, node) -> None:
        if isinstance(node, NavigableString):
            self._handle_text(node)
            return
        if not isinstance(node, Tag):
            return

        name = (node.name or '').lower()
        if name in BLOCK_TAGS:
            self._walk_children(node)
            self._buffer.paragraph_break()
        elif name == 'br':
            self._buffer.newline()
        elif name in LIST_TAGS:
            self._handle_list(node)
        elif name == 'img':
            self._handle_image(node)
        elif name == 'script' and self._is_math_script(node):
            self._handle_math(node)
        else:
            self._walk_children(node)

    def _walk_children(self, node: Tag) -> None:
        for child in node.children:
            self._walk(child)

    # ------------------------------------------------------------------
    # Per-element rules
    # ------------------------------------------------------------------
    def _handle_text(self, node: NavigableString) -> None:
        # Comments, doctype, CDATA
        if isinstance(node, PreformattedString):
            return
        if node.parent is not None and node.parent.name in RAW_TEXT_TAGS:
            self._handle_raw_text(str(node))
            return
        text = WHITESPACE_RE.sub(' ', str(node))
        if self._buffer.after_space:
            text = text.lstrip()
        self._buffer.write(text)

    def _handle_raw_text(self, text: str) -> None:
        # Style sheets and scripts keep their own lines so that the cleaner
        # can drop them line by line
        self._buffer.start_line()
        for line in text.splitlines():
            line = WHITESPACE_RE.sub(' ', line).strip()
            if line:
                self._buffer.write(line)
                self._buffer.newline()

    def _handle_list(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Tag) and child.name == 'li':
                self._buffer.write_prefix(LIST_ITEM_PREFIX)
                self._walk_children(child)
                self._buffer.end_line()

    def _handle_image(self, node: Tag) -> None:
        alt = WHITESPACE_RE.sub(' ', node.get('alt') or '').strip()
        if self.image_mode is ImageMode.INLINE:
            self._buffer.write(alt or IMAGE_PLACEHOLDER)
            return

        src = (node.get('src') or '').strip()
        if not src:
            logger.debug("Skipping <img> without src")
            return

        asset = self._save_image(src)
        self._buffer.start_line()
        self._buffer.write(f"[IMAGE: {asset.saved_path}]")
        self._buffer.newline()
        if alt:
            self._buffer.write(f"Alt: {alt}")
            self._buffer.newline()

    def _save_image(self, src: str) -> Asset:
        context = self._context
        number = context.next_image_number()
        resolved = self.url_parser.resolve_url(context.base_url, src)
        extension = self.url_parser.get_extension(resolved)
        name = FileManager.asset_filename(number, extension)

        if context.assets_dir is None:
            asset = Asset(number, resolved, name, extension)
        else:
            dest = Path(context.assets_dir) / name
            asset = Asset(number, resolved, str(dest), extension)
            asset.downloaded = self._download(resolved, dest)

        context.assets.append(asset)
        return asset

    def _download(self, url: str, dest: Path) -> bool:
        if self.fetch_asset is None:
            return False
        try:
            self.fetch_asset(url, dest)
        except AescClientError as e:
            # The marker still references the intended file
            logger.warning(f"Could not download image {url}: {e}")
            return False
        return True

    @staticmethod
    def _is_math_script(node: Tag) -> bool:
        script_type = node.get('type') or ''
        return 'math' in script_type.lower()

    def _handle_math(self, node: Tag) -> None:
        raw = ''.join(str(s) for s in node.find_all(string=True)).strip()
        formula = self.math_normalizer.normalize(raw)
        if formula.is_empty:
            return
        if formula.display:
            self._buffer.start_line()
            self._buffer.write(formula.render())
            self._buffer.newline()
        else:
            self._buffer.write(formula.render())


def extract_text(html: str, base_url: str = '', image_mode: ImageMode = ImageMode.INLINE) -> str:
    """Convenience wrapper: parse an HTML string and extract it without downloads."""
    soup = BeautifulSoup(html, 'lxml')
    return TextExtractor(image_mode).extract(soup, ExtractionContext(base_url=base_url))
