"""
Statement scraper for AESC Client
Fetches problem statements and turns them into fixed-width text documents
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .base_scraper import BaseScraper
from .frame_resolver import FrameResolver
from text_processor.cleaner import TextCleaner
from text_processor.line_wrapper import LineWrapper, DEFAULT_LINE_WIDTH
from text_processor.math_normalizer import MathNormalizer
from text_processor.text_extractor import (
    Asset, ExtractionContext, ImageMode, TextExtractor
)
from utils.file_manager import STATEMENT_FILENAME, IMAGES_DIRNAME

logger = logging.getLogger(__name__)


class StatementScraper(BaseScraper):
    """Scraper for problem statement pages"""

    def __init__(self, session=None, timeout: int = 30, rate_limit: float = 0.0,
                 line_width: int = DEFAULT_LINE_WIDTH):
        super().__init__(session=session, timeout=timeout, rate_limit=rate_limit)
        self.line_width = line_width
        self.frame_resolver = FrameResolver(self.get_page_content)
        self.cleaner = TextCleaner()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------
    def _load_content_root(self, url: str):
        root = self.get_page_content(url)
        return self.frame_resolver.resolve(root, url)

    def _render(self, raw_text: str, width: Optional[int]) -> str:
        cleaned = self.cleaner.clean(raw_text)
        return LineWrapper(width if width is not None else self.line_width).wrap(cleaned)

    def extract_statement(self, url: str, image_mode: ImageMode,
                          assets_dir: Optional[Path] = None,
                          width: Optional[int] = None) -> Tuple[str, List[Asset]]:
        """
        Run the whole pipeline for one problem URL.

        Args:
            url (str): Problem page URL
            image_mode (ImageMode): FILE downloads images to assets_dir,
                INLINE replaces them with alt text and enables TeX substitutions
            assets_dir (Optional[Path]): Where images are saved in FILE mode
            width (Optional[int]): Line width, defaults to self.line_width

        Returns:
            Tuple[str, List[Asset]]: Final text and the images referenced by it
        """
        content_root, base_url = self._load_content_root(url)

        context = ExtractionContext(base_url=base_url, assets_dir=assets_dir)
        extractor = TextExtractor(
            image_mode,
            math_normalizer=MathNormalizer(substitutions=image_mode is ImageMode.INLINE),
            fetch_asset=self.download_to_file,
        )
        raw_text = extractor.extract(content_root, context)
        logger.debug(f"Extracted {len(raw_text)} characters, {len(context.assets)} images from {base_url}")

        return self._render(raw_text, width), context.assets

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------
    def fetch_statement_to_string(self, url: str, width: Optional[int] = None) -> str:
        """
        Fetch a statement as text, images replaced by their alt text.

        Args:
            url (str): Problem page URL
            width (Optional[int]): Line width

        Returns:
            str: Statement text
        """
        text, _ = self.extract_statement(url, ImageMode.INLINE, width=width)
        return text

    def fetch_statement_to_dir(self, url: str, out_dir: Union[str, Path],
                               width: Optional[int] = None) -> Path:
        """
        Fetch a statement into <out_dir>/statement.txt with images saved
        as <out_dir>/images/formula_NNN.<ext>.

        Args:
            url (str): Problem page URL
            out_dir (Union[str, Path]): Output directory
            width (Optional[int]): Line width

        Returns:
            Path: Path of statement.txt

        Raises:
            FileSystemError: If the output directories cannot be created
        """
        out_dir = self.file_manager.ensure_directory(out_dir)
        images_dir = self.file_manager.ensure_directory(out_dir / IMAGES_DIRNAME)

        text, assets = self.extract_statement(url, ImageMode.FILE, assets_dir=images_dir, width=width)

        failed = [asset for asset in assets if not asset.downloaded]
        if failed:
            logger.warning(f"{len(failed)} of {len(assets)} images could not be downloaded")

        statement_path = self.file_manager.save_text(text + '\n' if text else text,
                                                     out_dir / STATEMENT_FILENAME)
        logger.info(f"Statement saved to {statement_path} ({len(assets)} images)")
        return statement_path
