"""
Frame resolution for statement pages

The judge often serves a problem page as a shell whose real content lives in
an embedded frame. FrameResolver picks the frame that holds the statement:

1. a frame whose id (or name) is aid<digits>pid<digits> wins immediately
2. otherwise the first frame whose src contains "text-pack"
3. otherwise the first frame of any kind

Only one level of frames is followed.
"""

import re
import logging
from typing import Callable, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from utils.url_parser import URLParser

logger = logging.getLogger(__name__)

FRAME_TAGS = ('iframe', 'frame')
STATEMENT_FRAME_ID_RE = re.compile(r'aid\d+pid\d+', re.IGNORECASE)
TEXT_PACK_MARKER = 'text-pack'


class FrameResolver:
    """
    Choose the sub-document that holds the statement content.

    Args:
        page_loader (Callable[[str], BeautifulSoup]): fetches and parses a URL,
            normally BaseScraper.get_page_content
    """

    def __init__(self, page_loader: Callable[[str], BeautifulSoup]):
        self.page_loader = page_loader
        self.url_parser = URLParser()

    @staticmethod
    def _frame_src(tag: Tag) -> str:
        return (tag.get('src') or '').strip()

    @staticmethod
    def _is_statement_frame(tag: Tag) -> bool:
        for attr in ('id', 'name'):
            value = (tag.get(attr) or '').strip()
            if value and STATEMENT_FRAME_ID_RE.fullmatch(value):
                return True
        return False

    def find_frame(self, root) -> Optional[Tag]:
        """
        Select the statement frame of a parsed page.

        Frames are visited in document order (depth first, pre-order);
        frames without a src cannot be followed and are ignored.

        Args:
            root: Parsed page

        Returns:
            Optional[Tag]: Selected frame element, None if the page has no frame
        """
        if root is None:
            return None

        text_pack_frame = None
        first_frame = None

        for frame in root.find_all(FRAME_TAGS):
            if not self._frame_src(frame):
                continue
            if self._is_statement_frame(frame):
                logger.debug(f"Statement frame by id: {frame.get('id') or frame.get('name')}")
                return frame
            if text_pack_frame is None and TEXT_PACK_MARKER in self._frame_src(frame):
                text_pack_frame = frame
            if first_frame is None:
                first_frame = frame

        return text_pack_frame or first_frame

    def resolve(self, root, url: str) -> Tuple[object, str]:
        """
        Return the content root and the base URL for link resolution.

        Args:
            root: Parsed page fetched from url
            url (str): URL of that page

        Returns:
            Tuple: (content_root, base_url); the page itself when there is no frame

        Raises:
            NetworkError, ContentMissingError, ParseError: if the selected
                frame cannot be fetched or parsed
        """
        frame = self.find_frame(root)
        if frame is None:
            logger.debug(f"No frame on {url}, using the page itself")
            return root, url

        frame_url = self.url_parser.resolve_url(url, self._frame_src(frame))
        logger.info(f"Following statement frame: {frame_url}")
        return self.page_loader(frame_url), frame_url
