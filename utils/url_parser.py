"""
URL Parser for AESC Client

This module provides URL validation and resolution helpers used by the
scrapers and the statement extractor. Statement pages reference frames,
images and listing links with absolute, protocol-relative and relative
URLs; everything is resolved against the URL of the page it came from.

Example:
    >>> parser = URLParser()
    >>> parser.resolve_url("http://server.aesc.msu.ru/cs/problem?id=1", "img/a.svg")
    'http://server.aesc.msu.ru/cs/img/a.svg'
    >>> parser.get_extension("http://server.aesc.msu.ru/cs/formula")
    '.png'
"""

import posixpath
import re
from typing import Optional
from urllib.parse import urlparse, urljoin, unquote
import logging

from utils.error_handler import URLValidationError

logger = logging.getLogger(__name__)

DEFAULT_ASSET_EXTENSION = '.png'


class URLParser:
    """
    Utility class for validating and resolving judge server URLs.
    """

    SUPPORTED_SCHEMES = ('http', 'https')

    # Extensions longer than this are treated as part of a file name
    MAX_EXTENSION_LENGTH = 6

    def is_valid_url(self, url: Optional[str]) -> bool:
        """
        Check that a URL is an absolute http(s) URL with a host.

        Args:
            url (Optional[str]): URL to check

        Returns:
            bool: True if the URL can be fetched
        """
        if not url or not url.strip():
            return False
        try:
            parsed = urlparse(url.strip())
        except ValueError:
            return False
        return parsed.scheme in self.SUPPORTED_SCHEMES and bool(parsed.netloc)

    def validate_url(self, url: Optional[str]) -> str:
        """
        Return the stripped URL or raise URLValidationError.
        """
        if not url or not url.strip():
            raise URLValidationError("Empty URL provided", url)
        if not self.is_valid_url(url):
            raise URLValidationError(f"Invalid URL format: {url}", url)
        return url.strip()

    def resolve_url(self, base: str, href: str) -> str:
        """
        Resolve a link found on a page against the page URL.

        Absolute links are returned unchanged; protocol-relative and relative
        links are joined with the base. If the base itself is unusable the
        link is returned as is.

        Args:
            base (str): URL of the page the link was found on
            href (str): Link value (src/href attribute)

        Returns:
            str: Absolute URL when resolution is possible
        """
        href = (href or '').strip()
        if not href:
            return base
        if urlparse(href).scheme:
            return href
        if not base or not urlparse(base).scheme:
            logger.debug(f"Cannot resolve {href!r} against base {base!r}")
            return href
        return urljoin(base, href)

    def get_extension(self, url: str, default: str = DEFAULT_ASSET_EXTENSION) -> str:
        """
        Get the file extension of a URL path (query and fragment ignored).

        Args:
            url (str): Resolved URL
            default (str): Extension used when the path has none

        Returns:
            str: Extension including the leading dot, e.g. '.svg'
        """
        path = unquote(urlparse(url).path)
        extension = posixpath.splitext(posixpath.basename(path))[1]
        if not extension or len(extension) > self.MAX_EXTENSION_LENGTH:
            return default
        if not re.fullmatch(r'\.[A-Za-z0-9]+', extension):
            return default
        return extension.lower()

    def normalize_url(self, url: str) -> str:
        """
        Normalize URL: strip whitespace, lowercase scheme and host, drop fragment.
        """
        parsed = urlparse(url.strip())
        normalized = parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            fragment=''
        )
        return normalized.geturl()

    def get_last_segment(self, url: str) -> str:
        """
        Last non-empty path segment of a URL, used to name output folders.
        """
        parsed = urlparse(url)
        segments = [s for s in parsed.path.split('/') if s]
        last = segments[-1] if segments else parsed.netloc
        if parsed.query:
            last = f"{last}_{parsed.query}"
        return last
