"""
Base scraper class for AESC Client

This module provides the common functionality shared by every component that
talks to the judge server: the shared HTTP session, page fetching and parsing,
and best-effort file downloads.

The BaseScraper class implements:
- A requests session carrying the authenticated cookie store, shared between
  the login, listing, statement and submission scrapers
- A blanket per-request timeout and an optional minimum interval between requests
- Page fetching with HTML parsing into a BeautifulSoup tree
- Streaming downloads of images and other assets

Requests are single attempt: there is no retry or backoff. One request
completes before the next one starts.

Example:
    >>> session = BaseScraper.create_session()
    >>> scraper = StatementScraper(session=session, timeout=30)
    >>> text = scraper.fetch_statement_to_string("http://server.aesc.msu.ru/cs/problem?id=1")

Note:
    Scrapers never close a session they were given; the owner of the session
    (normally main.ApplicationManager) closes it.
"""

import time
import logging
import socket
from pathlib import Path
from typing import Optional, Union

import requests
from bs4 import BeautifulSoup
from requests.exceptions import (
    RequestException, Timeout, ConnectionError, ChunkedEncodingError
)

from utils.error_handler import (
    NetworkError, ContentMissingError, ParseError, FileSystemError,
    handle_exception
)
from utils.file_manager import FileManager
from utils.url_parser import URLParser

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36',
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'ru,en-US;q=0.7,en;q=0.5',
    'Connection': 'keep-alive',
}

DOWNLOAD_CHUNK_SIZE = 8192


class BaseScraper:
    """
    Base class for all judge server scrapers.

    Attributes:
        session (requests.Session): HTTP session with the cookie store
        timeout (int): Per-request timeout in seconds
        rate_limit (float): Minimum seconds between requests (0 disables)
        url_parser (URLParser): URL validation and resolution helper
        file_manager (FileManager): Directory creation helper
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: int = 30, rate_limit: float = 0.0):
        """
        Initialize the scraper.

        Args:
            session (Optional[requests.Session]): Shared session. A new one is
                created (and owned by this scraper) when omitted.
            timeout (int, optional): Request timeout in seconds. Defaults to 30.
            rate_limit (float, optional): Minimum seconds between requests.
        """
        self._owns_session = session is None
        self.session = session if session is not None else self.create_session()
        self.timeout = timeout
        self.rate_limit = rate_limit
        self.last_request_time = 0.0
        self.url_parser = URLParser()
        self.file_manager = FileManager()

    @staticmethod
    def create_session() -> requests.Session:
        """
        Create an HTTP session with an empty cookie store and browser-like headers.
        """
        session = requests.Session()
        session.headers.update(DEFAULT_HEADERS)
        return session

    def _enforce_rate_limit(self) -> None:
        """
        Enforce the minimum interval between requests
        """
        if self.rate_limit <= 0:
            return

        current_time = time.time()
        time_since_last = current_time - self.last_request_time

        if time_since_last < self.rate_limit:
            sleep_time = self.rate_limit - time_since_last
            logger.debug(f"Rate limiting: sleeping for {sleep_time:.2f} seconds")
            time.sleep(sleep_time)

        self.last_request_time = time.time()

    @handle_exception
    def get_page_content(self, url: str) -> BeautifulSoup:
        """
        Fetch a page and parse it into a BeautifulSoup tree.

        Args:
            url (str): Absolute URL to fetch

        Returns:
            BeautifulSoup: Parsed document

        Raises:
            URLValidationError: If URL is invalid
            NetworkError: On transport failure or HTTP status >= 400
            ContentMissingError: On HTTP 404
            ParseError: If the body cannot be parsed
        """
        url = self.url_parser.validate_url(url)

        self._enforce_rate_limit()
        logger.info(f"Fetching content from: {url}")

        content = self._get_content_requests(url)

        try:
            soup = BeautifulSoup(content, 'lxml')
        except Exception as e:
            raise ParseError(f"Failed to parse {url}: {e}", original_exception=e, url=url)

        logger.debug(f"Parsed {len(content)} bytes from: {url}")
        return soup

    def _get_content_requests(self, url: str) -> bytes:
        """
        Single GET request returning the raw body.

        The raw bytes are handed to the parser so that the page encoding
        (often windows-1251 on the judge) is detected from the document.
        """
        try:
            with self.session.get(url, timeout=self.timeout, allow_redirects=True) as response:
                self._raise_for_status(response, url)
                return response.content
        except (ConnectionError, Timeout, socket.timeout, socket.gaierror, ChunkedEncodingError) as e:
            raise NetworkError(f"Network error: {str(e)}", original_exception=e, url=url)
        except RequestException as e:
            raise NetworkError(f"Request failed: {str(e)}", original_exception=e, url=url)

    @staticmethod
    def _raise_for_status(response: requests.Response, url: str) -> None:
        if response.status_code == 404:
            raise ContentMissingError(f"Content not found (404): {url}", url, status_code=404)
        if response.status_code >= 400:
            raise NetworkError(
                f"GET {url} returned {response.status_code} {response.reason or ''}".rstrip(),
                url=url, status_code=response.status_code
            )

    def download_to_file(self, url: str, dest: Union[str, Path]) -> Path:
        """
        Download a URL to a local file (best effort, single attempt).

        Args:
            url (str): Absolute URL of the asset
            dest (Union[str, Path]): Destination file path

        Returns:
            Path: The written file

        Raises:
            NetworkError: On transport failure or HTTP status >= 400
            FileSystemError: If the destination cannot be written
        """
        dest = Path(dest)
        self._enforce_rate_limit()
        logger.debug(f"Downloading {url} -> {dest}")

        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as response:
                if response.status_code >= 400:
                    raise NetworkError(
                        f"GET {url} returned {response.status_code}",
                        url=url, status_code=response.status_code
                    )
                self.file_manager.ensure_directory(dest.parent)
                try:
                    with open(dest, 'wb') as f:
                        for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                            if chunk:
                                f.write(chunk)
                except RequestException:
                    raise
                except OSError as e:
                    raise FileSystemError(f"Failed to write {dest}: {e}", str(dest), e)
        except RequestException as e:
            raise NetworkError(f"Download failed: {str(e)}", original_exception=e, url=url)

        logger.info(f"Saved {url} to {dest}")
        return dest

    def close(self) -> None:
        """
        Close the HTTP session if this scraper created it
        """
        if self._owns_session and self.session is not None:
            self.session.close()
            logger.debug("HTTP session closed")
