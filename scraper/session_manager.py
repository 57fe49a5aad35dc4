"""
Session management for AESC Client

Handles the authenticated part of the shared HTTP session: reading the
credentials file, logging in, and persisting the session cookies between
runs so that later commands can reuse them without logging in again.

Credentials file format (default ~/.aesc_login):
    <login>
    <password>

Cookie file format: one "<name>\\t<value>" line per cookie.
"""

import os
import logging
from pathlib import Path
from typing import Tuple, Union
from urllib.parse import urlparse

from requests.exceptions import RequestException

from .base_scraper import BaseScraper
from utils.error_handler import AuthenticationError, FileSystemError, NetworkError

logger = logging.getLogger(__name__)

LOGIN_USER_AGENT = "msu-client/0.1"


def read_credentials(path: Union[str, Path]) -> Tuple[str, str]:
    """
    Read login and password from the first two lines of a file.

    Args:
        path (Union[str, Path]): Credentials file

    Returns:
        Tuple[str, str]: (login, password)

    Raises:
        FileSystemError: If the file cannot be read
        AuthenticationError: If the file does not hold a login and a password
    """
    path = Path(path).expanduser()
    try:
        with open(path, 'r', encoding='utf-8') as f:
            lines = []
            for line in f:
                lines.append(line)
                if len(lines) >= 2:
                    break
    except OSError as e:
        raise FileSystemError(f"Failed to read {path}: {e}", str(path), e)

    if len(lines) < 2:
        raise AuthenticationError(
            f"Wrong credentials format in {path}: file should contain two lines, login and password"
        )

    login, password = lines[0].strip(), lines[1].strip()
    if not login or not password:
        raise AuthenticationError(f"Wrong credentials format in {path}: login or password is empty")
    return login, password


class SessionManager(BaseScraper):
    """Login and cookie persistence for the shared session"""

    def login(self, base_url: str, login_path: str, name: str, password: str) -> str:
        """
        Log in with a form POST; cookies land in the shared session.

        Args:
            base_url (str): Server root, e.g. http://server.aesc.msu.ru
            login_path (str): Login form path, e.g. /cs/login
            name (str): Login
            password (str): Password

        Returns:
            str: HTTP status line of the response, e.g. "200 OK"

        Raises:
            AuthenticationError: If the server answers with status >= 400
            NetworkError: On transport failure
        """
        login_url = base_url.rstrip('/') + login_path
        headers = {
            'Content-Type': 'application/x-www-form-urlencoded',
            'Referer': login_url,
            'User-Agent': LOGIN_USER_AGENT,
        }

        self._enforce_rate_limit()
        logger.info(f"Logging in to {login_url} as {name}")
        try:
            with self.session.post(login_url, data={'name': name, 'password': password},
                                   headers=headers, timeout=self.timeout) as response:
                status = f"{response.status_code} {response.reason or ''}".strip()
                if response.status_code >= 400:
                    raise AuthenticationError(f"Login failed: {status}", status=status, url=login_url)
        except RequestException as e:
            raise NetworkError(f"Login request failed: {e}", original_exception=e, url=login_url)

        logger.info(f"Login response: {status}")
        return status

    @staticmethod
    def _host(base_url: str) -> str:
        host = urlparse(base_url).hostname
        if not host:
            raise AuthenticationError(f"Cannot parse base url: {base_url}", url=base_url)
        return host

    def _cookies_for(self, host: str):
        for cookie in self.session.cookies:
            domain = (cookie.domain or '').lstrip('.')
            if not domain or host == domain or host.endswith('.' + domain):
                yield cookie

    def save_cookies(self, base_url: str, path: Union[str, Path]) -> int:
        """
        Save the session cookies that apply to base_url.

        Args:
            base_url (str): Server root the cookies belong to
            path (Union[str, Path]): Cookie file; created with mode 0600

        Returns:
            int: Number of cookies written

        Raises:
            FileSystemError: If the file cannot be written
        """
        host = self._host(base_url)
        path = Path(path).expanduser()

        try:
            if str(path.parent) not in ('', '.'):
                path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            fd = os.open(path, os.O_CREAT | os.O_TRUNC | os.O_WRONLY, 0o600)
            count = 0
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                for cookie in self._cookies_for(host):
                    if not cookie.name:
                        continue
                    f.write(f"{cookie.name}\t{cookie.value}\n")
                    count += 1
        except OSError as e:
            raise FileSystemError(f"Failed to save cookies to {path}: {e}", str(path), e)

        logger.info(f"Saved {count} cookies to {path}")
        return count

    def load_cookies(self, base_url: str, path: Union[str, Path]) -> int:
        """
        Load cookies saved by save_cookies into the shared session.

        Returns:
            int: Number of cookies loaded

        Raises:
            FileSystemError: If the file cannot be read
        """
        host = self._host(base_url)
        path = Path(path).expanduser()

        try:
            with open(path, 'r', encoding='utf-8') as f:
                lines = f.read().split('\n')
        except OSError as e:
            raise FileSystemError(f"Failed to read cookie file {path}: {e}", str(path), e)

        count = 0
        for line in lines:
            line = line.strip()
            if not line:
                continue
            parts = line.split('\t', 1)
            if len(parts) != 2:
                logger.debug(f"Skipping malformed cookie line: {line!r}")
                continue
            self.session.cookies.set(parts[0], parts[1], domain=host, path='/')
            count += 1

        logger.info(f"Loaded {count} cookies from {path}")
        return count
