"""
Listing scraper for AESC Client
Parses the contest menu and the problem menu of the judge
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup

from .base_scraper import BaseScraper
from utils.url_parser import URLParser

logger = logging.getLogger(__name__)

CONTEST_LINK_MARKER = 'ranking-table'
PROBLEM_LINK_SELECTOR = "ul.menu a[href*='problem']"


@dataclass
class Contest:
    name: str
    url: str


@dataclass
class Problem:
    name: str
    url: str


def _link_text(anchor) -> str:
    return ' '.join(s.strip() for s in anchor.find_all(string=True) if s.strip())


def _resolve(href: str, base_url: Optional[str]) -> str:
    if base_url:
        return URLParser().resolve_url(base_url, href)
    return href


def parse_contests(soup: BeautifulSoup, base_url: Optional[str] = None) -> List[Contest]:
    """
    Contests are the ranking-table links of the first <ul class="menu...">.
    """
    menu = soup.find('ul', class_=lambda value: bool(value) and 'menu' in value)
    if menu is None:
        logger.warning("Contest menu not found")
        return []

    contests = []
    for anchor in menu.find_all('a', href=True):
        href = anchor['href']
        if CONTEST_LINK_MARKER not in href:
            continue
        name = _link_text(anchor)
        if name:
            contests.append(Contest(name=name, url=_resolve(href, base_url)))
    return contests


def parse_problems(soup: BeautifulSoup, base_url: Optional[str] = None) -> List[Problem]:
    """
    Problems are the links to problem pages inside ul.menu.
    """
    problems = []
    for anchor in soup.select(PROBLEM_LINK_SELECTOR):
        href = anchor.get('href')
        name = anchor.get_text().strip()
        if href and name:
            problems.append(Problem(name=name, url=_resolve(href, base_url)))
    return problems


class ListingScraper(BaseScraper):
    """Fetches and parses contest and problem listings"""

    def get_contests(self, url: str) -> List[Contest]:
        soup = self.get_page_content(url)
        contests = parse_contests(soup, base_url=url)
        logger.info(f"Found {len(contests)} contests on {url}")
        return contests

    def get_problems(self, url: str) -> List[Problem]:
        soup = self.get_page_content(url)
        problems = parse_problems(soup, base_url=url)
        logger.info(f"Found {len(problems)} problems on {url}")
        return problems
