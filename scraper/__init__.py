"""
Scraper package for AESC Client
Contains the base scraper and the statement, listing, login and submission scrapers
"""

from .base_scraper import BaseScraper
from .frame_resolver import FrameResolver
from .statement_scraper import StatementScraper
from .listing_scraper import ListingScraper, Contest, Problem
from .session_manager import SessionManager, read_credentials
from .solution_submitter import SolutionSubmitter, detect_language

__all__ = [
    'BaseScraper',
    'FrameResolver',
    'StatementScraper',
    'ListingScraper',
    'Contest',
    'Problem',
    'SessionManager',
    'read_credentials',
    'SolutionSubmitter',
    'detect_language'
]
