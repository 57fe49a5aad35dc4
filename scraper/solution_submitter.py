"""
Solution submitter for AESC Client
Uploads a source file to a problem's submission form
"""

import logging
from pathlib import Path
from typing import Union

from requests.exceptions import RequestException

from .base_scraper import BaseScraper
from utils.error_handler import FileSystemError, NetworkError, SubmissionError

logger = logging.getLogger(__name__)

# Compiler ids understood by the judge
LANGUAGE_BY_EXTENSION = {
    '.cpp': 'g++0x',
    '.cc': 'g++0x',
    '.cxx': 'g++0x',
    '.c': 'gcc',
    '.py': 'python3.2',
    '.pas': 'pabc',
    '.cs': 'mono-cs',
    '.java': 'kylix',
    '.txt': 'txt',
}
DEFAULT_LANGUAGE = 'g++0x'
SOURCE_CHARSET = 'cp1251'


def detect_language(file_path: Union[str, Path]) -> str:
    return LANGUAGE_BY_EXTENSION.get(Path(file_path).suffix.lower(), DEFAULT_LANGUAGE)


class SolutionSubmitter(BaseScraper):
    """Multipart upload of solutions"""

    def submit_solution(self, action_url: str, file_path: Union[str, Path]) -> str:
        """
        Submit a solution file.

        Args:
            action_url (str): Submission form action URL
            file_path (Union[str, Path]): Source file

        Returns:
            str: Compiler id the solution was submitted with

        Raises:
            FileSystemError: If the file cannot be opened
            SubmissionError: If the server does not answer 200
            NetworkError: On transport failure
        """
        file_path = Path(file_path)
        language = detect_language(file_path)
        form = {'compileWith': language, 'sourceCharset': SOURCE_CHARSET}

        self._enforce_rate_limit()
        logger.info(f"Submitting {file_path} to {action_url} as {language}")
        try:
            with open(file_path, 'rb') as source:
                files = {'solutionSource': (file_path.name, source)}
                with self.session.post(action_url, data=form, files=files,
                                       timeout=self.timeout) as response:
                    if response.status_code != 200:
                        status = f"{response.status_code} {response.reason or ''}".strip()
                        raise SubmissionError(f"Submit failed: {status}", status=status, url=action_url)
        except RequestException as e:
            raise NetworkError(f"Submit request failed: {e}", original_exception=e, url=action_url)
        except OSError as e:
            raise FileSystemError(f"Cannot open solution {file_path}: {e}", str(file_path), e)

        logger.info("Solution submitted")
        return language
