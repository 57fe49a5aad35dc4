#!/usr/bin/env python3
"""
AESC Client
Main entry point for the application

This module provides:
- Command-line argument parsing
- Configuration loading (INI file) and logging setup
- Login with cookie persistence
- Contest and problem listing
- Statement extraction (to stdout or to an output directory), single or batch
- Solution submission
- Graceful shutdown and cleanup
"""

__version__ = "1.0.0"
__author__ = "AESC Client Team"
__license__ = "MIT"
__description__ = "Download judge problem statements as clean fixed-width text"

import sys
import argparse
import logging
import signal
import traceback
import configparser
from pathlib import Path
from typing import List, Optional, Tuple

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from scraper.base_scraper import BaseScraper
from scraper.statement_scraper import StatementScraper
from scraper.listing_scraper import ListingScraper
from scraper.session_manager import SessionManager, read_credentials
from scraper.solution_submitter import SolutionSubmitter
from text_processor.line_wrapper import DEFAULT_LINE_WIDTH
from utils.file_manager import FileManager
from utils.url_parser import URLParser
from utils.error_handler import (
    AescClientError, FileSystemError, handle_exception, error_reporter
)


class ApplicationManager:
    """
    Application manager that handles configuration, component initialization
    and lifecycle of the AESC client.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".aesc_client"
        self.config_file = self.config_dir / "config.ini"
        self.log_file = self.config_dir / "app.log"
        self.log_level = "INFO"

        self.config = configparser.ConfigParser()

        # Application components
        self.session = None
        self.session_manager = None
        self.listing_scraper = None
        self.statement_scraper = None
        self.submitter = None
        self.file_manager = FileManager()
        self.url_parser = URLParser()

        self.is_running = False

    def initialize(self):
        """
        Initialize the application with all necessary configurations.
        """
        self._create_config_directory()
        self._load_configuration()
        self._setup_logging()
        self._initialize_components()
        self._setup_signal_handlers()

        self.is_running = True
        logging.debug("Application initialized successfully")

    def _create_config_directory(self):
        """
        Create configuration directory if it doesn't exist.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logging.error(f"Failed to create config directory: {e}")
            # Fallback to current directory
            self.config_dir = Path.cwd() / ".aesc_client"
            self.config_dir.mkdir(exist_ok=True)
            self.log_file = self.config_dir / "app.log"

    def _setup_logging(self):
        """
        Configure logging with file and console handlers.

        The console handler writes to stderr so that statement text printed
        to stdout can be redirected cleanly.
        """
        log_level = getattr(logging, self.log_level.upper())

        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        )
        simple_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s'
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG)
        root_logger.handlers.clear()

        try:
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(simple_formatter)
        root_logger.addHandler(console_handler)

        logging.debug(f"Logging configured. Level: {self.log_level}, Log file: {self.log_file}")

    def _load_configuration(self):
        """
        Load configuration from INI file, creating it with defaults if missing.
        """
        self._set_default_configuration()
        if self.config_file.exists():
            try:
                self.config.read(self.config_file, encoding='utf-8')
            except configparser.Error as e:
                logging.warning(f"Failed to load configuration {self.config_file}: {e}. Using defaults.")
        else:
            self._write_configuration()

    def _set_default_configuration(self):
        """
        Default configuration values.
        """
        self.config['DEFAULT'] = {
            'timeout': '30',
            'rate_limit': '0.0',
        }

        self.config['Server'] = {
            'base_url': 'http://server.aesc.msu.ru',
            'login_path': '/cs/login',
            'motd_path': '/cs/motd',
        }

        self.config['Paths'] = {
            'output_directory': str(Path.cwd() / "output"),
            'cookie_file': str(self.config_dir / "cookies.txt"),
            'credentials_file': str(Path.home() / ".aesc_login"),
        }

        self.config['Output'] = {
            'line_width': str(DEFAULT_LINE_WIDTH),
        }

    def _write_configuration(self):
        try:
            with open(self.config_file, 'w', encoding='utf-8') as f:
                self.config.write(f)
            logging.info(f"Default configuration created: {self.config_file}")
        except OSError as e:
            logging.error(f"Failed to create default configuration: {e}")

    def _initialize_components(self):
        """
        Initialize all scrapers around one shared HTTP session.
        """
        timeout = self.config.getint('DEFAULT', 'timeout', fallback=30)
        rate_limit = self.config.getfloat('DEFAULT', 'rate_limit', fallback=0.0)
        line_width = self.config.getint('Output', 'line_width', fallback=DEFAULT_LINE_WIDTH)

        self.session = BaseScraper.create_session()
        common = dict(session=self.session, timeout=timeout, rate_limit=rate_limit)

        self.session_manager = SessionManager(**common)
        self.listing_scraper = ListingScraper(**common)
        self.statement_scraper = StatementScraper(line_width=line_width, **common)
        self.submitter = SolutionSubmitter(**common)

        logging.debug("All components initialized successfully")

    def _setup_signal_handlers(self):
        """
        Setup signal handler for graceful shutdown.
        """
        def signal_handler(signum, frame):
            logging.info(f"Received signal {signum}, shutting down...")
            self.shutdown()
            sys.exit(1)

        signal.signal(signal.SIGTERM, signal_handler)

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------
    @property
    def base_url(self) -> str:
        return self.config.get('Server', 'base_url')

    @property
    def cookie_file(self) -> Path:
        return Path(self.config.get('Paths', 'cookie_file')).expanduser()

    @property
    def output_directory(self) -> Path:
        return Path(self.config.get('Paths', 'output_directory')).expanduser()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def login(self) -> str:
        """
        Log in with the credentials file and save the session cookies.
        """
        credentials_file = self.config.get('Paths', 'credentials_file')
        name, password = read_credentials(credentials_file)
        status = self.session_manager.login(
            self.base_url, self.config.get('Server', 'login_path'), name, password
        )
        self.session_manager.save_cookies(self.base_url, self.cookie_file)
        return status

    def load_saved_session(self) -> bool:
        """
        Load saved cookies into the shared session, if any.
        """
        if not self.cookie_file.exists():
            logging.info("No saved session cookies, continuing anonymously")
            return False
        self.session_manager.load_cookies(self.base_url, self.cookie_file)
        return True

    def list_contests(self):
        motd_url = self.base_url.rstrip('/') + self.config.get('Server', 'motd_path')
        return self.listing_scraper.get_contests(motd_url)

    def list_problems(self, contest_url: str):
        return self.listing_scraper.get_problems(self.url_parser.resolve_url(self.base_url, contest_url))

    def extract_statement(self, url: str, output_dir: Optional[str] = None,
                          width: Optional[int] = None) -> str:
        """
        Extract one statement. Returns the text, or the statement path when
        output_dir is given.
        """
        url = self.url_parser.resolve_url(self.base_url, url)
        if output_dir:
            return str(self.statement_scraper.fetch_statement_to_dir(url, output_dir, width=width))
        return self.statement_scraper.fetch_statement_to_string(url, width=width)

    @handle_exception
    def run_batch_processing(self, urls: List[str], output_dir: Optional[str] = None,
                             width: Optional[int] = None) -> Tuple[int, int]:
        """
        Extract statements for several URLs, one after another.

        Each statement goes to its own folder under the output directory,
        named after the last segment of its URL. URLs are normalized first
        (scheme and host lowercased, fragment dropped) and repeats are skipped.

        Returns:
            Tuple[int, int]: (successful_count, failed_count)
        """
        if not self.is_running:
            raise RuntimeError("Application not initialized")

        if not urls:
            logging.warning("No URLs provided for batch processing")
            return 0, 0

        output_path = Path(output_dir) if output_dir else self.output_directory
        if output_path.exists() and not output_path.is_dir():
            raise FileSystemError(f"Output path is not a directory: {output_path}", str(output_path))

        logging.info(f"Starting batch processing for {len(urls)} URLs into {output_path}")

        successful = 0
        failed = 0
        seen = set()
        for url in urls:
            url = self.url_parser.normalize_url(url)
            if url in seen:
                logging.warning(f"Skipping duplicate URL: {url}")
                continue
            seen.add(url)

            folder = self.file_manager.safe_filename(self.url_parser.get_last_segment(url))
            try:
                path = self.extract_statement(url, str(output_path / folder), width=width)
                successful += 1
                logging.info(f"Successfully processed: {url} -> {path}")
            except AescClientError as e:
                failed += 1
                logging.warning(f"Failed to process {url}: {e}")

        logging.info(f"Batch processing completed. Successful: {successful}, Failed: {failed}")
        if failed > 0:
            logging.warning(f"Batch processing summary: {error_reporter.get_error_summary()}")

        return successful, failed

    def submit(self, action_url: str, file_path: str) -> str:
        action_url = self.url_parser.resolve_url(self.base_url, action_url)
        return self.submitter.submit_solution(action_url, file_path)

    def shutdown(self):
        """
        Release the shared HTTP session.
        """
        if not self.is_running:
            return
        self.is_running = False
        if self.session is not None:
            self.session.close()
            self.session = None
        logging.debug("Application shutdown complete")


def parse_arguments(argv: Optional[List[str]] = None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="AESC Client: judge problem statements as plain text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --login                                  # Log in and save session cookies
  %(prog)s --contests                               # List contests
  %(prog)s --problems "/cs/ranking-table?cid=12"    # List problems of a contest
  %(prog)s --url "/cs/problem?aid=12&pid=3"         # Print a statement
  %(prog)s --url "..." --output ./statement         # Save statement.txt and images
  %(prog)s --batch urls.txt --output ./statements   # Batch extraction
  %(prog)s --submit a.cpp --action "/cs/submit?pid=3"
        """
    )

    parser.add_argument(
        '--login',
        action='store_true',
        help='Log in with the credentials file and save session cookies'
    )

    parser.add_argument(
        '--contests',
        action='store_true',
        help='List contests'
    )

    parser.add_argument(
        '--problems', '-p',
        type=str,
        metavar='CONTEST_URL',
        help='List problems of a contest'
    )

    parser.add_argument(
        '--url', '-u',
        type=str,
        help='Extract a single statement'
    )

    parser.add_argument(
        '--batch', '-b',
        type=str,
        help='Extract statements for URLs from file (one URL per line)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        help='Output directory (statement.txt and images/)'
    )

    parser.add_argument(
        '--width', '-w',
        type=int,
        help=f'Line width of the statement text (default: {DEFAULT_LINE_WIDTH})'
    )

    parser.add_argument(
        '--submit', '-s',
        type=str,
        metavar='FILE',
        help='Submit a solution file (requires --action)'
    )

    parser.add_argument(
        '--action', '-a',
        type=str,
        help='Submission form URL'
    )

    parser.add_argument(
        '--log-level', '-l',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default='INFO',
        help='Set logging level (default: INFO)'
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Path to custom configuration file'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    return parser.parse_args(argv)


def _read_batch_file(batch_file: Path) -> List[str]:
    with open(batch_file, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip() and not line.strip().startswith('#')]


def run(args, app_manager: ApplicationManager) -> int:
    """
    Dispatch the parsed command line. Returns the process exit code.
    """
    if args.login:
        status = app_manager.login()
        print(f"Login: {status}")
        if not (args.contests or args.problems or args.url or args.batch or args.submit):
            return 0
    else:
        app_manager.load_saved_session()

    if args.contests:
        for i, contest in enumerate(app_manager.list_contests(), start=1):
            print(f"{i}. {contest.name} -> {contest.url}")

    if args.problems:
        for i, problem in enumerate(app_manager.list_problems(args.problems), start=1):
            print(f"{i}. {problem.name} -> {problem.url}")

    if args.url:
        result = app_manager.extract_statement(args.url, args.output, width=args.width)
        print(result)

    if args.batch:
        batch_file = Path(args.batch)
        if not batch_file.exists():
            logging.error(f"Batch file not found: {batch_file}")
            return 1
        urls = _read_batch_file(batch_file)
        if not urls:
            logging.error("No URLs found in batch file")
            return 1
        _, failed = app_manager.run_batch_processing(urls, args.output, width=args.width)
        if failed > 0:
            logging.warning(f"Some URLs failed to process: {failed}/{len(urls)}")
            return 1

    if args.submit:
        if not args.action:
            logging.error("--submit requires --action")
            return 1
        language = app_manager.submit(args.action, args.submit)
        print(f"Submitted {args.submit} ({language})")

    if not (args.login or args.contests or args.problems or args.url or args.batch or args.submit):
        logging.error("Nothing to do: use --login, --contests, --problems, --url, --batch or --submit")
        return 2

    return 0


def report_failure(error: AescClientError) -> None:
    """
    Log a failed command: the technical message, then what the user can do.

    The technical message is skipped when the error reporter already logged it.
    """
    info = error.error_info
    if not any(reported is info for reported in error_reporter.error_history):
        logging.error(str(error))
    if info.user_message:
        logging.error(info.user_message)
    if info.recovery_suggestions:
        logging.info("Suggestions: " + "; ".join(info.recovery_suggestions))


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function of the AESC client.
    """
    args = parse_arguments(argv)

    app_manager = ApplicationManager()
    app_manager.log_level = args.log_level
    if args.config:
        app_manager.config_file = Path(args.config)

    try:
        app_manager.initialize()
        return run(args, app_manager)

    except KeyboardInterrupt:
        logging.info("Application interrupted by user")
        return 130

    except AescClientError as e:
        report_failure(e)
        return 1

    except Exception as e:
        logging.error(f"Fatal application error: {e}")
        logging.debug(traceback.format_exc())
        return 1

    finally:
        app_manager.shutdown()


if __name__ == "__main__":
    sys.exit(main())
