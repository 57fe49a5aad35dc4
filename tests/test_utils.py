"""
Utility Test Suite

Tests for URL resolution, output file naming and the error reporting helpers.
"""

import os
import sys
import tempfile
import unittest
from pathlib import Path

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from utils.error_handler import (
    AescClientError, ErrorReporter, FileSystemError, NetworkError,
    URLValidationError, ErrorCategory, ErrorDetector, error_reporter, handle_exception
)
from utils.file_manager import FileManager
from utils.url_parser import URLParser


class TestURLParser(unittest.TestCase):
    """URL validation and resolution."""

    def setUp(self):
        self.parser = URLParser()

    def test_is_valid_url(self):
        self.assertTrue(self.parser.is_valid_url("http://server.aesc.msu.ru/cs/motd"))
        self.assertTrue(self.parser.is_valid_url("https://example.com"))
        self.assertFalse(self.parser.is_valid_url("ftp://example.com/file"))
        self.assertFalse(self.parser.is_valid_url("/cs/motd"))
        self.assertFalse(self.parser.is_valid_url(""))
        self.assertFalse(self.parser.is_valid_url(None))

    def test_validate_url(self):
        self.assertEqual(self.parser.validate_url("  http://a.b/c  "), "http://a.b/c")
        with self.assertRaises(URLValidationError):
            self.parser.validate_url("not a url")

    def test_resolve_url(self):
        base = "http://server.aesc.msu.ru/cs/problem?aid=1&pid=2"
        test_cases = [
            ("http://cdn.example.com/a.png", "http://cdn.example.com/a.png"),
            ("//cdn.example.com/a.png", "http://cdn.example.com/a.png"),
            ("/img/a.png", "http://server.aesc.msu.ru/img/a.png"),
            ("img/a.png", "http://server.aesc.msu.ru/cs/img/a.png"),
            ("../a.png", "http://server.aesc.msu.ru/a.png"),
        ]
        for href, expected in test_cases:
            with self.subTest(href=href):
                self.assertEqual(self.parser.resolve_url(base, href), expected)

    def test_resolve_url_without_base(self):
        self.assertEqual(self.parser.resolve_url("", "img/a.png"), "img/a.png")

    def test_get_extension(self):
        test_cases = [
            ("http://h/a.png", ".png"),
            ("http://h/a.SVG", ".svg"),
            ("http://h/a.gif?size=2#top", ".gif"),
            ("http://h/formula", ".png"),
            ("http://h/dir.v2/formula", ".png"),
            ("http://h/a.verylongext", ".png"),
            ("http://h/a.p-g", ".png"),
        ]
        for url, expected in test_cases:
            with self.subTest(url=url):
                self.assertEqual(self.parser.get_extension(url), expected)

    def test_normalize_url(self):
        self.assertEqual(
            self.parser.normalize_url(" HTTP://Server.AESC.msu.ru/cs/Problem?pid=3#top "),
            "http://server.aesc.msu.ru/cs/Problem?pid=3"
        )

    def test_get_last_segment(self):
        self.assertEqual(self.parser.get_last_segment("http://h/cs/problem/7/"), "7")
        self.assertEqual(self.parser.get_last_segment("http://h/cs/problem?pid=3"), "problem_pid=3")
        self.assertEqual(self.parser.get_last_segment("http://h"), "h")


class TestFileManager(unittest.TestCase):
    """Output directory and file naming."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.file_manager = FileManager()

    def tearDown(self):
        import shutil
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_asset_filename(self):
        self.assertEqual(FileManager.asset_filename(1, ".png"), "formula_001.png")
        self.assertEqual(FileManager.asset_filename(42, "svg"), "formula_042.svg")
        self.assertEqual(FileManager.asset_filename(1000, ".png"), "formula_1000.png")

    def test_safe_filename(self):
        self.assertEqual(self.file_manager.safe_filename("problem_aid=12&pid=3"), "problem_aid_12_pid_3")
        self.assertEqual(self.file_manager.safe_filename("a/b\\c"), "a_b_c")
        self.assertEqual(self.file_manager.safe_filename("???"), "statement")
        self.assertEqual(len(self.file_manager.safe_filename("x" * 300)), 100)

    def test_save_text_creates_parents(self):
        path = Path(self.temp_dir) / "a" / "b" / "statement.txt"
        self.assertEqual(self.file_manager.save_text("текст\n", path), path)
        self.assertEqual(path.read_text(encoding='utf-8'), "текст\n")

    def test_ensure_directory_on_file(self):
        file_path = Path(self.temp_dir) / "file"
        file_path.write_text("x")
        with self.assertRaises(FileSystemError):
            self.file_manager.ensure_directory(file_path)


class TestErrorHandling(unittest.TestCase):
    """Exception hierarchy and reporting."""

    def setUp(self):
        error_reporter.clear()

    def tearDown(self):
        error_reporter.clear()

    def test_network_error_info(self):
        error = NetworkError("boom", url="http://h/", status_code=502)
        self.assertIsInstance(error, AescClientError)
        self.assertEqual(error.status_code, 502)
        self.assertEqual(error.error_info.category, ErrorCategory.NETWORK)

    def test_check_disk_space(self):
        self.assertTrue(ErrorDetector.check_disk_space(tempfile.gettempdir(), required_mb=0))
        self.assertTrue(ErrorDetector.check_disk_space("/no/such/dir", required_mb=10 ** 9))

    def test_client_errors_carry_user_message(self):
        for error in (NetworkError("a"), URLValidationError("b"), FileSystemError("c")):
            with self.subTest(error=type(error).__name__):
                self.assertTrue(error.error_info.user_message)

    def test_handle_exception_reraises_client_errors(self):
        @handle_exception
        def failing():
            raise NetworkError("down")

        with self.assertRaises(NetworkError):
            failing()
        self.assertEqual(error_reporter.get_error_summary()["total_errors"], 1)

    def test_handle_exception_wraps_unexpected_errors(self):
        @handle_exception
        def failing():
            raise ValueError("bad value")

        with self.assertRaises(AescClientError) as context:
            failing()
        self.assertIsInstance(context.exception.__cause__, ValueError)

    def test_error_summary(self):
        reporter = ErrorReporter()
        self.assertEqual(reporter.get_error_summary()["total_errors"], 0)
        reporter.report_error(NetworkError("a").error_info)
        reporter.report_error(FileSystemError("b").error_info)
        reporter.report_error(None)
        summary = reporter.get_error_summary()
        self.assertEqual(summary["total_errors"], 2)
        self.assertEqual(summary["categories"], {"network": 1, "file_system": 1})


if __name__ == '__main__':
    unittest.main()
