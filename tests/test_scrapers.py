import logging
import os, sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import requests
import responses

from scraper.base_scraper import BaseScraper
from scraper.statement_scraper import StatementScraper
from text_processor.text_extractor import ImageMode
from utils.error_handler import (
    ContentMissingError, FileSystemError, NetworkError, URLValidationError
)

PROBLEM_URL = "http://server.aesc.msu.ru/cs/problem?aid=12&pid=3"
FRAME_URL = "http://server.aesc.msu.ru/cs/text/12/3.html"
IMAGE_URL = "http://server.aesc.msu.ru/cs/text/12/img/f1.svg"

SHELL_HTML = """
<html><body>
<iframe src="/cs/banner.html"></iframe>
<iframe id="aid12pid3" src="/cs/text/12/3.html"></iframe>
</body></html>
"""

FRAME_HTML = r"""
<html><head><style>p.MsoNormal { margin: 0cm; }</style></head>
<body>
<p>Find the product <script type="math/tex">a \cdot b</script>.</p>
<p>Input</p>
<p>Two numbers <img src="img/f1.svg" alt="a, b"></p>
<p>Output</p>
<p>One number</p>
</body></html>
"""


@pytest.fixture
def scraper():
    scraper = StatementScraper(timeout=5)
    yield scraper
    scraper.close()


@pytest.fixture
def judge():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, body=SHELL_HTML, content_type="text/html")
        rsps.add(responses.GET, FRAME_URL, body=FRAME_HTML, content_type="text/html")
        yield rsps


def test_fetch_statement_to_string(scraper, judge):
    text = scraper.fetch_statement_to_string(PROBLEM_URL)
    assert text == (
        "Find the product $a * b$.\n"
        "\n"
        "Input\n"
        "\n"
        "Two numbers a, b\n"
        "\n"
        "Output\n"
        "\n"
        "One number"
    )
    assert [call.request.url for call in judge.calls] == [PROBLEM_URL, FRAME_URL]


def test_fetch_statement_to_string_wraps(scraper, judge):
    text = scraper.fetch_statement_to_string(PROBLEM_URL, width=12)
    assert all(len(line) <= 12 for line in text.split('\n'))
    assert text.startswith("Find the\nproduct $a *\nb$.")


def test_fetch_statement_to_dir(scraper, judge, tmp_path):
    judge.add(responses.GET, IMAGE_URL, body=b"<svg/>", content_type="image/svg+xml")
    out_dir = tmp_path / "out"

    statement_path = scraper.fetch_statement_to_dir(PROBLEM_URL, out_dir)

    image_path = out_dir / "images" / "formula_001.svg"
    assert statement_path == out_dir / "statement.txt"
    assert image_path.read_bytes() == b"<svg/>"

    text = statement_path.read_text(encoding="utf-8")
    assert text.endswith("One number\n")
    assert "Find the product $a \\cdot b$." in text
    assert f"Two numbers\n[IMAGE: {image_path}]\nAlt: a, b\n\nOutput" in text


def test_failed_image_download_still_writes_statement(scraper, judge, tmp_path):
    judge.add(responses.GET, IMAGE_URL, status=500)

    statement_path = scraper.fetch_statement_to_dir(PROBLEM_URL, tmp_path)

    image_path = tmp_path / "images" / "formula_001.svg"
    assert not image_path.exists()
    assert f"[IMAGE: {image_path}]" in statement_path.read_text(encoding="utf-8")


def test_extract_statement_returns_assets(scraper, judge):
    _, assets = scraper.extract_statement(PROBLEM_URL, ImageMode.FILE)
    assert [(a.saved_path, a.source_url) for a in assets] == [("formula_001.svg", IMAGE_URL)]
    assert len(judge.calls) == 2


def test_page_without_frame():
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, body="<p>Plain</p>")
        assert StatementScraper().fetch_statement_to_string(PROBLEM_URL) == "Plain"


def test_missing_page_raises(scraper):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, status=404)
        with pytest.raises(ContentMissingError):
            scraper.fetch_statement_to_string(PROBLEM_URL)


def test_server_error_carries_status(scraper):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, status=503)
        with pytest.raises(NetworkError) as excinfo:
            scraper.get_page_content(PROBLEM_URL)
    assert excinfo.value.status_code == 503


def test_server_error_logged_once(scraper, caplog):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, status=503)
        with caplog.at_level(logging.ERROR):
            with pytest.raises(NetworkError):
                scraper.get_page_content(PROBLEM_URL)
    errors = [r for r in caplog.records if r.levelno >= logging.ERROR]
    assert len(errors) == 1


def test_network_error(scraper):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, body=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(NetworkError):
            scraper.fetch_statement_to_string(PROBLEM_URL)


def test_frame_failure_propagates(scraper):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, PROBLEM_URL, body=SHELL_HTML)
        rsps.add(responses.GET, FRAME_URL, status=404)
        with pytest.raises(ContentMissingError):
            scraper.fetch_statement_to_string(PROBLEM_URL)


def test_invalid_url_raises(scraper):
    with pytest.raises(URLValidationError):
        scraper.fetch_statement_to_string("not a url")


def test_download_to_file(tmp_path):
    scraper = BaseScraper()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, IMAGE_URL, body=b"data")
        dest = scraper.download_to_file(IMAGE_URL, tmp_path / "nested" / "x.svg")
    assert dest.read_bytes() == b"data"


def test_download_to_unwritable_path(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    scraper = BaseScraper()
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, IMAGE_URL, body=b"data")
        with pytest.raises(FileSystemError):
            scraper.download_to_file(IMAGE_URL, blocker / "x.svg")


def test_shared_session_is_not_closed(mocker):
    session = BaseScraper.create_session()
    close = mocker.spy(session, 'close')
    BaseScraper(session=session).close()
    close.assert_not_called()


def test_rate_limit(mocker):
    sleep = mocker.patch('scraper.base_scraper.time.sleep')
    scraper = BaseScraper(rate_limit=10.0)
    scraper._enforce_rate_limit()
    scraper._enforce_rate_limit()
    assert sleep.call_count == 1
