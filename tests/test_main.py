import logging
import os, sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest

from main import ApplicationManager, parse_arguments, report_failure, run
from utils.error_handler import ContentMissingError, NetworkError, error_reporter

PROBLEM_URL = "http://server.aesc.msu.ru/cs/problem?aid=12&pid=3"


@pytest.fixture
def app(tmp_path):
    app = ApplicationManager(config_dir=tmp_path)
    app._create_config_directory()
    app._load_configuration()
    return app


def test_parse_arguments_defaults():
    args = parse_arguments([])
    assert args.log_level == 'INFO'
    assert args.url is None and args.width is None and not args.login


def test_parse_arguments_extract_to_dir():
    args = parse_arguments(['--url', PROBLEM_URL, '-o', 'out', '-w', '80'])
    assert (args.url, args.output, args.width) == (PROBLEM_URL, 'out', 80)


def test_default_configuration_is_written(app, tmp_path):
    assert (tmp_path / "config.ini").exists()
    assert app.base_url == "http://server.aesc.msu.ru"
    assert app.config.getint('Output', 'line_width') == 170
    assert app.config.getint('DEFAULT', 'timeout') == 30
    assert app.cookie_file == tmp_path / "cookies.txt"


def test_configuration_file_overrides(tmp_path):
    (tmp_path / "config.ini").write_text(
        "[Server]\nbase_url = http://localhost:8080\n\n[Output]\nline_width = 80\n",
        encoding="utf-8"
    )
    app = ApplicationManager(config_dir=tmp_path)
    app._load_configuration()
    app._initialize_components()

    assert app.base_url == "http://localhost:8080"
    assert app.statement_scraper.line_width == 80
    assert app.config.get('Server', 'login_path') == "/cs/login"
    assert app.statement_scraper.session is app.session_manager.session


def test_extract_statement_resolves_relative_url(app, mocker):
    app.statement_scraper = mocker.Mock()
    app.statement_scraper.fetch_statement_to_string.return_value = "text"

    assert app.extract_statement("/cs/problem?aid=1&pid=2") == "text"
    app.statement_scraper.fetch_statement_to_string.assert_called_once_with(
        "http://server.aesc.msu.ru/cs/problem?aid=1&pid=2", width=None
    )


def test_batch_processing(app, tmp_path, mocker):
    app._initialize_components()
    app.is_running = True
    second_url = "http://server.aesc.msu.ru/cs/problem?aid=12&pid=4"
    extract = mocker.patch.object(app, 'extract_statement', side_effect=["ok", NetworkError("down")])

    successful, failed = app.run_batch_processing([PROBLEM_URL, second_url], str(tmp_path / "out"))

    assert (successful, failed) == (1, 1)
    extract.assert_any_call(PROBLEM_URL, str(tmp_path / "out" / "problem_aid_12_pid_3"), width=None)
    extract.assert_any_call(second_url, str(tmp_path / "out" / "problem_aid_12_pid_4"), width=None)


def test_batch_processing_skips_repeated_urls(app, tmp_path, mocker):
    app._initialize_components()
    app.is_running = True
    extract = mocker.patch.object(app, 'extract_statement', return_value="ok")
    urls = [PROBLEM_URL + "#top", "HTTP://Server.AESC.msu.ru/cs/problem?aid=12&pid=3"]

    assert app.run_batch_processing(urls, str(tmp_path / "out")) == (1, 0)
    extract.assert_called_once_with(PROBLEM_URL, str(tmp_path / "out" / "problem_aid_12_pid_3"), width=None)


def test_report_failure_logs_user_message(caplog):
    error_reporter.clear()
    with caplog.at_level(logging.INFO):
        report_failure(ContentMissingError("404 for http://h/x", url="http://h/x", status_code=404))
    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "404 for http://h/x"
    assert "The requested page could not be found. Please verify the URL." in messages
    assert any(m.startswith("Suggestions: Verify the problem exists") for m in messages)


def test_report_failure_does_not_repeat_reported_error(caplog):
    error = NetworkError("connection refused")
    error_reporter.clear()
    error_reporter.report_error(error.error_info)
    caplog.clear()

    with caplog.at_level(logging.ERROR):
        report_failure(error)
    assert [r.getMessage() for r in caplog.records] == ["Could not reach the judge server."]
    error_reporter.clear()


def test_load_saved_session_without_file(app, mocker):
    app.session_manager = mocker.Mock()
    assert not app.load_saved_session()
    app.session_manager.load_cookies.assert_not_called()


def test_run_without_command(mocker):
    manager = mocker.Mock()
    assert run(parse_arguments([]), manager) == 2
    manager.load_saved_session.assert_called_once()


def test_run_prints_statement(mocker, capsys):
    manager = mocker.Mock()
    manager.extract_statement.return_value = "Statement"

    assert run(parse_arguments(['--url', PROBLEM_URL, '--width', '80']), manager) == 0

    manager.extract_statement.assert_called_once_with(PROBLEM_URL, None, width=80)
    assert capsys.readouterr().out == "Statement\n"


def test_run_login_only(mocker, capsys):
    manager = mocker.Mock()
    manager.login.return_value = "200 OK"

    assert run(parse_arguments(['--login']), manager) == 0

    manager.load_saved_session.assert_not_called()
    assert "200 OK" in capsys.readouterr().out


def test_run_submit_requires_action(mocker):
    manager = mocker.Mock()
    assert run(parse_arguments(['--submit', 'a.cpp']), manager) == 1
    manager.submit.assert_not_called()


def test_run_batch_file(tmp_path, mocker):
    batch = tmp_path / "urls.txt"
    batch.write_text(f"# problems\n{PROBLEM_URL}\n\n/cs/problem?aid=12&pid=4\n", encoding="utf-8")
    manager = mocker.Mock()
    manager.run_batch_processing.return_value = (2, 0)

    assert run(parse_arguments(['--batch', str(batch), '-o', 'out']), manager) == 0
    manager.run_batch_processing.assert_called_once_with(
        [PROBLEM_URL, "/cs/problem?aid=12&pid=4"], 'out', width=None
    )


def test_run_missing_batch_file(tmp_path, mocker):
    assert run(parse_arguments(['--batch', str(tmp_path / "none.txt")]), mocker.Mock()) == 1
