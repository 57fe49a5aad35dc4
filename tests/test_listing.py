import os, sys
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import responses
from bs4 import BeautifulSoup

from scraper.listing_scraper import (
    Contest, ListingScraper, Problem, parse_contests, parse_problems
)

MOTD_URL = "http://server.aesc.msu.ru/cs/motd"
CONTEST_URL = "http://server.aesc.msu.ru/cs/ranking-table?cid=1"

MOTD_HTML = """
<ul class="top-menu menu">
  <li><a href="/cs/ranking-table?cid=1">Contest <b>One</b></a></li>
  <li><a href="/cs/motd">News</a></li>
  <li><a href="ranking-table?cid=2">Second</a></li>
</ul>
<ul class="menu"><li><a href="/cs/ranking-table?cid=9">Ignored</a></li></ul>
"""

CONTEST_HTML = """
<ul class="menu">
  <li><a href="problem?aid=1&amp;pid=2">A. Sum</a></li>
  <li><a href="ranking-table?cid=1">Ranking</a></li>
  <li><a href="/cs/problem?aid=1&amp;pid=3"> B. Product </a></li>
</ul>
<p><a href="problem?aid=1&amp;pid=4">Outside the menu</a></p>
"""


def test_parse_contests():
    contests = parse_contests(BeautifulSoup(MOTD_HTML, 'lxml'), base_url=MOTD_URL)
    assert contests == [
        Contest("Contest One", "http://server.aesc.msu.ru/cs/ranking-table?cid=1"),
        Contest("Second", "http://server.aesc.msu.ru/cs/ranking-table?cid=2"),
    ]


def test_parse_contests_without_menu():
    assert parse_contests(BeautifulSoup("<p>nothing</p>", 'lxml')) == []


def test_parse_problems():
    problems = parse_problems(BeautifulSoup(CONTEST_HTML, 'lxml'), base_url=CONTEST_URL)
    assert problems == [
        Problem("A. Sum", "http://server.aesc.msu.ru/cs/problem?aid=1&pid=2"),
        Problem("B. Product", "http://server.aesc.msu.ru/cs/problem?aid=1&pid=3"),
    ]


def test_parse_problems_keeps_relative_links_without_base():
    problems = parse_problems(BeautifulSoup(CONTEST_HTML, 'lxml'))
    assert problems[0].url == "problem?aid=1&pid=2"


@responses.activate
def test_listing_scraper():
    responses.add(responses.GET, MOTD_URL, body=MOTD_HTML)
    responses.add(responses.GET, CONTEST_URL, body=CONTEST_HTML)
    scraper = ListingScraper()

    contests = scraper.get_contests(MOTD_URL)
    problems = scraper.get_problems(contests[0].url)

    assert [c.name for c in contests] == ["Contest One", "Second"]
    assert [p.name for p in problems] == ["A. Sum", "B. Product"]
