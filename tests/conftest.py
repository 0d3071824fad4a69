"""Shared fixtures for the applyai test suite.

Unit tests never start a browser: FakePage / FakeElement record every call so
tests can assert on what the pipeline did (or did not) do to the page.
"""

import pytest
from playwright.sync_api import Error as PlaywrightError

from applyai import config

QUERY_METHODS = {"count", "is_visible", "evaluate", "inner_text", "all_inner_texts"}


class FakeElement:
    def __init__(self, page, selector, visible=True, tag="input", options=None, fail=(), exists=True, text=""):
        self.page = page
        self.selector = selector
        self.visible = visible
        self.tag = tag
        self.options = list(options or [])
        self.fail = set(fail)
        self.exists = exists
        self.text = text
        self.selected = None

    @property
    def first(self):
        return self

    def _record(self, method, *args, **kwargs):
        self.page.calls.append((self.selector, method, args, kwargs))
        if method in self.fail:
            raise PlaywrightError(f"{method} failed on {self.selector}")

    def count(self):
        return 1 if self.exists else 0

    def is_visible(self, **kwargs):
        return self.exists and self.visible

    def evaluate(self, expression, *args):
        return self.tag

    def inner_text(self):
        return self.text

    def locator(self, selector):
        return self

    def all_inner_texts(self):
        return list(self.options)

    def scroll_into_view_if_needed(self, **kwargs):
        self._record("scroll_into_view_if_needed", **kwargs)

    def clear(self, **kwargs):
        self._record("clear", **kwargs)

    def fill(self, value, **kwargs):
        self._record("fill", value, **kwargs)

    def click(self, **kwargs):
        self._record("click", **kwargs)

    def check(self, **kwargs):
        self._record("check", **kwargs)

    def press(self, key, **kwargs):
        self._record("press", key, **kwargs)

    def select_option(self, **kwargs):
        self._record("select_option", **kwargs)
        wanted = kwargs.get("value") or kwargs.get("label")
        if wanted not in self.options:
            raise PlaywrightError(f"no option {wanted!r}")
        self.selected = wanted


class _TextMatch:
    def __init__(self, hits):
        self.hits = hits

    def count(self):
        return self.hits


class FakePage:
    """Enough of playwright's sync Page for the pipeline's unit tests."""

    def __init__(self, url="https://jobs.example.com/posting/123"):
        self.url = url
        self.page_title = "Backend Engineer | Acme"
        self.calls = []
        self.elements = {}
        self.viewport_height = 900
        self.document_height = 900
        self.scroll_y = 0
        self.shots = 0
        self.flat_scan = []
        self.block_scan = {"questions": [], "standalone": []}
        self.ld_json = []
        self.body_text = ""
        self.goto_error = None
        self.url_after_click = {}

    def add(self, selector, **kwargs) -> FakeElement:
        el = FakeElement(self, selector, **kwargs)
        self.elements[selector] = el
        return el

    def locator(self, selector):
        return self.elements.get(selector) or FakeElement(self, selector, exists=False, visible=False)

    def get_by_text(self, text):
        return _TextMatch(1 if text in self.body_text else 0)

    def get_by_role(self, role, name=None):
        return _TextMatch(0)

    def goto(self, url, **kwargs):
        self.calls.append((None, "goto", (url,), kwargs))
        if self.goto_error:
            raise PlaywrightError(self.goto_error)
        self.url = url

    def wait_for_timeout(self, ms):
        self.calls.append((None, "wait_for_timeout", (ms,), {}))

    def title(self):
        return self.page_title

    def screenshot(self, **kwargs):
        self.calls.append((None, "screenshot", (), kwargs))
        self.shots += 1
        return b"\x89PNG-" + str(self.shots).encode()

    def evaluate(self, expression, arg=None):
        if "application/ld+json" in expression:
            return self.ld_json
        if "const BLOCKS" in expression:
            return self.block_scan
        if "controls()" in expression:
            return self.flat_scan
        if "innerHeight" in expression:
            return self.viewport_height
        if "scrollHeight" in expression:
            return self.document_height
        if "scrollTo" in expression:
            self.scroll_y = arg if arg is not None else 0
            self.calls.append((None, "scroll_to", (self.scroll_y,), {}))
            return None
        raise AssertionError(f"unexpected evaluate: {expression[:60]}")

    def actions(self, selector=None):
        """Mutating element calls, optionally for one selector."""
        return [
            (s, m, a) for s, m, a, _ in self.calls
            if s is not None and m not in QUERY_METHODS and (selector is None or s == selector)
        ]


def raw_control(tag="input", type_="text", id_="", name="", value="", index=0, labels=(), visible=True, options=(), option=""):
    """Shape of one control as returned by the in-page scan scripts."""
    return {
        "tag": tag, "type": type_ if tag == "input" else tag, "id": id_, "name": name, "value": value,
        "index": index, "visible": visible, "labels": list(labels), "placeholder": "",
        "ariaLabel": "", "required": False, "options": list(options), "option": option,
    }


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path):
    """No real API keys, and screenshots go to a temp dir."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    monkeypatch.setattr(config, "SCREENSHOT_DIR", tmp_path / "screenshots")


@pytest.fixture
def page():
    return FakePage()
