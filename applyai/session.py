import logging
from typing import Optional

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from .config import HEADLESS

logger = logging.getLogger(__name__)


class BrowserSession:
    """
    One browser, one context, one page for one auto-apply run.

        with BrowserSession(headless=False) as session:
            ...
            session.release(keep_open=True)   # blocks until the user closes the window

    Leaving the block always closes whatever is still open, including on errors.
    """

    def __init__(self, headless: bool = HEADLESS, viewport: Optional[dict] = None):
        self.headless = headless
        self.viewport = viewport or {"width": 1280, "height": 900}
        self._pw = None
        self.browser = None
        self.context = None
        self.page = None

    def start(self) -> "BrowserSession":
        if self.page is not None:
            return self
        self._pw = sync_playwright().start()
        try:
            self.browser = self._pw.chromium.launch(headless=self.headless)
            self.context = self.browser.new_context(viewport=self.viewport)
            self.page = self.context.new_page()
        except PlaywrightError:
            self.close()
            raise
        logger.info(f"🌐 Browser started (headless={self.headless})")
        return self

    @property
    def closed(self) -> bool:
        return self._pw is None

    def wait_for_review(self):
        """Block until the human closes the page (or the whole browser)."""
        if self.page is None or self.page.is_closed():
            return
        logger.info("👀 Browser left open for review; close the window when done.")
        try:
            self.page.wait_for_event("close", timeout=0)
        except PlaywrightError as e:
            # the browser itself was closed
            logger.debug(f"review wait ended: {e}")

    def release(self, keep_open: bool):
        if keep_open and not self.headless:
            self.wait_for_review()
        self.close()

    def close(self):
        """Idempotent; every handle is released even if an earlier one fails."""
        for name in ("context", "browser"):
            handle = getattr(self, name)
            setattr(self, name, None)
            if handle is None:
                continue
            try:
                handle.close()
            except PlaywrightError as e:
                logger.debug(f"{name} close failed: {e}")
        self.page = None
        if self._pw is not None:
            pw, self._pw = self._pw, None
            pw.stop()
            logger.info("🌐 Browser closed")

    def __enter__(self) -> "BrowserSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
