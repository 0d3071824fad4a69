import logging

from playwright.sync_api import Error as PlaywrightError

from .config import APPLY_BUTTON_SELECTORS, APPLY_SETTLE_MS, NAV_TIMEOUT_MS, PAGE_SETTLE_MS

logger = logging.getLogger(__name__)


class NavigationError(RuntimeError):
    """The job page could not be loaded."""


def open_page(page, url: str, timeout_ms: int = NAV_TIMEOUT_MS, settle_ms: int = PAGE_SETTLE_MS):
    """Navigate to url and wait for initial content. Raises NavigationError on failure."""
    logger.info(f"🧭 Navigating to: {url}")
    try:
        page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
    except PlaywrightError as e:
        raise NavigationError(f"could not load {url}: {e}") from e
    page.wait_for_timeout(settle_ms)


def click_apply_button(page, selectors=None, settle_ms: int = APPLY_SETTLE_MS) -> bool:
    """
    Click the first visible Apply affordance, in priority order.
    Returns False (not an error) when nothing matched; the page may already be the form.
    """
    start_url = page.url
    for sel in selectors or APPLY_BUTTON_SELECTORS:
        try:
            btn = page.locator(sel).first
            if not btn.is_visible():
                continue
            logger.info(f"🖱️  Clicking '{sel}' to navigate to form...")
            btn.click(timeout=3000)
        except PlaywrightError as e:
            logger.debug(f"apply candidate {sel} failed: {e}")
            continue
        page.wait_for_timeout(settle_ms)
        if page.url != start_url:
            logger.info(f"📍 Navigated to application page: {page.url}")
        return True
    logger.info("ℹ️ No apply button found, proceeding with current page")
    return False
