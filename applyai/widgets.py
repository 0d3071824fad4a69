import logging
import re
import time
from typing import List

from playwright.sync_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

OPTION_SELECTORS = [
    '[role="listbox"] [role="option"]',
    '[role="option"]',
    'ul[role="listbox"] li',
    '.Select-menu-outer .Select-option',
    '[class*="menu"] [class*="option"]',
    '[data-value]',
]


def _open_menu(el):
    try:
        el.click(timeout=1500)
    except PlaywrightError:
        el.evaluate("(e) => { (e.parentElement || e).click?.() }")
    for key in ("Enter", "ArrowDown"):
        try:
            el.press(key)
        except PlaywrightError:
            continue
    time.sleep(0.15)


def _visible_option_nodes(page) -> List:
    nodes = []
    for sel in OPTION_SELECTORS:
        loc = page.locator(sel)
        for i in range(min(loc.count(), 200)):
            it = loc.nth(i)
            if it.is_visible():
                nodes.append(it)
    return nodes


def select_in_combobox(page, el, pick: str) -> bool:
    """
    Pick an option in a non-native dropdown by clicking the listed option
    (no free typing). Exact label wins over a substring match.
    Returns False when no option matched.
    """
    _open_menu(el)
    loc = page.get_by_role("option", name=re.compile(rf"^\s*{re.escape(pick)}\s*$", re.I))
    if loc.count() > 0:
        loc.first.click()
        return True

    wanted = pick.strip().lower()
    partial = None
    for it in _visible_option_nodes(page):
        lab = (it.inner_text() or "").strip()
        if not lab:
            continue
        if lab.lower() == wanted:
            it.click()
            return True
        if partial is None and wanted in lab.lower():
            partial = it
    if partial is not None:
        partial.click()
        return True

    logger.warning(f"⚠️ Could not find option '{pick}' in dropdown.")
    el.press("Escape")
    return False
