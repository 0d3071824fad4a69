import base64
import logging
import uuid
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from playwright.sync_api import Error as PlaywrightError

from . import config
from .config import (
    CONFIDENCE_THRESHOLD,
    COVER_LETTER_SENTINEL,
    FIELD_SETTLE_MS,
    NOT_APPLICABLE,
    SUBMIT_BUTTON_SELECTORS,
    SUCCESS_PHRASES,
)
from .models import CandidateField, FillInstruction, FillOutcome, MatchedInstruction
from .reconcile import match_instruction
from .utils import ci_match_label, shorten
from .widgets import select_in_combobox

logger = logging.getLogger(__name__)


def skip_reason(instr: FillInstruction, cover_letter: str = "", threshold: float = CONFIDENCE_THRESHOLD) -> Optional[str]:
    """Why an instruction must not be acted on, or None."""
    value = (instr.value or "").strip()
    if not value or value.upper() == NOT_APPLICABLE:
        return "empty value"
    if value == COVER_LETTER_SENTINEL and not (cover_letter or "").strip():
        return "no cover letter available"
    if instr.confidence < threshold:
        return f"confidence {instr.confidence:.2f} below {threshold}"
    return None


def resolve_value(instr: FillInstruction, cover_letter: str = "") -> str:
    if instr.value.strip() == COVER_LETTER_SENTINEL:
        return cover_letter
    return instr.value


def _select_option(page, el, value: str) -> bool:
    """Native <select>: value, then label, then case-insensitive label. Otherwise an ARIA combobox."""
    tag = el.evaluate("(e) => e.tagName.toLowerCase()")
    if tag != "select":
        return select_in_combobox(page, el, value)

    for kw in ({"value": value}, {"label": value}):
        try:
            el.select_option(timeout=2000, **kw)
            return True
        except PlaywrightError:
            continue
    labels = [t.strip() for t in el.locator("option").all_inner_texts()]
    hit = ci_match_label(value, labels)
    if hit is None:
        partial = [lab for lab in labels if value.lower() in lab.lower()]
        hit = partial[0] if len(partial) == 1 else None
    if hit is None:
        return False
    el.select_option(label=hit, timeout=2000)
    return True


def _perform(page, el, action: str, field: CandidateField, value: str) -> Tuple[str, str]:
    if action == "fill":
        el.clear()
        el.fill(value)
        return "filled", shorten(value)
    if action == "click":
        if field.kind in ("radio", "checkbox"):
            el.check()
        else:
            el.click()
        return "clicked", ""
    if _select_option(page, el, value):
        return "selected", value
    return "failed", f"no option matching '{value}'"


def apply_instruction(page, matched: MatchedInstruction, cover_letter: str = "", settle_ms: int = FIELD_SETTLE_MS) -> FillOutcome:
    """Locate, scroll into view, act. Playwright errors become a failed outcome."""
    instr = matched.instruction
    selector = matched.selector
    try:
        el = page.locator(selector).first
        if not el.is_visible():
            logger.warning(f"⚠️ Field not visible: {instr.target_label} ({selector})")
            return FillOutcome(instr, "not_visible", selector)

        try:
            el.scroll_into_view_if_needed(timeout=2000)
            page.wait_for_timeout(settle_ms)
        except PlaywrightError as e:
            logger.info(f"ℹ️ Could not scroll to {selector}: {e}")

        status, detail = _perform(page, el, instr.action, matched.field, resolve_value(instr, cover_letter))
    except PlaywrightError as e:
        logger.warning(f"❌ Failed on '{instr.target_label}' ({selector}): {e}")
        return FillOutcome(instr, "failed", selector, str(e))

    if status == "failed":
        logger.warning(f"❌ {instr.target_label}: {detail}")
    else:
        logger.info(f"✅ {status.capitalize()} {instr.target_label}" + (f": {detail}" if detail else ""))
    return FillOutcome(instr, status, selector, detail)


def apply_instructions(
    page,
    instructions: Iterable[FillInstruction],
    fields: Iterable[CandidateField],
    cover_letter: str = "",
    threshold: float = CONFIDENCE_THRESHOLD,
    settle_ms: int = FIELD_SETTLE_MS,
) -> List[FillOutcome]:
    """Run every instruction in order, one at a time. Never raises for a single field."""
    fields = list(fields)
    outcomes: List[FillOutcome] = []
    for instr in instructions:
        reason = skip_reason(instr, cover_letter, threshold)
        if reason:
            logger.info(f"⏭️  Skipping '{instr.target_label}': {reason}")
            outcomes.append(FillOutcome(instr, "skipped", instr.selector, reason))
            continue

        matched = match_instruction(instr, fields)
        if matched is None:
            logger.warning(f"⚠️ No field matches '{instr.target_label}', dropping instruction")
            outcomes.append(FillOutcome(instr, "unmatched"))
            continue
        if matched.match_confidence < threshold:
            reason = f"match confidence {matched.match_confidence:.2f} below {threshold}"
            logger.info(f"⏭️  Skipping '{instr.target_label}' -> {matched.selector}: {reason}")
            outcomes.append(FillOutcome(instr, "skipped", matched.selector, reason))
            continue

        outcomes.append(apply_instruction(page, matched, cover_letter, settle_ms))

    done = sum(1 for o in outcomes if o.status in ("filled", "clicked", "selected"))
    logger.info(f"📊 Applied {done}/{len(outcomes)} instructions")
    return outcomes


def click_submit(page, selectors=None) -> bool:
    for sel in selectors or SUBMIT_BUTTON_SELECTORS:
        try:
            btn = page.locator(sel).first
            if not btn.is_visible():
                continue
            btn.click(timeout=3000)
        except PlaywrightError as e:
            logger.debug(f"submit candidate {sel} failed: {e}")
            continue
        logger.info(f"🖱️  Clicked submit: {sel}")
        return True
    logger.warning("⚠️ No submit button found")
    return False


def success_indicator(page, phrases=None) -> bool:
    for c in phrases or SUCCESS_PHRASES:
        if page.get_by_text(c).count() > 0:
            return True
    return False


def take_review_screenshot(page, out_dir: Optional[Path] = None) -> Tuple[Path, str]:
    """Full-page PNG written to out_dir; returns (path, base64 data)."""
    out_dir = Path(out_dir or config.SCREENSHOT_DIR)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"review_{uuid.uuid4().hex[:8]}.png"
    png = page.screenshot(path=str(path), full_page=True)
    logger.info(f"📸 Review screenshot: {path}")
    return path, base64.b64encode(png).decode("ascii")
