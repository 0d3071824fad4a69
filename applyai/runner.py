import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from playwright.sync_api import Error as PlaywrightError

from .config import (
    APPLY_SETTLE_MS,
    GEMINI_MODEL,
    HEADLESS,
    KEEP_BROWSER_OPEN,
    SURVEY_STRATEGY,
)
from .dom import SurveyStrategyError, check_strategy, survey_form
from .fill import apply_instructions, click_submit, success_indicator, take_review_screenshot
from .job import scrape_job_text
from .llm import ModelResponseError, ModelUnavailableError, generate_instructions
from .models import AutoApplyOptions, FormSurvey, SubmissionResult
from .navigate import NavigationError, click_apply_button, open_page
from .prompts import confirm_submit
from .session import BrowserSession

logger = logging.getLogger(__name__)

FATAL_ERRORS = (NavigationError, SurveyStrategyError, ModelResponseError, ModelUnavailableError, PlaywrightError)


def _fill_missing_job_details(page, options: AutoApplyOptions):
    if options.job_description:
        return
    job = scrape_job_text(page)
    options.job_description = job["body"]
    options.job_title = options.job_title or job["title"]
    options.company = options.company or job["company"]


def _maybe_submit(page, options: AutoApplyOptions, result: SubmissionResult, confirm: Callable[[int, int], bool]):
    if not options.auto_submit:
        logger.info("🛑 Auto-submit disabled; leaving the form for manual review")
        return
    filled = sum(1 for o in result.outcomes if o.status in ("filled", "clicked", "selected"))
    if options.review_before_submit and not confirm(filled, len(result.outcomes)):
        logger.info("🛑 Submission declined at review")
        return
    if not click_submit(page):
        return
    page.wait_for_timeout(APPLY_SETTLE_MS)
    result.submitted = success_indicator(page)
    if result.submitted:
        logger.info("✅ Looks like submission succeeded.")
    else:
        logger.warning("⚠️ Could not confirm submission. Check the screenshot.")


def auto_apply(
    page,
    url: str,
    options: AutoApplyOptions,
    strategy: str = SURVEY_STRATEGY,
    model_name: str = GEMINI_MODEL,
    confirm: Optional[Callable[[int, int], bool]] = None,
) -> SubmissionResult:
    """
    Navigate, survey, generate, fill (and optionally submit) on an open page.
    Pipeline failures come back as success=False; they are not raised.
    """
    result = SubmissionResult(success=False)
    try:
        check_strategy(strategy)
        open_page(page, url)
        _fill_missing_job_details(page, options)
        click_apply_button(page)

        survey = survey_form(page, strategy=strategy)
        instructions = generate_instructions(survey, options, model_name=model_name)
        result.outcomes = apply_instructions(page, instructions, survey.fields(), cover_letter=options.cover_letter)

        _maybe_submit(page, options, result, confirm or confirm_submit)
        result.success = True
    except FATAL_ERRORS as e:
        logger.error(f"❌ Auto-apply failed: {e}")
        result.error = str(e)

    try:
        _, result.screenshot = take_review_screenshot(page)
        result.final_url = page.url
    except (PlaywrightError, OSError) as e:
        logger.warning(f"⚠️ Failed to save review screenshot: {e}")
    result.finished_at = datetime.now()
    return result


def run_auto_apply(
    url: str,
    options: AutoApplyOptions,
    keep_open: bool = KEEP_BROWSER_OPEN,
    headless: bool = HEADLESS,
    **kwargs,
) -> SubmissionResult:
    """
    One full run in its own browser. With keep_open the call returns only after
    the user closes the window; failed runs always close right away.
    """
    try:
        session = BrowserSession(headless=headless).start()
    except PlaywrightError as e:
        logger.error(f"❌ Could not start browser: {e}")
        return SubmissionResult(success=False, error=str(e), finished_at=datetime.now())
    with session:
        result = auto_apply(session.page, url, options, **kwargs)
        session.release(keep_open=keep_open and result.success)
    return result


async def auto_apply_async(url: str, options: AutoApplyOptions, **kwargs) -> SubmissionResult:
    return await asyncio.to_thread(run_auto_apply, url, options, **kwargs)


def detect_form(url: str, strategy: str = SURVEY_STRATEGY, headless: bool = HEADLESS, capture: bool = False) -> FormSurvey:
    """Survey only: no model call, no fields touched. Raises NavigationError or SurveyStrategyError."""
    check_strategy(strategy)
    with BrowserSession(headless=headless) as session:
        open_page(session.page, url)
        click_apply_button(session.page)
        return survey_form(session.page, strategy=strategy, capture=capture)
