"""
Command line entry point.

Examples:
  # Fill a form, leave the browser open for review
  python -m applyai apply "https://boards.greenhouse.io/acme/jobs/123" --resume-json resume.json --resume-text resume.pdf

  # Fill, ask at the terminal, then submit
  python -m applyai apply "..." --resume-json resume.json --cover-letter letter.txt --auto-submit

  # Just show what fields the page has
  python -m applyai detect "https://jobs.lever.co/acme/456"
"""
import argparse
import json
import logging
import sys

from playwright.sync_api import Error as PlaywrightError

from . import config
from .dom import SURVEY_STRATEGIES, SurveyStrategyError
from .models import AutoApplyOptions
from .navigate import NavigationError
from .profile import load_cover_letter, load_preferences, load_resume_data, load_text, read_resume_text
from .runner import detect_form, run_auto_apply

logger = logging.getLogger("applyai")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="applyai",
        description="Detect and auto-fill job application forms",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("url", help="job posting or application form URL")
    common.add_argument("--headless", action="store_true", default=config.HEADLESS, help="run the browser without a window")
    common.add_argument("--strategy", choices=SURVEY_STRATEGIES, default=config.SURVEY_STRATEGY, help="form survey strategy")
    common.add_argument("--verbose", "-v", action="store_true", help="debug logging")

    apply_p = sub.add_parser("apply", parents=[common], help="fill the application form")
    apply_p.add_argument("--resume-json", required=True, help="structured resume (JSON)")
    apply_p.add_argument("--resume-text", help="raw resume (.pdf or .txt)")
    apply_p.add_argument("--job-description", help="job description text file (scraped from the page if omitted)")
    apply_p.add_argument("--job-title", default="")
    apply_p.add_argument("--company", default="")
    apply_p.add_argument("--preferences", help="stored answers (JSON), merged over the defaults")
    apply_p.add_argument("--cover-letter", help="cover letter text file")
    apply_p.add_argument("--auto-submit", action="store_true", default=config.AUTO_SUBMIT, help="click submit after filling")
    apply_p.add_argument("--no-review", action="store_true", help="do not ask before submitting")
    apply_p.add_argument("--close", action="store_true", help="close the browser when done instead of waiting for review")

    sub.add_parser("detect", parents=[common], help="print the detected form fields as JSON")
    return parser


def _cmd_apply(args) -> int:
    try:
        options = AutoApplyOptions(
            resume_data=load_resume_data(args.resume_json),
            resume_text=read_resume_text(args.resume_text),
            job_description=load_text(args.job_description),
            job_title=args.job_title,
            company=args.company,
            user_preferences=load_preferences(args.preferences),
            cover_letter=load_cover_letter(args.cover_letter),
            auto_submit=args.auto_submit,
            review_before_submit=config.REVIEW_BEFORE_SUBMIT and not args.no_review,
        )
    except (OSError, ValueError) as e:
        logger.error(f"❌ {e}")
        return 2

    result = run_auto_apply(
        args.url,
        options,
        keep_open=config.KEEP_BROWSER_OPEN and not args.close,
        headless=args.headless,
        strategy=args.strategy,
    )
    print(json.dumps(result.to_dict(include_screenshot=False), indent=2, ensure_ascii=False))
    return 0 if result.success else 1


def _cmd_detect(args) -> int:
    try:
        survey = detect_form(args.url, strategy=args.strategy, headless=args.headless)
    except (NavigationError, SurveyStrategyError, PlaywrightError) as e:
        logger.error(f"❌ {e}")
        return 1
    print(json.dumps(survey.to_prompt_dict(), indent=2, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="[%(levelname)s] %(message)s")
    if args.command == "apply":
        return _cmd_apply(args)
    return _cmd_detect(args)


if __name__ == "__main__":
    sys.exit(main())
