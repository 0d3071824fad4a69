import os
from pathlib import Path

from dotenv import load_dotenv, find_dotenv

# load .env
load_dotenv(find_dotenv(), override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "y", "on")


# overridable via env vars
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
HEADLESS = _flag("HEADLESS", "false")

NAV_TIMEOUT_MS = int(os.getenv("NAV_TIMEOUT_MS", "30000"))
PAGE_SETTLE_MS = int(os.getenv("PAGE_SETTLE_MS", "3000"))
APPLY_SETTLE_MS = int(os.getenv("APPLY_SETTLE_MS", "3000"))
SCROLL_SETTLE_MS = int(os.getenv("SCROLL_SETTLE_MS", "1000"))
FIELD_SETTLE_MS = int(os.getenv("FIELD_SETTLE_MS", "500"))
MAX_SCREENSHOTS = int(os.getenv("MAX_SCREENSHOTS", "10"))

CONFIDENCE_THRESHOLD = float(os.getenv("CONFIDENCE_THRESHOLD", "0.5"))
AUTO_SUBMIT = _flag("AUTO_SUBMIT", "false")
REVIEW_BEFORE_SUBMIT = _flag("REVIEW_BEFORE_SUBMIT", "true")
KEEP_BROWSER_OPEN = _flag("KEEP_BROWSER_OPEN", "true")
SURVEY_STRATEGY = os.getenv("SURVEY_STRATEGY", "hierarchical").strip().lower()

SCREENSHOT_DIR = Path(os.getenv("SCREENSHOT_DIR", "./outputs/screenshots"))

COVER_LETTER_SENTINEL = "[COVER_LETTER_FROM_DATABASE]"
NOT_APPLICABLE = "N/A"


def gemini_api_key() -> str:
    """Read at call time so tests and late .env loads are honoured."""
    return (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or "").strip()


# stored answers for recurring questions
DEFAULT_PREFERENCES = {
    "gender": "I don't wish to answer",
    "race": "I don't wish to answer",
    "salaryExpectations": "",
    "authorizedToWorkUS": "Yes",
    "handicap": "No",
    "veteran": "No",
    "references": "Available upon request",
    "currentLocation": "",
    "willingToRelocate": "Yes",
}

# label phrases that identify the question a preference answers
PREFERENCE_SYNONYMS = {
    "gender":             ["gender", "sex", "pronoun"],
    "race":               ["race", "ethnicity", "ethnic"],
    "salaryExpectations": ["salary", "compensation", "desired pay", "expected pay", "pay expectation"],
    "authorizedToWorkUS": ["authorized to work", "authorised to work", "work authorization", "legally authorized", "eligible to work"],
    "handicap":           ["disability", "disabled", "handicap"],
    "veteran":            ["veteran", "military service", "armed forces"],
    "references":         ["references", "referees"],
    "currentLocation":    ["current location", "where are you located", "city of residence", "where do you live"],
    "willingToRelocate":  ["relocate", "relocation"],
}

# Apply affordances, in priority order
APPLY_BUTTON_SELECTORS = [
    'button:has-text("Apply")',
    'a:has-text("Apply")',
    'button:has-text("Apply Now")',
    'a:has-text("Apply Now")',
    'button:has-text("Easy Apply")',
    'a:has-text("Easy Apply")',
    'button:has-text("Submit Application")',
    'a:has-text("Submit Application")',
    'button:has-text("Apply for this job")',
    'a:has-text("Apply for this job")',
    '[data-testid*="apply"]',
    '[class*="apply"]',
    'button[aria-label*="apply" i]',
    'a[aria-label*="apply" i]',
]

SUBMIT_BUTTON_SELECTORS = [
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Submit Application")',
    'button:has-text("Submit")',
    'button:has-text("Apply")',
    'button:has-text("Send")',
    'button:has-text("Continue")',
    'button:has-text("Next")',
    '[role="button"]:has-text("Submit")',
    '[role="button"]:has-text("Apply")',
]

SUCCESS_PHRASES = [
    "Thank you for applying",
    "Application submitted",
    "We received your application",
    "Thanks for your application",
    "Your application has been received",
]
