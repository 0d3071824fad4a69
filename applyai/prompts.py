import logging

logger = logging.getLogger(__name__)


def yes_no(prompt_text: str, default: bool = False) -> bool:
    """Terminal y/n question. EOF or Ctrl-C counts as the default."""
    default_str = "Y/n" if default else "y/N"
    try:
        ans = input(f"{prompt_text} [{default_str}] ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        logger.info("ℹ️ No answer at prompt, using default")
        return default
    if not ans:
        return default
    return ans in ("y", "yes")


def confirm_submit(filled: int, total: int) -> bool:
    print(f"\n📝 Filled {filled} of {total} fields. Review the browser window before submitting.")
    return yes_no("Submit the application now?", default=False)
