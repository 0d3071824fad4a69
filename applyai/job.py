import json
import logging
import re
from typing import Any, Dict, Iterator, Optional

from playwright.sync_api import Error as PlaywrightError

logger = logging.getLogger(__name__)

_LD_JSON_JS = """() => Array.from(document.querySelectorAll('script[type="application/ld+json"]'))
  .map(s => s.textContent || '')"""


def _strip_html(s: str) -> str:
    s = re.sub(r"<br\s*/?>|</p>|</li>", "\n", s or "", flags=re.I)
    s = re.sub(r"<[^>]+>", " ", s)
    return re.sub(r"[ \t]+", " ", s).strip()


def _walk_ld(obj: Any) -> Iterator[Dict[str, Any]]:
    if isinstance(obj, list):
        for x in obj:
            yield from _walk_ld(x)
    elif isinstance(obj, dict):
        yield obj
        if "@graph" in obj:
            yield from _walk_ld(obj["@graph"])


def job_posting_from_ld(blobs) -> Optional[Dict[str, str]]:
    """schema.org JobPosting from raw JSON-LD script bodies, if present."""
    for blob in blobs:
        try:
            data = json.loads(blob)
        except json.JSONDecodeError:
            logger.debug("skipping unparseable JSON-LD block")
            continue
        for node in _walk_ld(data):
            kind = node.get("@type")
            kinds = kind if isinstance(kind, list) else [kind]
            if "JobPosting" not in kinds:
                continue
            org = node.get("hiringOrganization") or {}
            loc = node.get("jobLocation") or {}
            if isinstance(loc, list):
                loc = loc[0] if loc else {}
            addr = loc.get("address") if isinstance(loc, dict) else {}
            location = ""
            if isinstance(addr, dict):
                location = ", ".join(x for x in (addr.get("addressLocality"), addr.get("addressRegion"), addr.get("addressCountry")) if isinstance(x, str) and x)
            return {
                "title": str(node.get("title") or "").strip(),
                "company": str((org.get("name") or "") if isinstance(org, dict) else org).strip(),
                "location": location,
                "body": _strip_html(str(node.get("description") or "")),
            }
    return None


def scrape_job_text(page) -> Dict[str, str]:
    """Title / company / location / description of the posting on the current page."""
    try:
        found = job_posting_from_ld(page.evaluate(_LD_JSON_JS) or [])
    except PlaywrightError as e:
        logger.debug(f"JSON-LD lookup failed: {e}")
        found = None
    if found and found["body"]:
        logger.info(f"📄 Job description from JSON-LD: {found['title'] or '(untitled)'}")
        return found

    data = {"title": "", "company": "", "location": "", "body": ""}
    h = page.locator("h1, h2").first
    if h.count() > 0:
        data["title"] = (h.inner_text() or "").strip()
    for sel in ["[data-company]", ".company", ".organization", "[itemprop='hiringOrganization']"]:
        loc = page.locator(sel).first
        if loc.count() > 0:
            t = (loc.inner_text() or "").strip()
            if t:
                data["company"] = t
                break
    if not data["company"]:
        data["company"] = (page.title() or "").split("|")[0].strip()
    main = page.locator("main").first
    body = main if main.count() > 0 else page.locator("body")
    data["body"] = (body.inner_text() or "").strip()
    logger.info(f"📄 Job description from page text ({len(data['body'])} chars)")
    return data
