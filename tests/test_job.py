"""Tests for job-description extraction (JSON-LD first, page text fallback)."""

import json

from applyai.job import job_posting_from_ld, scrape_job_text


def _posting(**extra):
    base = {
        "@context": "https://schema.org",
        "@type": "JobPosting",
        "title": "Data Engineer",
        "hiringOrganization": {"@type": "Organization", "name": "Globex"},
        "jobLocation": {"@type": "Place", "address": {"addressLocality": "Austin", "addressRegion": "TX"}},
        "description": "<p>Own our pipelines.</p><ul><li>Spark</li><li>Airflow</li></ul>",
    }
    base.update(extra)
    return base


def test_job_posting_from_ld():
    job = job_posting_from_ld([json.dumps(_posting())])
    assert job["title"] == "Data Engineer"
    assert job["company"] == "Globex"
    assert job["location"] == "Austin, TX"
    assert "Own our pipelines." in job["body"]
    assert "<" not in job["body"]


def test_job_posting_inside_graph_and_bad_blocks():
    blobs = ["{oops", json.dumps({"@graph": [{"@type": "WebSite"}, _posting(title="SRE")]})]
    assert job_posting_from_ld(blobs)["title"] == "SRE"


def test_no_job_posting():
    assert job_posting_from_ld([json.dumps({"@type": "Organization"})]) is None


def test_scrape_falls_back_to_page_text(page):
    page.add("h1, h2", text="Platform Engineer")
    page.add("main", text="We are hiring a platform engineer.")
    job = scrape_job_text(page)
    assert job["title"] == "Platform Engineer"
    assert job["company"] == "Backend Engineer"
    assert job["body"] == "We are hiring a platform engineer."


def test_scrape_prefers_json_ld(page):
    page.ld_json = [json.dumps(_posting())]
    page.add("main", text="ignored")
    assert scrape_job_text(page)["company"] == "Globex"
