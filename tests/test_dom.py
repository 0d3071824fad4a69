"""Tests for selector derivation, scan post-processing and screenshot capture.

The in-page scripts are exercised against real Chromium in tests/integration;
here their output is faked so only the Python side is under test.
"""

import pytest

from applyai.dom import (
    SurveyStrategyError,
    build_selector,
    capture_form_screenshots,
    scan_fields,
    scan_questions,
    survey_form,
)
from conftest import raw_control


class TestBuildSelector:

    def test_id_wins(self):
        assert build_selector("input", "text", "firstName", "first", "", 0) == "#firstName"

    def test_id_is_css_escaped(self):
        assert build_selector("input", "text", "q.1:a", "", "", 0) == "#q\\.1\\:a"

    def test_leading_digit_id(self):
        assert build_selector("input", "text", "1st", "", "", 0) == "#\\31 st"

    def test_digit_after_leading_hyphen_id(self):
        assert build_selector("input", "text", "-1", "", "", 0) == "#-\\31 "
        assert build_selector("input", "text", "-a1", "", "", 0) == "#-a1"

    def test_radio_uses_name_and_value(self):
        sel = build_selector("input", "radio", "", "auth", "yes", 3)
        assert sel == 'input[name="auth"][value="yes"]'

    def test_checkbox_options_are_distinct(self):
        values = ["python", "go", "rust"]
        sels = {build_selector("input", "checkbox", "", "langs[]", v, i) for i, v in enumerate(values)}
        assert len(sels) == len(values)

    def test_name_selector_is_tag_qualified(self):
        assert build_selector("textarea", "textarea", "", "cover", "", 0) == 'textarea[name="cover"]'

    def test_name_with_quotes_is_escaped(self):
        assert build_selector("input", "text", "", 'a"b', "", 0) == 'input[name="a\\"b"]'

    def test_radio_without_value_falls_back_to_name(self):
        assert build_selector("input", "radio", "", "auth", "", 2) == 'input[name="auth"]'

    def test_positional_fallback(self):
        assert build_selector("select", "select", "", "", "", 4) == "select >> nth=4"


class TestScanFields:

    def test_builds_fields_with_all_labels(self, page):
        page.flat_scan = [
            raw_control(id_="firstName", labels=["First Name *", "First  Name *"]),
            raw_control(type_="radio", name="auth", value="yes", index=1,
                        labels=["Yes", "Are you authorized to work?"], option="Yes"),
            raw_control(tag="select", name="country", options=["Choose", "Canada"]),
        ]
        fields = scan_fields(page)
        assert [f.selector for f in fields] == [
            "#firstName", 'input[name="auth"][value="yes"]', 'select[name="country"]',
        ]
        assert fields[0].labels == ["First Name *"]
        assert fields[1].kind == "radio"
        assert fields[1].group == "auth"
        assert fields[1].labels == ["Yes", "Are you authorized to work?"]
        assert fields[1].option_label == "Yes"
        assert fields[0].option_label == ""
        assert fields[2].kind == "select"
        assert fields[2].options == ["Choose", "Canada"]


class TestScanQuestions:

    def test_groups_fields_under_question(self, page):
        q = "Are you authorized to work in the US?"
        page.block_scan = {
            "questions": [{
                "text": q, "description": "Select one", "inputType": "radio", "required": True,
                "fields": [
                    raw_control(type_="radio", name="auth", value="yes", labels=[q, "Yes"]),
                    raw_control(type_="radio", name="auth", value="no", labels=[q, "No"]),
                ],
            }],
            "standalone": [raw_control(name="email", labels=["Email"])],
        }
        survey = scan_questions(page)
        assert len(survey.questions) == 1
        question = survey.questions[0]
        assert question.text == q
        assert question.required
        assert all(f.labels[0] == q for f in question.fields)
        assert all(f.description == "Select one" for f in question.fields)
        assert survey.selectors() == [
            'input[name="auth"][value="yes"]', 'input[name="auth"][value="no"]', 'input[name="email"]',
        ]

    def test_text_question_fields_share_a_group(self, page):
        page.block_scan = {
            "questions": [{"text": "Name", "description": "", "inputType": "text", "required": False,
                           "fields": [raw_control(id_="first"), raw_control(id_="last")]}],
            "standalone": [],
        }
        survey = scan_questions(page)
        assert {f.group for f in survey.fields()} == {"question-0"}

    def test_prompt_dict_has_no_screenshots(self, page):
        survey = scan_questions(page)
        survey.screenshots = [b"png"]
        assert "screenshots" not in survey.to_prompt_dict()


class TestScreenshots:

    def test_capped_on_very_long_page(self, page):
        page.document_height = page.viewport_height * 20
        shots = capture_form_screenshots(page, max_shots=10, settle_ms=0)
        assert len(shots) == 10

    def test_one_shot_per_viewport(self, page):
        page.document_height = 2000
        shots = capture_form_screenshots(page, max_shots=10, settle_ms=0)
        assert len(shots) == 3

    def test_short_page_single_shot(self, page):
        page.document_height = 500
        assert len(capture_form_screenshots(page, settle_ms=0)) == 1

    def test_scrolls_by_viewport_and_returns_to_top(self, page):
        page.document_height = 2000
        capture_form_screenshots(page, settle_ms=0)
        scrolls = [a[0] for _, m, a, _ in page.calls if m == "scroll_to"]
        assert scrolls == [0, 900, 1800, 0]

    def test_screenshots_are_viewport_only(self, page):
        capture_form_screenshots(page, settle_ms=0)
        shot_calls = [kw for _, m, _, kw in page.calls if m == "screenshot"]
        assert shot_calls and all(kw.get("full_page") is False for kw in shot_calls)


class TestSurveyForm:

    def test_flat_strategy(self, page):
        page.flat_scan = [raw_control(id_="a")]
        survey = survey_form(page, strategy="flat", capture=False)
        assert survey.selectors() == ["#a"]
        assert survey.url == page.url
        assert survey.title == page.page_title

    def test_captures_screenshots(self, page):
        survey = survey_form(page, strategy="hierarchical", capture=True)
        assert len(survey.screenshots) == 1

    def test_unknown_strategy(self, page):
        with pytest.raises(SurveyStrategyError, match="vision"):
            survey_form(page, strategy="vision")
        assert page.actions() == []
