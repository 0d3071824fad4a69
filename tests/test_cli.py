"""Tests for the `python -m applyai` command line."""

import json

import pytest

from applyai import __main__ as cli
from applyai import config
from applyai.models import FormSurvey, SubmissionResult
from applyai.navigate import NavigationError


@pytest.fixture
def resume(tmp_path):
    p = tmp_path / "resume.json"
    p.write_text(json.dumps({"name": "Jane Doe"}), encoding="utf-8")
    return str(p)


def test_apply_builds_options_and_prints_result(monkeypatch, capsys, tmp_path, resume):
    letter = tmp_path / "letter.txt"
    letter.write_text("Dear team", encoding="utf-8")
    seen = {}

    def fake_run(url, options, keep_open, headless, strategy):
        seen.update(url=url, options=options, keep_open=keep_open, headless=headless, strategy=strategy)
        return SubmissionResult(success=True, final_url=url, screenshot="aGVsbG8=")

    monkeypatch.setattr(cli, "run_auto_apply", fake_run)
    code = cli.main(["apply", "https://jobs.example.com/1", "--resume-json", resume,
                     "--cover-letter", str(letter), "--close", "--headless", "--strategy", "flat",
                     "--auto-submit", "--no-review"])

    assert code == 0
    assert seen["url"] == "https://jobs.example.com/1"
    assert seen["options"].resume_data == {"name": "Jane Doe"}
    assert seen["options"].cover_letter == "Dear team"
    assert seen["options"].auto_submit is True
    assert seen["options"].review_before_submit is False
    assert seen["options"].user_preferences["authorizedToWorkUS"] == "Yes"
    assert seen["keep_open"] is False
    assert seen["headless"] is True
    assert seen["strategy"] == "flat"

    out = json.loads(capsys.readouterr().out)
    assert out["success"] is True
    assert "screenshot" not in out


def test_apply_failed_result_exit_code(monkeypatch, resume):
    monkeypatch.setattr(cli, "run_auto_apply", lambda url, options, **kw: SubmissionResult(success=False, error="x"))
    assert cli.main(["apply", "https://x", "--resume-json", resume]) == 1


def test_apply_missing_resume_exit_code(tmp_path):
    assert cli.main(["apply", "https://x", "--resume-json", str(tmp_path / "missing.json")]) == 2


def test_detect_prints_survey(monkeypatch, capsys):
    monkeypatch.setattr(cli, "detect_form", lambda url, strategy, headless: FormSurvey(url=url, title="Apply"))
    assert cli.main(["detect", "https://x"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["url"] == "https://x"
    assert out["questions"] == []


def test_detect_navigation_error(monkeypatch):
    def boom(url, strategy, headless):
        raise NavigationError("could not load https://x")

    monkeypatch.setattr(cli, "detect_form", boom)
    assert cli.main(["detect", "https://x"]) == 1


def test_detect_bad_strategy_from_environment(monkeypatch):
    monkeypatch.setattr(config, "SURVEY_STRATEGY", "vision")
    assert cli.main(["detect", "https://x"]) == 1


def test_subcommand_required():
    with pytest.raises(SystemExit):
        cli.main([])
