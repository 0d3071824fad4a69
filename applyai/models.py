import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

ACTIONS = ("fill", "click", "select")


@dataclass
class CandidateField:
    """A detected form control with a reproducible selector and its label context."""
    selector: str
    kind: str  # text|textarea|select|radio|checkbox
    input_type: str = "text"
    labels: List[str] = field(default_factory=list)
    visible: bool = True
    description: Optional[str] = None
    group: Optional[str] = None
    name: str = ""
    element_id: str = ""
    value: str = ""
    option_label: str = ""  # caption of this radio/checkbox option
    placeholder: str = ""
    required: bool = False
    options: List[str] = field(default_factory=list)

    @property
    def label(self) -> str:
        if self.labels:
            return self.labels[0]
        return self.placeholder or self.name or self.element_id

    def to_prompt_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "selector": self.selector,
            "kind": self.kind,
            "type": self.input_type,
            "labels": self.labels,
            "visible": self.visible,
        }
        if self.description:
            out["description"] = self.description
        if self.group:
            out["group"] = self.group
        if self.value and self.kind in ("radio", "checkbox"):
            out["value"] = self.value
        if self.placeholder:
            out["placeholder"] = self.placeholder
        if self.required:
            out["required"] = True
        if self.options:
            out["options"] = self.options
        return out


@dataclass
class Question:
    """A question block: heading text plus the inputs that answer it."""
    text: str
    input_type: str
    description: Optional[str] = None
    required: bool = False
    fields: List[CandidateField] = field(default_factory=list)

    def to_prompt_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"question": self.text, "input_type": self.input_type}
        if self.description:
            out["description"] = self.description
        if self.required:
            out["required"] = True
        out["fields"] = [f.to_prompt_dict() for f in self.fields]
        return out


@dataclass
class FormSurvey:
    url: str = ""
    title: str = ""
    questions: List[Question] = field(default_factory=list)
    standalone: List[CandidateField] = field(default_factory=list)
    screenshots: List[bytes] = field(default_factory=list)

    def fields(self) -> List[CandidateField]:
        out = [f for q in self.questions for f in q.fields]
        out.extend(self.standalone)
        return out

    def selectors(self) -> List[str]:
        return [f.selector for f in self.fields()]

    def to_prompt_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "questions": [q.to_prompt_dict() for q in self.questions],
            "other_fields": [f.to_prompt_dict() for f in self.standalone],
        }


@dataclass
class FillInstruction:
    field_description: str
    action: str  # fill|click|select
    value: str
    confidence: float
    selector: Optional[str] = None
    label: Optional[str] = None
    reasoning: str = ""

    @property
    def target_label(self) -> str:
        return self.label or self.field_description

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "FillInstruction":
        """Build from a model-produced dict; accepts camelCase or snake_case keys.

        Raises KeyError/TypeError/ValueError on a malformed entry; the caller
        turns those into a model-response failure.
        """
        if not isinstance(raw, dict):
            raise TypeError(f"instruction must be an object, got {type(raw).__name__}")
        for key in ("action", "value", "confidence"):
            if key not in raw:
                raise KeyError(key)

        action = str(raw["action"]).strip().lower()
        if action not in ACTIONS:
            raise ValueError(f"unknown action {raw['action']!r}")

        confidence = raw["confidence"]
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float, str)):
            raise ValueError(f"confidence must be a number, got {confidence!r}")
        confidence = float(confidence)
        if not math.isfinite(confidence):
            raise ValueError(f"confidence must be finite, got {raw['confidence']!r}")

        value = raw["value"]
        if value is None:
            value = ""
        elif isinstance(value, bool):
            value = "Yes" if value else "No"
        elif not isinstance(value, str):
            value = str(value)

        description = raw.get("fieldDescription") or raw.get("field_description") or ""
        label = raw.get("label") or raw.get("fieldLabel") or raw.get("field_label") or None
        selector = raw.get("selector") or None
        if not selector and not (label or description):
            raise KeyError("selector")

        return cls(
            field_description=str(description or label or selector),
            action=action,
            value=value,
            confidence=max(0.0, min(1.0, confidence)),
            selector=str(selector).strip() if selector else None,
            label=str(label).strip() if label else None,
            reasoning=str(raw.get("reasoning") or ""),
        )


@dataclass
class MatchedInstruction:
    instruction: FillInstruction
    field: CandidateField
    match_confidence: float

    @property
    def selector(self) -> str:
        return self.field.selector


@dataclass
class FillOutcome:
    instruction: FillInstruction
    status: str  # filled|clicked|selected|skipped|unmatched|not_visible|failed
    selector: Optional[str] = None
    detail: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "field": self.instruction.field_description,
            "action": self.instruction.action,
            "status": self.status,
            "selector": self.selector,
            "detail": self.detail,
        }


@dataclass
class SubmissionResult:
    success: bool
    error: Optional[str] = None
    screenshot: Optional[str] = None  # base64 PNG
    final_url: Optional[str] = None
    submitted: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None
    outcomes: List[FillOutcome] = field(default_factory=list)

    def to_dict(self, include_screenshot: bool = True) -> Dict[str, Any]:
        out = {
            "success": self.success,
            "error": self.error,
            "final_url": self.final_url,
            "submitted": self.submitted,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
        if include_screenshot:
            out["screenshot"] = self.screenshot
        return out


@dataclass
class AutoApplyOptions:
    resume_data: Dict[str, Any]
    resume_text: str
    job_description: str = ""
    job_title: str = ""
    company: str = ""
    user_preferences: Dict[str, Any] = field(default_factory=dict)
    cover_letter: str = ""
    auto_submit: bool = False
    review_before_submit: bool = True
