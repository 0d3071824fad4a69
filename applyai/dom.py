import logging
from typing import Any, Dict, List, Optional

from .config import MAX_SCREENSHOTS, SCROLL_SETTLE_MS, SURVEY_STRATEGY
from .models import CandidateField, FormSurvey, Question
from .utils import css_escape_ident, normalize, quote_attr

logger = logging.getLogger(__name__)

SURVEY_STRATEGIES = ("hierarchical", "flat")


class SurveyStrategyError(ValueError):
    """The requested survey strategy does not exist."""


# Shared browser-side helpers. Each surveyed control is described by raw
# attributes only; selectors are built in Python by build_selector().
_JS_HELPERS = r"""
const SKIP_TYPES = ['hidden', 'submit', 'button', 'reset', 'image'];
const clean = (t) => (t || '').replace(/\s+/g, ' ').trim().slice(0, 300);
const isVisible = (x) => !!x && !!(x.offsetParent || x.getClientRects().length);
const controls = () => Array.from(document.querySelectorAll('input, textarea, select'))
  .filter(e => !(e.tagName.toLowerCase() === 'input' && SKIP_TYPES.includes((e.getAttribute('type') || 'text').toLowerCase())));
const tagIndex = new Map();
for (const tag of ['input', 'textarea', 'select']) {
  document.querySelectorAll(tag).forEach((e, i) => tagIndex.set(e, i));
}
const labelsFor = (e) => e.id ? Array.from(document.getElementsByTagName('label')).filter(l => l.htmlFor === e.id) : [];
const uniq = (xs) => { const seen = new Set(); return xs.filter(x => x && !seen.has(x) && seen.add(x)); };
const isChoice = (e) => ['radio', 'checkbox'].includes((e.getAttribute('type') || '').toLowerCase());
// the caption of a single radio/checkbox option
const optionLabel = (e) => {
  const wrap = e.closest('label');
  if (wrap) return clean(wrap.innerText);
  const l = labelsFor(e)[0];
  return l ? clean(l.innerText) : '';
};

const describe = (e) => {
  const tag = e.tagName.toLowerCase();
  const type = tag === 'input' ? (e.getAttribute('type') || 'text').toLowerCase() : tag;
  const options = tag === 'select'
    ? Array.from(e.options).map(o => clean(o.textContent)).filter(Boolean)
    : [];
  return {
    tag, type, options,
    id: e.getAttribute('id') || '',
    name: e.getAttribute('name') || '',
    value: e.getAttribute('value') || '',
    index: tagIndex.has(e) ? tagIndex.get(e) : 0,
    visible: isVisible(e),
    placeholder: clean(e.getAttribute('placeholder')),
    ariaLabel: clean(e.getAttribute('aria-label')),
    option: isChoice(e) ? optionLabel(e) : '',
    required: e.required || e.getAttribute('aria-required') === 'true',
  };
};

// ancestor label, label[for], parent text nodes, preceding siblings, ancestor with a '?'
const labelCandidates = (e) => {
  const out = [];
  const wrap = e.closest('label');
  if (wrap) out.push(clean(wrap.innerText));
  for (const l of labelsFor(e)) out.push(clean(l.innerText));
  out.push(clean(e.getAttribute('aria-label')));
  const parent = e.parentElement;
  if (parent) {
    const own = Array.from(parent.childNodes)
      .filter(n => n.nodeType === Node.TEXT_NODE)
      .map(n => n.textContent).join(' ');
    out.push(clean(own));
    let sib = e.previousElementSibling;
    for (let i = 0; sib && i < 3; i++, sib = sib.previousElementSibling) {
      if (sib.matches('input, textarea, select')) break;
      const t = clean(sib.innerText);
      if (t) { out.push(t); break; }
    }
  }
  let anc = e.parentElement;
  for (let depth = 0; anc && depth < 6; depth++, anc = anc.parentElement) {
    const text = anc.innerText || '';
    if (text.includes('?') && text.length < 1000) {
      const line = text.split('\n').find(l => l.includes('?'));
      if (line) { out.push(clean(line)); break; }
    }
  }
  return uniq(out);
};
"""

_FLAT_SCAN_JS = "() => {" + _JS_HELPERS + r"""
  return controls().map(e => Object.assign(describe(e), { labels: labelCandidates(e) }));
}"""

_BLOCK_SCAN_JS = "() => {" + _JS_HELPERS + r"""
  const BLOCKS = [
    'li.application-question', 'div.application-question', '[class*="question"]',
    '[data-qa*="question"]', 'fieldset', '[role="radiogroup"]', '[role="group"]',
    '.form-group', '.field', '[class*="field-group"]', '[class*="form-field"]',
  ];
  const HEADINGS = 'legend, h1, h2, h3, h4, h5, h6, [class*="label"], [class*="title"], label, p, span';
  const HELPERS = '[class*="description"], [class*="help"], [class*="hint"], small';
  const all = controls();
  const inside = (b) => all.filter(e => b.contains(e));
  let cands = uniq(Array.from(document.querySelectorAll(BLOCKS.join(','))))
    .filter(b => inside(b).length > 0);
  // a wrapper around a single radio/checkbox option is not a question
  cands = cands.filter(b => {
    const ins = inside(b);
    if (ins.length !== 1 || !isChoice(ins[0]) || !ins[0].name) return true;
    return all.filter(e => e.name === ins[0].name && isChoice(e)).length <= 1;
  });
  const blocks = cands.filter(b => !cands.some(o => o !== b && b.contains(o)));

  const headingOf = (b) => {
    for (const h of b.querySelectorAll(HEADINGS)) {
      if (h.querySelector('input, textarea, select')) continue;
      const wrap = h.closest('label');
      if (wrap && wrap.querySelector('input')) continue;
      const target = h.htmlFor ? document.getElementById(h.htmlFor) : null;
      if (target && isChoice(target)) continue;
      if (h.closest(HELPERS) && h.closest(HELPERS) !== b) continue;
      const t = clean(h.innerText);
      if (t) return t;
    }
    const own = Array.from(b.childNodes).filter(n => n.nodeType === Node.TEXT_NODE).map(n => n.textContent).join(' ');
    return clean(own) || clean((b.innerText || '').split('\n')[0]);
  };
  const helperOf = (b, heading) => {
    for (const h of b.querySelectorAll(HELPERS)) {
      const t = clean(h.innerText);
      if (t && t !== heading) return t;
    }
    return '';
  };
  const classify = (ins) => {
    const types = ins.map(e => e.tagName.toLowerCase() === 'input' ? (e.getAttribute('type') || 'text').toLowerCase() : e.tagName.toLowerCase());
    for (const t of ['radio', 'checkbox', 'select', 'textarea']) if (types.includes(t)) return t;
    return 'text';
  };

  const claimed = new Set();
  const questions = [];
  for (const b of blocks) {
    const ins = inside(b).filter(e => !claimed.has(e));
    if (!ins.length) continue;
    ins.forEach(e => claimed.add(e));
    const text = headingOf(b);
    questions.push({
      text,
      description: helperOf(b, text),
      inputType: classify(ins),
      required: (b.innerText || '').includes('*') || ins.some(e => e.required || e.getAttribute('aria-required') === 'true'),
      fields: ins.map(e => Object.assign(describe(e), { labels: uniq([text, optionLabel(e)]) })),
    });
  }
  const standalone = all.filter(e => !claimed.has(e)).map(e => {
    const forLabel = labelsFor(e)[0];
    const labels = uniq([
      forLabel ? clean(forLabel.innerText) : '',
      clean(e.getAttribute('placeholder')),
      clean(e.getAttribute('name')),
    ]);
    return Object.assign(describe(e), { labels });
  });
  return { questions, standalone };
}"""


def build_selector(tag: str, input_type: str, element_id: str, name: str, value: str, index: int) -> str:
    """
    Selector rule, in order: #id; input[name][value] for radio/checkbox options;
    tag[name]; positional tag + index (Playwright nth, document order).
    """
    if element_id:
        return "#" + css_escape_ident(element_id)
    if input_type in ("radio", "checkbox") and name and value:
        return f"input[name={quote_attr(name)}][value={quote_attr(value)}]"
    if name:
        return f"{tag}[name={quote_attr(name)}]"
    return f"{tag} >> nth={int(index)}"


def _kind_of(tag: str, input_type: str) -> str:
    if tag in ("textarea", "select"):
        return tag
    if input_type in ("radio", "checkbox"):
        return input_type
    return "text"


def _to_field(raw: Dict[str, Any], description: Optional[str] = None, group: Optional[str] = None) -> CandidateField:
    tag = raw.get("tag") or "input"
    typ = raw.get("type") or "text"
    name = raw.get("name") or ""
    labels: List[str] = []
    for text in list(raw.get("labels") or []) + [raw.get("ariaLabel") or ""]:
        text = normalize(text)
        if text and text not in labels:
            labels.append(text)
    kind = _kind_of(tag, typ)
    if group is None and kind in ("radio", "checkbox") and name:
        group = name
    return CandidateField(
        selector=build_selector(tag, typ, raw.get("id") or "", name, raw.get("value") or "", raw.get("index") or 0),
        kind=kind,
        input_type=typ,
        labels=labels,
        visible=bool(raw.get("visible", True)),
        description=description or None,
        group=group,
        name=name,
        element_id=raw.get("id") or "",
        value=raw.get("value") or "",
        option_label=normalize(raw.get("option") or "") if kind in ("radio", "checkbox") else "",
        placeholder=raw.get("placeholder") or "",
        required=bool(raw.get("required")),
        options=list(raw.get("options") or []),
    )


def scan_fields(page) -> List[CandidateField]:
    """Flat DOM scan: every input/textarea/select with all candidate label texts."""
    raw = page.evaluate(_FLAT_SCAN_JS) or []
    fields = [_to_field(r) for r in raw]
    for f in fields:
        logger.debug(f"📍 {f.label or 'unnamed'} ({f.input_type}) - Selector: {f.selector}")
    logger.info(f"🔍 Found {len(fields)} form fields on page")
    return fields


def scan_questions(page) -> FormSurvey:
    """Hierarchical scan: question blocks with their inputs, then ungrouped inputs."""
    raw = page.evaluate(_BLOCK_SCAN_JS) or {}
    survey = FormSurvey()
    for i, q in enumerate(raw.get("questions") or []):
        text = normalize(q.get("text") or "")
        description = normalize(q.get("description") or "") or None
        fields = []
        for r in q.get("fields") or []:
            group = r.get("name") if r.get("type") in ("radio", "checkbox") and r.get("name") else f"question-{i}"
            fields.append(_to_field(r, description=description, group=group))
        survey.questions.append(Question(
            text=text,
            input_type=q.get("inputType") or "text",
            description=description,
            required=bool(q.get("required")),
            fields=fields,
        ))
    survey.standalone = [_to_field(r) for r in raw.get("standalone") or []]
    logger.info(f"🔍 Found {len(survey.questions)} question blocks, {len(survey.standalone)} other fields")
    return survey


def capture_form_screenshots(page, max_shots: int = MAX_SCREENSHOTS, settle_ms: int = SCROLL_SETTLE_MS) -> List[bytes]:
    """Viewport screenshots from top to bottom, one per viewport height, capped at max_shots."""
    page.evaluate("() => window.scrollTo(0, 0)")
    page.wait_for_timeout(settle_ms)
    viewport_height = int(page.evaluate("() => window.innerHeight") or 0)
    document_height = int(page.evaluate("() => document.body.scrollHeight") or 0)
    logger.info(f"📏 Viewport height: {viewport_height}px, Document height: {document_height}px")

    shots: List[bytes] = []
    scroll = 0
    while len(shots) < max_shots:
        shots.append(page.screenshot(full_page=False, type="png"))
        if viewport_height <= 0 or scroll + viewport_height >= document_height:
            break
        scroll += viewport_height
        page.evaluate("(y) => window.scrollTo(0, y)", scroll)
        page.wait_for_timeout(settle_ms)
    else:
        logger.warning(f"⚠️ Reached maximum screenshot limit ({max_shots})")

    page.evaluate("() => window.scrollTo(0, 0)")
    logger.info(f"📸 Captured {len(shots)} screenshot(s)")
    return shots


def check_strategy(strategy: str) -> str:
    if strategy not in SURVEY_STRATEGIES:
        raise SurveyStrategyError(f"unknown survey strategy: {strategy!r} (expected one of {', '.join(SURVEY_STRATEGIES)})")
    return strategy


def survey_form(page, strategy: str = SURVEY_STRATEGY, capture: bool = True, max_shots: int = MAX_SCREENSHOTS) -> FormSurvey:
    if check_strategy(strategy) == "flat":
        survey = FormSurvey(standalone=scan_fields(page))
    else:
        survey = scan_questions(page)
    survey.url = page.url
    survey.title = page.title()
    if capture:
        survey.screenshots = capture_form_screenshots(page, max_shots=max_shots)
    return survey
