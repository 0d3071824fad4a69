"""
reconcile.py - Pair model-described fields with surveyed form fields.

Pure functions only; nothing here touches the browser.

Scoring, first hit wins:
    exact match of normalized labels        -> 1.0
    substring containment, either direction -> 0.8
    keyword overlap                         -> overlapping / larger keyword set
"""
import logging
import re
from typing import Iterable, List, Optional

from .models import CandidateField, FillInstruction, MatchedInstruction
from .utils import ci_match_label

logger = logging.getLogger(__name__)

EXACT = 1.0
CONTAINS = 0.8

STOPWORDS = {
    "the", "and", "for", "you", "your", "are", "our", "with", "this", "that",
    "what", "have", "has", "please", "enter", "any", "from", "will", "can",
    "not", "who", "how", "its", "was", "were", "been", "into", "about",
}


def normalize_label(s: str) -> str:
    """lowercase, drop required-marker asterisks, strip punctuation, collapse spaces"""
    s = (s or "").lower().strip()
    s = re.sub(r"\*+\s*$", "", s)
    s = re.sub(r"[^\w\s]", " ", s)
    return re.sub(r"\s+", " ", s).strip()


def keywords(s: str) -> List[str]:
    out = []
    for w in normalize_label(s).split():
        if len(w) > 2 and w not in STOPWORDS and w not in out:
            out.append(w)
    return out


def label_similarity(a: str, b: str) -> float:
    na, nb = normalize_label(a), normalize_label(b)
    if not na or not nb:
        return 0.0
    if na == nb:
        return EXACT
    if na in nb or nb in na:
        return CONTAINS

    ka, kb = keywords(na), keywords(nb)
    if not ka or not kb:
        return 0.0
    overlap = sum(1 for x in ka if any(x in y or y in x for y in kb))
    return overlap / max(len(ka), len(kb))


def _is_caption(text: str, field: CandidateField) -> bool:
    return bool(field.option_label) and normalize_label(text) == normalize_label(field.option_label)


def field_similarity(label: str, field: CandidateField) -> float:
    """
    Best score over the field's label texts. An option caption ("Yes", "No", "US")
    counts only on an exact match while the field has other texts to go on.
    """
    texts = [t for t in field.labels if t] or [field.label]
    questions = [t for t in texts if not _is_caption(t, field)]
    best = 0.0
    for t in texts:
        score = label_similarity(label, t)
        if questions and _is_caption(t, field) and score < EXACT:
            score = 0.0
        best = max(best, score)
    return best


def _option_matches(value: str, field: CandidateField) -> bool:
    """Does this radio/checkbox option represent the chosen value?"""
    if not value:
        return False
    if field.value and ci_match_label(value, [field.value]):
        return True
    if field.option_label:
        option_labels = [field.option_label]
    else:
        option_labels = field.labels[1:] if len(field.labels) > 1 else field.labels
    return any(label_similarity(value, t) == EXACT for t in option_labels)


def match_instruction(instr: FillInstruction, fields: Iterable[CandidateField]) -> Optional[MatchedInstruction]:
    """
    Resolve one instruction to a surveyed field.
    A selector the survey knows is taken as-is. Otherwise the best-scoring
    label wins; among ties a click prefers the option whose value or label
    equals the answer. An unknown selector is trusted only when no label matches.
    """
    fields = list(fields)
    if instr.selector:
        for f in fields:
            if f.selector == instr.selector:
                return MatchedInstruction(instr, f, EXACT)

    label = instr.target_label if instr.target_label != instr.selector else ""
    best: Optional[CandidateField] = None
    best_score = 0.0
    best_option = False
    for f in fields if label else []:
        score = field_similarity(label, f)
        if score <= 0.0:
            continue
        option = instr.action == "click" and _option_matches(instr.value, f)
        if score > best_score or (score == best_score and option and not best_option):
            best, best_score, best_option = f, score, option

    if best is not None:
        return MatchedInstruction(instr, best, best_score)
    if instr.selector:
        kind = "select" if instr.action == "select" else "text"
        return MatchedInstruction(instr, CandidateField(selector=instr.selector, kind=kind), EXACT)
    return None


def reconcile(instructions: Iterable[FillInstruction], fields: Iterable[CandidateField]) -> List[MatchedInstruction]:
    """Pair every instruction it can; unmatched ones are logged and dropped."""
    fields = list(fields)
    matched = []
    for instr in instructions:
        m = match_instruction(instr, fields)
        if m is None:
            logger.warning(f"⚠️ No field matches '{instr.target_label}', dropping instruction")
            continue
        logger.debug(f"🔗 '{instr.target_label}' -> {m.selector} (match {m.match_confidence:.2f})")
        matched.append(m)
    return matched
