"""
Deterministic merge of the per-source outcomes into one verdict.

Rules, in order:
  1. no-detection heuristic (sentinel / generative timeout / all unknown)
  2. first pairwise agreement: detector+classifier, detector+generative,
     classifier+generative
  3. priority fallback: generative (unless it timed out), classifier,
     detector, generic label
Severity comes only from the grader and defaults to grade 0 when it failed.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from .acne_types import (
    GENERIC_LABEL,
    NO_ACNE_SENTINEL,
    UNKNOWN_LABEL,
    format_prediction,
    get_severity_label,
)
from .outcomes import AdapterOutcome, Failure, Success

logger = logging.getLogger(__name__)

DETECTOR = "detector"
CLASSIFIER = "classifier"
GENERATIVE = "generative"
GRADER = "grader"

LABEL_SOURCES = (DETECTOR, CLASSIFIER, GENERATIVE)
ALL_SOURCES = LABEL_SOURCES + (GRADER,)

AGREEMENT_ORDER = (
    (DETECTOR, CLASSIFIER),
    (DETECTOR, GENERATIVE),
    (CLASSIFIER, GENERATIVE),
)
FALLBACK_ORDER = (GENERATIVE, CLASSIFIER, DETECTOR)

DEFAULT_GRADE = 0


@dataclass
class ConsensusResult:
    final_label: Optional[str]
    severity_grade: Optional[int]
    severity_label: Optional[str]
    per_adapter_labels: Dict[str, str]
    per_adapter_errors: Dict[str, Optional[str]]
    no_detection: bool = False
    decided_by: str = ""
    # True when the grader failed and DEFAULT_GRADE was substituted. A
    # defaulted grade is not evidence of clear skin.
    severity_defaulted: bool = False


def normalized_label(outcome: Optional[AdapterOutcome]) -> str:
    if not isinstance(outcome, Success):
        return UNKNOWN_LABEL
    value = outcome.value
    if value is None or str(value).strip() == "":
        return UNKNOWN_LABEL
    if str(value).strip().lower() == UNKNOWN_LABEL.lower():
        return UNKNOWN_LABEL
    return format_prediction(value)


def _timed_out(outcome: Optional[AdapterOutcome]) -> bool:
    return isinstance(outcome, Failure) and outcome.timed_out


def is_no_detection(labels: Mapping[str, str], outcomes: Mapping[str, AdapterOutcome]) -> bool:
    generative = outcomes.get(GENERATIVE)
    generative_text = ""
    if isinstance(generative, Success):
        generative_text = str(generative.raw_label or generative.value or "")

    if NO_ACNE_SENTINEL in generative_text.lower():
        return True
    if _timed_out(generative) and labels[CLASSIFIER] == UNKNOWN_LABEL:
        return True
    return all(labels[name] == UNKNOWN_LABEL for name in LABEL_SOURCES)


def pick_label(labels: Mapping[str, str], outcomes: Mapping[str, AdapterOutcome]):
    """Return (label, rule) following agreement first, then priority."""
    for a, b in AGREEMENT_ORDER:
        if labels[a] != UNKNOWN_LABEL and labels[a] == labels[b]:
            return labels[a], f"agreement:{a}+{b}"

    for name in FALLBACK_ORDER:
        if name == GENERATIVE and _timed_out(outcomes.get(GENERATIVE)):
            continue
        if labels[name] != UNKNOWN_LABEL:
            return labels[name], f"priority:{name}"

    return GENERIC_LABEL, "default"


def resolve_severity(outcome: Optional[AdapterOutcome]):
    """Return (grade, label, defaulted)."""
    if not isinstance(outcome, Success) or not isinstance(outcome.value, int):
        return DEFAULT_GRADE, get_severity_label(DEFAULT_GRADE), True

    reported = outcome.value
    grade = max(0, min(3, reported))
    # The label reflects what was reported, so an out-of-range grade is
    # visible as "Unknown" even though the number is clamped.
    return grade, get_severity_label(reported), False


def build_consensus(outcomes: Mapping[str, AdapterOutcome]) -> ConsensusResult:
    labels = {name: normalized_label(outcomes.get(name)) for name in LABEL_SOURCES}

    errors: Dict[str, Optional[str]] = {}
    for name in ALL_SOURCES:
        outcome = outcomes.get(name)
        if outcome is None:
            errors[name] = f"{name} was not invoked"
        elif isinstance(outcome, Failure):
            errors[name] = outcome.message
        else:
            errors[name] = None

    if is_no_detection(labels, outcomes):
        logger.info(f"No acne detected: labels={labels}")
        return ConsensusResult(
            final_label=None,
            severity_grade=None,
            severity_label=None,
            per_adapter_labels=labels,
            per_adapter_errors=errors,
            no_detection=True,
            decided_by="no_detection",
        )

    label, rule = pick_label(labels, outcomes)
    grade, severity_label, defaulted = resolve_severity(outcomes.get(GRADER))

    logger.info(f"Consensus {label!r} via {rule}; severity {grade} ({severity_label}); labels={labels}")
    return ConsensusResult(
        final_label=format_prediction(label),
        severity_grade=grade,
        severity_label=severity_label,
        per_adapter_labels=labels,
        per_adapter_errors=errors,
        no_detection=False,
        decided_by=rule,
        severity_defaulted=defaulted,
    )
