"""Keyword heuristics that decide which deterministic CTAs a chat turn gets.

These are plain regex predicates over the user's question; they stay
separate functions so each one can be tested on its own.
"""
from __future__ import annotations

import re
from typing import Optional

_FOLLOW_UP_RE = re.compile(r"(follow[\s-]?up|contact|message|reach out|notify|late notice)", re.IGNORECASE)
_REPORT_RE = re.compile(r"\breport\b|\bsummary\b|\bstatement\b|\banalysis\b|\bgenerate\b|\bprepare\b")
_LIST_SCENARIOS_RE = re.compile(r"\blist\b.*scenarios|\bavailable\b.*scenarios|\bshow\b.*scenarios")

_CRLF_RE = re.compile(r"\r\n")
_INLINE_BULLET_RE = re.compile(r"([^\n])(-\s)")
_EXTRA_BLANK_LINES_RE = re.compile(r"\n{3,}")


def should_suggest_follow_up(question: Optional[str]) -> bool:
    return bool(_FOLLOW_UP_RE.search(question or ""))


def should_suggest_report(question: Optional[str]) -> bool:
    return bool(_REPORT_RE.search((question or "").lower()))


def should_list_scenarios(question: Optional[str]) -> bool:
    return bool(_LIST_SCENARIOS_RE.search((question or "").lower()))


def display_borrower_name(name: Optional[str]) -> str:
    # "Last, First" -> "Last"
    if not name:
        return "Borrower"
    parts = name.split(",")
    return parts[0].strip() if len(parts) > 1 else name


def format_answer(answer: Optional[str]) -> str:
    if not answer:
        return ""
    text = _CRLF_RE.sub("\n", answer)
    text = _INLINE_BULLET_RE.sub(lambda m: f"{m.group(1)}\n- ", text)
    text = _EXTRA_BLANK_LINES_RE.sub("\n\n", text)
    return text.strip()
