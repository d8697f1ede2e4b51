"""
Response Parsing - Turns free-text provider responses into structured values.

None of these helpers raise on bad input: unparseable field detection falls
back to a default analysis, and missing hypothesis content is replaced with
generated placeholders.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from thoughtgraph.config.errors import MalformedResponse

from .models import FieldAnalysis

logger = logging.getLogger(__name__)

__all__ = [
    "extract_dimension_content",
    "extract_falsification_criteria",
    "extract_field",
    "extract_hypothesis",
    "extract_objectives",
    "parse_field_analysis",
]

_EMBEDDED_JSON = re.compile(r"\{.*\}", re.DOTALL)
_FIELD = re.compile(r"field[s]?[:\-]\s*([^\n\r,.]+)", re.IGNORECASE)
_OBJECTIVE_LABEL = r"(?:objectives?|obj|goals?)[:\-]\s*"
_OBJECTIVES = re.compile(
    _OBJECTIVE_LABEL + r"([^\n\r]*(?:\n\s*[-•*][^\n\r]*)*)", re.IGNORECASE
)
_BULLET_PREFIX = re.compile(r"^[-•*]\s*")


def _load_json(text: str) -> dict[str, Any]:
    """Parse a JSON object, also when it is wrapped in prose or code fences."""
    candidates = [text]
    embedded = _EMBEDDED_JSON.search(text)
    if embedded:
        candidates.append(embedded.group(0))

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data

    raise MalformedResponse("Field detection response is not a JSON object", {"length": len(text)})


def extract_field(text: str) -> str:
    """Field named as ``field: X`` in free text, ``General Science`` otherwise."""
    match = _FIELD.search(text or "")
    return match.group(1).strip() if match else "General Science"


def extract_objectives(text: str) -> list[str]:
    """Objective lists introduced by objective/obj/goal labels."""
    if not text:
        return ["Comprehensive analysis"]

    objectives: list[str] = []
    for match in _OBJECTIVES.finditer(text):
        block = match.group(1).strip()
        if "," in block:
            items = block.split(",")
        elif ";" in block:
            items = block.split(";")
        else:
            items = block.split("\n")
        for item in items:
            cleaned = _BULLET_PREFIX.sub("", item.strip()).strip()
            if cleaned:
                objectives.append(cleaned)

    return objectives or ["Comprehensive analysis"]


def parse_field_analysis(text: str | None) -> FieldAnalysis:
    """
    Parse the field-detection response.

    Tries JSON, then an embedded JSON object, then regex extraction. An empty
    response yields the default analysis.

    Args:
        text: Raw provider response

    Returns:
        Parsed or default field analysis
    """
    if not text or not text.strip():
        logger.warning("Empty field detection response, using default analysis")
        return FieldAnalysis()

    try:
        data = _load_json(text)
    except MalformedResponse as e:
        logger.warning("%s; extracting field and objectives from text", e.message)
        return FieldAnalysis(
            primary_field=extract_field(text),
            objectives=extract_objectives(text),
        )

    defaults = FieldAnalysis()
    return FieldAnalysis(
        primary_field=str(data.get("primary_field") or defaults.primary_field),
        secondary_fields=[str(f) for f in data.get("secondary_fields") or []],
        objectives=[str(o) for o in data.get("objectives") or []],
        interdisciplinary_connections=[
            str(c) for c in data.get("interdisciplinary_connections") or []
        ],
        constraints=[str(c) for c in data.get("constraints") or []],
        initial_scope=str(data.get("initial_scope") or defaults.initial_scope),
    )


def extract_dimension_content(text: str | None, dimension: str, field: str) -> str:
    """Single-line description following the dimension label."""
    fallback = f"{dimension} analysis for {field} research context"
    if not text:
        return fallback
    pattern = re.compile(
        rf"{re.escape(dimension)}[*:\s]*([^\n]+)(?=\n\n|\n[a-zA-Z_]+:|\Z)",
        re.IGNORECASE,
    )
    match = pattern.search(text)
    return match.group(1).strip() if match else fallback


def _first_match(text: str, patterns: list[str]) -> str | None:
    for pattern in patterns:
        match = re.search(pattern, text, re.IGNORECASE)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def extract_hypothesis(text: str | None, index: int, field: str) -> str:
    """Statement of hypothesis ``index`` (1-based)."""
    found = None
    if text:
        found = _first_match(
            text,
            [
                rf"hypothesis_{index}[:\s]*([^\n\r]+)",
                rf"\bh{index}\b[:\s]*([^\n\r]+)",
                rf"hypothesis\s*{index}\b[:\s]*([^\n\r]+)",
            ],
        )
    return found or f"Hypothesis {index} for {field} research context"


def extract_falsification_criteria(text: str | None, index: int, field: str) -> str:
    """Falsification criteria of hypothesis ``index``, never empty."""
    found = None
    if text:
        found = _first_match(
            text,
            [
                rf"falsification_{index}[:\s]*([^\n\r]+)",
                rf"\bf{index}\b[:\s]*([^\n\r]+)",
                rf"falsification\s*{index}\b[:\s]*([^\n\r]+)",
            ],
        )
    return found or f"Specific testable criteria for Hypothesis {index} in {field} research context"
