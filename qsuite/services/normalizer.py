"""
Normalization of raw AI provider output into NormalizedTestCase records.

The provider is asked for strict JSON but does not always comply, so the pipeline is:

1. strip markdown code fences
2. strict JSON parse (a bare array, or an object with a ``testCases`` array)
3. per-candidate cleanup, truncation and defaults
4. heuristic text extraction when parsing fails or yields nothing usable
5. a single synthetic record when even the heuristic finds no sections

``normalize_response`` never raises and always returns at least one record. The
outcome is reported as ``ParsedOk``, ``ParsedFallback`` or ``ParsedEmpty`` so that
callers can tell salvaged output from well-formed output.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Union

import structlog

from qsuite.models.schemas import (
    DEFAULT_CATEGORY,
    DEFAULT_TAG,
    DESCRIPTION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    SCENARIO_MAX_LENGTH,
    NormalizedTestCase,
)

logger = structlog.get_logger()

CATEGORY_MAX_LENGTH = 100
SYNTHETIC_NAME = "Generated Test Case"
FALLBACK_PARSED_TAG = "fallback-parsed"
FALLBACK_TAG = "fallback"

JSON_DEFAULT_SCENARIOS = (
    "Execute the test case as described",
    "Verify expected results match requirements",
    "Document any issues or deviations found",
)
HEURISTIC_DEFAULT_SCENARIOS = (
    "Execute the test scenario as described",
    "Verify expected results",
    "Document any findings",
)
SYNTHETIC_SCENARIOS = (
    "Review the test requirements",
    "Execute the test steps",
    "Verify the expected results",
)

_CODE_FENCE = re.compile(r"```[A-Za-z]*[ \t]*\n?")

# Section boundaries are only recognised at line starts
_PRIMARY_BOUNDARY = re.compile(
    r"^[ \t]*(?:\*\*)?[ \t]*(?:test[ \t]*case\b|tc[ \t]*-?[ \t]*\d+|#{1,3}[ \t]*[a-z0-9])",
    re.IGNORECASE | re.MULTILINE,
)
_NUMBERED_BOUNDARY = re.compile(r"^[ \t]*\d+\.[ \t]*[a-z]", re.IGNORECASE | re.MULTILINE)

_HEADING_PREFIX = re.compile(r"^#{1,3}\s*")
_TEST_CASE_PREFIX = re.compile(r"^(?:test\s*case\b\s*[-#]?\s*\d*|tc\s*[-#]?\s*\d+)\s*[:\-.)]?\s*", re.IGNORECASE)
_NUMBER_PREFIX = re.compile(r"^\d+\.\s*")

_STEP_LINE = re.compile(r"^(?:\d+[.)]|[-•]|\*\s|step\b|scenario\b|given\b|when\b|then\b)", re.IGNORECASE)
_STEP_MARKER = re.compile(r"^(?:\d+[.)]\s*|[-•]\s*|\*\s+|step\s*\d*\s*[:\-.)]?\s*)", re.IGNORECASE)
_SCENARIO_LABEL = re.compile(r"^scenario\s*\d*\s*[:\-.]?\s*", re.IGNORECASE)
# Markdown bold labels such as "**Description:**" or "**Steps:**"
_BOLD_LABEL = re.compile(
    r"^\*\*(?!\s*(?:step|scenario|given|when|then)\b)[^*\n]+?(?::\s*\*\*|\*\*\s*:)\s*",
    re.IGNORECASE,
)

MIN_SECTION_LENGTH = 10
MIN_NAME_LENGTH = 3
MIN_DESCRIPTION_LINE_LENGTH = 5
MIN_CONTINUATION_LINE_LENGTH = 3
SYNTHETIC_WORD_COUNT = 10


@dataclass(frozen=True)
class ParsedOk:
    """Strict JSON parse produced at least one valid test case"""

    test_cases: List[NormalizedTestCase]
    degraded: ClassVar[bool] = False


@dataclass(frozen=True)
class ParsedFallback:
    """Test cases were salvaged from free text by the heuristic extractor"""

    test_cases: List[NormalizedTestCase]
    degraded: ClassVar[bool] = True


@dataclass(frozen=True)
class ParsedEmpty:
    """Nothing usable was found; holds a single synthetic test case"""

    test_cases: List[NormalizedTestCase]
    degraded: ClassVar[bool] = True


NormalizationResult = Union[ParsedOk, ParsedFallback, ParsedEmpty]


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (```json ... ```) and surrounding whitespace"""
    return _CODE_FENCE.sub("", text).strip()


def parse_candidates(text: str) -> Optional[List[Any]]:
    """Strictly parse ``text`` and return the list of candidate test cases.

    Returns None when the text is not JSON or not one of the accepted shapes.
    """
    try:
        parsed = json.loads(text)
    except (ValueError, RecursionError):
        return None

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("testCases"), list):
        return parsed["testCases"]
    return None


def _coerce_scenarios(value: Any) -> List[str]:
    if isinstance(value, list):
        items = [item for item in value if isinstance(item, str)]
    elif isinstance(value, str):
        items = [value]
    else:
        items = []
    return [item.strip()[:SCENARIO_MAX_LENGTH] for item in items if item.strip()]


def _coerce_tags(value: Any) -> List[str]:
    tags: List[str] = []
    if isinstance(value, list):
        for item in value:
            if isinstance(item, str) and item.strip() and item.strip() not in tags:
                tags.append(item.strip())
    return tags or [DEFAULT_TAG]


def normalize_candidate(candidate: Any) -> Optional[NormalizedTestCase]:
    """Clean a single parsed candidate; None if it has no usable name"""
    if not isinstance(candidate, dict):
        return None
    raw_name = candidate.get("name")
    if not isinstance(raw_name, str) or not raw_name.strip():
        return None

    name = raw_name.strip()[:NAME_MAX_LENGTH]

    scenarios = _coerce_scenarios(candidate.get("scenarios"))
    if not scenarios:
        scenarios = list(JSON_DEFAULT_SCENARIOS)

    description = candidate.get("description")
    description = description.strip() if isinstance(description, str) else ""
    if not description:
        description = f"Test case to validate {name.lower()}"

    category = candidate.get("category")
    category = category.strip() if isinstance(category, str) else ""

    return NormalizedTestCase(
        name=name,
        description=description[:DESCRIPTION_MAX_LENGTH],
        scenarios=scenarios,
        category=category[:CATEGORY_MAX_LENGTH] or DEFAULT_CATEGORY,
        tags=_coerce_tags(candidate.get("tags")),
    )


def normalize_candidates(candidates: List[Any]) -> List[NormalizedTestCase]:
    normalized = []
    for index, candidate in enumerate(candidates):
        test_case = normalize_candidate(candidate)
        if test_case is None:
            logger.warning("Dropping test case candidate without a name", index=index)
            continue
        normalized.append(test_case)
    return normalized


def split_sections(text: str) -> List[str]:
    """Split free text into candidate test case sections.

    "Test Case", "TC <n>" and markdown heading lines start a section. Numbered
    lines ("1. Something") only start sections when none of those are present,
    since otherwise they are the steps of the enclosing test case. Text before
    the first boundary is dropped; text without any boundary is one section.
    """
    starts = [m.start() for m in _PRIMARY_BOUNDARY.finditer(text)]
    if not starts:
        starts = [m.start() for m in _NUMBERED_BOUNDARY.finditer(text)]
    if not starts:
        return [text.strip()] if text.strip() else []

    bounds = starts + [len(text)]
    sections = (text[start:end].strip() for start, end in zip(bounds, bounds[1:]))
    return [section for section in sections if section]


def _derive_name(first_line: str) -> str:
    name = first_line.strip().strip("*").strip()
    name = _HEADING_PREFIX.sub("", name)
    name = _TEST_CASE_PREFIX.sub("", name)
    name = _NUMBER_PREFIX.sub("", name)
    return name.strip().strip("*").strip()


def _clean_step(line: str) -> str:
    step = _STEP_MARKER.sub("", line)
    step = _SCENARIO_LABEL.sub("", step)
    return step.strip()


def extract_section(section: str) -> Optional[NormalizedTestCase]:
    """Build a test case from one text section; None if the section is unusable"""
    if len(section) < MIN_SECTION_LENGTH:
        return None
    lines = [line.strip() for line in section.splitlines() if line.strip()]
    if not lines:
        return None

    name = _derive_name(lines[0])
    # Leftover JSON (e.g. a truncated completion) is not a name
    if len(name) < MIN_NAME_LENGTH or name[0] in "{[":
        return None
    name = name[:NAME_MAX_LENGTH]

    description = ""
    scenarios: List[str] = []
    in_steps = False
    for line in lines[1:]:
        line = _BOLD_LABEL.sub("", line).replace("**", "").strip()
        if not line:
            continue
        if _STEP_LINE.match(line):
            in_steps = True
            step = _clean_step(line)
            if step:
                scenarios.append(step[:SCENARIO_MAX_LENGTH])
        elif not description and len(line) > MIN_DESCRIPTION_LINE_LENGTH:
            description = line[:DESCRIPTION_MAX_LENGTH]
        elif in_steps and len(line) > MIN_CONTINUATION_LINE_LENGTH:
            scenarios.append(line[:SCENARIO_MAX_LENGTH])

    if not description:
        description = f"Test case to verify {name.lower()}"[:DESCRIPTION_MAX_LENGTH]
    if not scenarios:
        scenarios = list(HEURISTIC_DEFAULT_SCENARIOS)

    return NormalizedTestCase(
        name=name,
        description=description,
        scenarios=scenarios,
        category=DEFAULT_CATEGORY,
        tags=[DEFAULT_TAG, FALLBACK_PARSED_TAG],
    )


def extract_from_text(text: str) -> List[NormalizedTestCase]:
    """Heuristic extraction of test cases from non-JSON text (may be empty)"""
    test_cases = []
    for section in split_sections(text):
        test_case = extract_section(section)
        if test_case is not None:
            test_cases.append(test_case)
    return test_cases


def synthesize_test_case(text: str) -> NormalizedTestCase:
    """Single generic test case built from the first words of ``text``"""
    words = " ".join(text.split()[:SYNTHETIC_WORD_COUNT])
    description = f"AI generated test case: {words}..." if words else "AI generated test case"
    return NormalizedTestCase(
        name=SYNTHETIC_NAME,
        description=description[:DESCRIPTION_MAX_LENGTH],
        scenarios=list(SYNTHETIC_SCENARIOS),
        category=DEFAULT_CATEGORY,
        tags=[DEFAULT_TAG, FALLBACK_TAG],
    )


def normalize_response(raw: Optional[str]) -> NormalizationResult:
    """Turn raw provider text into a non-empty list of valid test cases"""
    text = strip_code_fences(raw or "")
    try:
        candidates = parse_candidates(text)
        if candidates is not None:
            test_cases = normalize_candidates(candidates)
            if test_cases:
                return ParsedOk(test_cases)
            logger.warning("No valid test cases after JSON normalization, using fallback parser",
                           candidates=len(candidates))
        else:
            logger.warning("Provider output is not the expected JSON, using fallback parser",
                           preview=text[:200])

        test_cases = extract_from_text(text)
        if test_cases:
            logger.info("Fallback parser extracted test cases", count=len(test_cases))
            return ParsedFallback(test_cases)
    except Exception as e:
        logger.error("Normalization failed, synthesizing a test case", error=str(e), exc_info=True)

    return ParsedEmpty([synthesize_test_case(text)])
