"""
Line-oriented Gherkin parser.

Splits raw text into Feature and Scenario blocks using textual markers. This is
a heuristic splitter, not a Gherkin grammar: block contents are kept verbatim so
they can be written to Jira as-is.
"""
import re
import logging
from typing import List, Optional

from models.gherkin import Feature, Scenario

logger = logging.getLogger(__name__)

FEATURE_MARKER = "Feature:"

# A scenario marker only counts at the start of a line (after optional indentation)
_SCENARIO_MARKER = re.compile(r"\n\s*Scenario(\s+Outline)?[ \t]*:[ \t]*")
# Names must sit on the marker's own line
_FEATURE_NAME = re.compile(r"Feature:[ \t]*([^\n]+)")
_SCENARIO_NAME = re.compile(r"Scenario(?:\s+Outline)?:[ \t]*([^\n]+)")


class ParseError(ValueError):
    """Raised when the input cannot be parsed into at least one Feature."""
    pass


def _extract_name(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    if not match:
        return None
    name = match.group(1).strip()
    return name or None


def _split_scenarios(feature_content: str) -> List[Scenario]:
    """
    Split a Feature block into Scenario blocks.

    The text before the first scenario marker (description, Background) is not a
    scenario; it stays in the Feature's raw content only.
    """
    markers = list(_SCENARIO_MARKER.finditer(feature_content))
    scenarios = []

    for index, marker in enumerate(markers):
        end = markers[index + 1].start() if index + 1 < len(markers) else len(feature_content)
        body = feature_content[marker.end():end].rstrip()
        raw_content = f"Scenario: {body}"
        name = _extract_name(_SCENARIO_NAME, raw_content) or f"Scenario_{index + 1}"
        scenarios.append(Scenario(
            name=name,
            raw_content=raw_content,
            outline=marker.group(1) is not None
        ))

    return scenarios


def parse_gherkin(text: str) -> List[Feature]:
    """
    Parse Gherkin text into Features with their Scenarios.

    Args:
        text: Raw document text (one or more concatenated .feature files)

    Returns:
        Features in document order

    Raises:
        ParseError: If the text is empty or contains no non-empty Feature block
    """
    if text is None or not text.strip():
        raise ParseError("Gherkin content is empty")

    # Anything before the first marker is preamble, not a feature
    segments = text.split(FEATURE_MARKER)[1:]
    features = []

    for segment in segments:
        if not segment.strip():
            continue

        body = segment.lstrip(" \t").rstrip()
        raw_content = f"{FEATURE_MARKER} {body}"
        position = len(features) + 1
        name = _extract_name(_FEATURE_NAME, raw_content) or f"Feature_{position}"
        scenarios = _split_scenarios(raw_content)

        logger.debug(f"Parsed feature '{name}' with {len(scenarios)} scenarios")
        features.append(Feature(name=name, raw_content=raw_content, scenarios=scenarios))

    if not features:
        raise ParseError(f"No '{FEATURE_MARKER}' blocks found in Gherkin content")

    logger.info(
        f"Parsed {len(features)} features with "
        f"{sum(len(f.scenarios) for f in features)} scenarios"
    )
    return features
