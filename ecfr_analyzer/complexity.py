"""
Complexity scoring for groups of titles.

Two agency-scoped indices are computed:

* Regulatory Complexity Index (RCI), an unbounded weighted sum of
  verbosity, scope and structural breadth.
* Complexity Score, a 0-10 score of verbosity, scope and how recently
  the titles were amended.
"""

import json
import logging
from typing import Any, List, Optional, Set, Tuple

from .config import Config
from .dates import normalize_date
from .models import Title


logger = logging.getLogger(__name__)


STRUCTURAL_TYPES = frozenset({'part', 'chapter', 'section'})


def _average_words(titles: List[Title]) -> float:
    return sum(title.word_count for title in titles) / len(titles)


def _distinct_title_numbers(titles: List[Title]) -> int:
    return len({title.number for title in titles if title.number is not None})


def structural_elements(structure: Optional[str]) -> Set[Tuple[str, str]]:
    """
    Distinct (type, identifier) pairs for the part, chapter and section
    nodes of a structure payload.

    Returns an empty set when the payload is missing or not valid JSON.
    """
    if not structure:
        return set()

    try:
        root = json.loads(structure)
    except ValueError as e:
        logger.debug(f"Structure payload is not valid JSON: {e}")
        return set()

    elements = set()
    stack: List[Any] = [root]
    while stack:
        node = stack.pop()
        if isinstance(node, list):
            stack.extend(node)
            continue
        if not isinstance(node, dict):
            continue

        node_type = str(node.get('type') or '').lower()
        identifier = str(node.get('identifier') or '').strip()
        if node_type in STRUCTURAL_TYPES and identifier:
            elements.add((node_type, identifier))

        children = node.get('children')
        if isinstance(children, list):
            stack.extend(children)

    return elements


def count_structural_elements(titles: List[Title]) -> int:
    """Distinct structural elements observed across the titles' structures."""
    observed = set()
    for title in titles:
        for node_type, identifier in structural_elements(title.structure_data):
            observed.add((title.number, node_type, identifier))
    return len(observed)


def regulatory_complexity_index(titles: List[Title]) -> float:
    """
    RCI = 0.4 * (avg_words / 1000) + 0.3 * (distinct_titles / 10)
          + 0.3 * (structural_elements / 100)

    Rounded to two decimals; 0.0 for an empty group.
    """
    if not titles:
        return 0.0

    verbosity = _average_words(titles) / 1000.0
    scope = _distinct_title_numbers(titles) / 10.0
    structure = count_structural_elements(titles) / 100.0

    return round(verbosity * 0.4 + scope * 0.3 + structure * 0.3, 2)


def complexity_score(titles: List[Title], recent_cutoff: str = None) -> float:
    """
    Complexity Score on a 0-10 scale.

    Verbosity and scope contribute up to 3 points each, the share of titles
    amended on or after the cutoff up to 4. Returns 1.0 for an empty group.
    """
    if not titles:
        return 1.0

    cutoff = recent_cutoff or Config.RECENT_AMENDMENT_CUTOFF

    verbosity = min(_average_words(titles) / 5000.0, 3.0)
    scope = min(_distinct_title_numbers(titles) / 5.0, 3.0)

    recent = 0
    for title in titles:
        amended = normalize_date(title.latest_amended_on)
        if amended and amended >= cutoff:
            recent += 1
    updates = min(recent / len(titles) * 4.0, 4.0)

    return round(min(verbosity + scope + updates, 10.0), 2)
