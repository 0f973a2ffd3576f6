"""
Word and section estimators used when title content cannot be fetched.
"""

from typing import Optional


STRUCTURE_WORD_KEYWORDS = ('section', 'part', 'chapter', 'subpart', 'paragraph',
                           'regulation', 'rule')
SECTION_KEYWORDS = ('section', '§', 'sec.', 'part', 'subpart')

WORDS_PER_KEYWORD = 50
MIN_STRUCTURE_ESTIMATE = 1000
NAME_BASE_ESTIMATE = 5000
DEFAULT_SECTION_ESTIMATE = 10


def _count_keywords(text: str, keywords) -> int:
    lowered = text.lower()
    return sum(lowered.count(keyword) for keyword in keywords)


def estimate_words_from_structure(structure: Optional[str]) -> int:
    """
    Estimate a title's word count from its structure payload.

    Every keyword occurrence counts for fifty words; the estimate never
    drops below one thousand.
    """
    if structure is None:
        return MIN_STRUCTURE_ESTIMATE
    return max(MIN_STRUCTURE_ESTIMATE,
               _count_keywords(structure, STRUCTURE_WORD_KEYWORDS) * WORDS_PER_KEYWORD)


def estimate_words_from_name(name: Optional[str]) -> int:
    """Estimate a title's word count from its name alone."""
    if name is None:
        return 1000

    words = NAME_BASE_ESTIMATE
    lowered = name.lower()

    if len(name) > 30:
        words += 2000
    if 'administration' in lowered:
        words += 3000
    if 'management' in lowered:
        words += 2000
    if 'regulation' in lowered:
        words += 4000

    return words


def estimate_word_count(structure: Optional[str], name: Optional[str]) -> int:
    """Estimate from the structure when available, otherwise from the name."""
    if structure is not None:
        return estimate_words_from_structure(structure)
    return estimate_words_from_name(name)


def estimate_sections(structure: Optional[str]) -> int:
    """Estimate the number of structural elements in a structure payload (at least one)."""
    if structure is None:
        return DEFAULT_SECTION_ESTIMATE
    return max(_count_keywords(structure, SECTION_KEYWORDS), 1)
