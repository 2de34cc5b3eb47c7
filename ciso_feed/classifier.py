"""CIA+NR impact classification (Confidentiality, Integrity, Availability, Non-Repudiation)."""

from typing import Dict, List, Optional

from .models import CIA_DIMENSIONS
from .vocabulary import CIA_KEYWORDS

DEFAULT_CIA_TAG = "integrity"


def score_cia(text: Optional[str]) -> Dict[str, int]:
    """
    Score each CIA+NR dimension from 0 to 3.

    A dimension takes the score of the highest keyword group that matches:
    3 for direct impact, 2 for indirect, 1 for tangential, 0 for none.
    """
    lowered = (text or "").lower()
    scores = {}
    for dimension in CIA_DIMENSIONS:
        score = 0
        for group_score, keywords in CIA_KEYWORDS[dimension]:
            if group_score > score and any(kw in lowered for kw in keywords):
                score = group_score
        scores[dimension] = score
    return scores


def tags_from_scores(scores: Dict[str, int]) -> List[str]:
    tags = [dimension for dimension in CIA_DIMENSIONS if scores.get(dimension, 0) > 0]
    return tags or [DEFAULT_CIA_TAG]


def classify_cia(text: Optional[str]) -> List[str]:
    """Return the CIA+NR tags touched by the text, defaulting to integrity."""
    return tags_from_scores(score_cia(text))
