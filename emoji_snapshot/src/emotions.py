"""
Expression labels, emoji mapping and dominant-label reduction.
"""

from enum import Enum
from typing import Mapping, Optional, TypeVar, Union


class Expression(str, Enum):
    """Closed set of facial expressions the scorer reports.

    Declaration order is the iteration order of every scoring result.
    """

    NEUTRAL = 'neutral'
    HAPPY = 'happy'
    SAD = 'sad'
    ANGRY = 'angry'
    FEARFUL = 'fearful'
    DISGUSTED = 'disgusted'
    SURPRISED = 'surprised'


FALLBACK_GLYPH = '❓'

EXPRESSION_TO_EMOJI = {
    Expression.HAPPY: '😊',
    Expression.SAD: '😢',
    Expression.ANGRY: '😠',
    Expression.FEARFUL: '😨',
    Expression.DISGUSTED: '🤢',
    Expression.SURPRISED: '😲',
    Expression.NEUTRAL: '😐',
}

Label = TypeVar('Label')


def parse_expression(label: Union[str, Expression]) -> Optional[Expression]:
    """Return the Expression named by ``label``, or None if it is not one."""
    if isinstance(label, Expression):
        return label
    try:
        return Expression(str(label).strip().lower())
    except ValueError:
        return None


def map_to_glyph(label: Union[str, Expression]) -> str:
    """
    Map an expression label to its emoji.

    Args:
        label: Expression or its string name (case insensitive)

    Returns:
        Emoji glyph, FALLBACK_GLYPH for anything unrecognized
    """
    expression = parse_expression(label)
    if expression is None:
        return FALLBACK_GLYPH
    return EXPRESSION_TO_EMOJI[expression]


def reduce_dominant(scores: Mapping[Label, float]) -> Label:
    """
    Pick the label with the highest probability.

    Only a strictly greater probability replaces the running maximum, so on a
    tie the label seen first in the mapping's iteration order wins. That order
    is arbitrary (it follows Expression declaration order), not a fairness rule.

    Args:
        scores: Non-empty label -> probability mapping

    Returns:
        The dominant label
    """
    if not scores:
        raise ValueError("Cannot reduce an empty score mapping")

    items = iter(scores.items())
    best_label, best_prob = next(items)
    for label, prob in items:
        if prob > best_prob:
            best_label, best_prob = label, prob

    return best_label
