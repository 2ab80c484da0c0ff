"""Ordered rule cascades: the first rule whose result is accepted wins."""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

logger = logging.getLogger(__name__)


def _always(value: Any) -> bool:
    return True


@dataclass(frozen=True)
class Rule:
    """
    One step of a cascade.

    Attributes:
        name: Label used in debug logging
        extract: Callable producing a candidate value from the subject,
            or None when the rule does not apply
        accept: Predicate the candidate must satisfy to win
    """
    name: str
    extract: Callable[[Any], Optional[Any]]
    accept: Callable[[Any], bool] = _always


def first_match(rules: Iterable[Rule], subject: Any) -> Optional[Any]:
    """
    Evaluate rules in order and return the first accepted, non-empty value.

    Args:
        rules: Ordered rules to try
        subject: Input handed to each rule's extractor

    Returns:
        The winning value, or None if every rule declines
    """
    for rule in rules:
        value = rule.extract(subject)
        if value is None or value == '':
            continue
        if rule.accept(value):
            logger.debug(f"Rule '{rule.name}' accepted {value!r}")
            return value
    return None
