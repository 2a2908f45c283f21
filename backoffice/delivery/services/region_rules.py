"""
Region classification for delivery addresses.

A classifier holds an ordered list of rules; the first rule whose predicate
accepts an address names its region, and addresses no rule accepts fall in
the default region.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence, Tuple

from django.conf import settings


@dataclass(frozen=True)
class RegionRule:
    label: str
    predicate: Callable[[str], bool]

    def matches(self, address: str) -> bool:
        return self.predicate(address)


def keyword_rule(label: str, keywords: Iterable[str]) -> RegionRule:
    """Rule matching addresses that contain any of ``keywords``, ignoring case."""
    lowered = tuple(keyword.lower() for keyword in keywords)

    def predicate(address: str) -> bool:
        address = (address or "").lower()
        return any(keyword in address for keyword in lowered)

    return RegionRule(label, predicate)


class RegionClassifier:
    """Maps delivery addresses to region labels."""

    def __init__(self, rules: Sequence[RegionRule], default_label: str):
        self.rules: List[RegionRule] = list(rules)
        self.default_label = default_label

    def classify(self, address: str) -> str:
        for rule in self.rules:
            if rule.matches(address):
                return rule.label
        return self.default_label

    @classmethod
    def from_keywords(cls, rules: Sequence[Tuple[str, Iterable[str]]], default_label: str) -> "RegionClassifier":
        return cls([keyword_rule(label, keywords) for label, keywords in rules], default_label)

    @classmethod
    def from_settings(cls) -> "RegionClassifier":
        return cls.from_keywords(settings.DELIVERY_REGION_RULES, settings.DELIVERY_DEFAULT_REGION)
