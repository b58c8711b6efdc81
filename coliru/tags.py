from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Sequence, Union

NEGATION_MARKER = "^"
UNION_SEPARATOR = ","


@dataclass(frozen=True)
class TagRule:
    """A single rule: an optionally negated union of tag labels.

    `A,B` is satisfied when a step carries A or B, `^A,B` when it carries
    neither.
    """

    labels: FrozenSet[str]
    negated: bool
    text: str

    def is_satisfied(self, tags: Iterable[str]) -> bool:
        found = not self.labels.isdisjoint(tags)
        return found != self.negated

    def __str__(self) -> str:
        return self.text


RuleLike = Union[str, TagRule]


def parse_rule(text: str) -> TagRule:
    negated = text.startswith(NEGATION_MARKER)
    body = text[len(NEGATION_MARKER):] if negated else text
    return TagRule(labels=frozenset(body.split(UNION_SEPARATOR)), negated=negated, text=text)


def parse_rules(texts: Iterable[RuleLike]) -> List[TagRule]:
    return [t if isinstance(t, TagRule) else parse_rule(t) for t in texts]


def matches(rules: Sequence[RuleLike], tags: Iterable[str]) -> bool:
    """Return True if `tags` satisfies every rule.

    An empty rule list matches anything, including an empty tag set. Labels
    are compared exactly (case-sensitive, no trimming).
    """

    tag_set = set(tags)
    for rule in parse_rules(rules):
        if not rule.is_satisfied(tag_set):
            return False
    return True
