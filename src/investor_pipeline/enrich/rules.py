"""Non-VC classifier backed by a curated rule table.

Institutional fund names are often bland or borrow venture vocabulary, so
no single keyword list separates venture funds from hedge, credit, real
estate or buyout vehicles. The table layers three signals, first match
wins:

1. exact firm name on the exclusion list → excluded
2. any positive (venture) pattern → kept
3. any negative pattern → excluded
4. otherwise → kept

The rules live in `data/non_vc_rules.json` so they can be curated without
touching code.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any

EXCLUSION_LIST = "exclusion-list"
VC_SIGNAL = "vc-signal"
DEFAULT = "default"


@dataclass(frozen=True)
class Verdict:
    """Classifier decision for one firm name.

    Attributes:
        excluded: True when the firm is not a venture investor.
        reason: `exclusion-list`, `vc-signal`, a negative pattern category,
            or `default`.
        pattern: The regular expression that decided, if any.
    """
    excluded: bool
    reason: str
    pattern: str | None = None


@dataclass(frozen=True)
class NonVcRules:
    exclusions: frozenset[str]
    positive: tuple[re.Pattern[str], ...]
    negative: tuple[tuple[str, re.Pattern[str]], ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NonVcRules":
        """Compile a rule table.

        Raises:
            ValueError: if a pattern is not a valid regular expression.
        """
        try:
            positive = tuple(re.compile(p, re.IGNORECASE) for p in data.get("positive_patterns", []))
            negative = tuple(
                (category, re.compile(p, re.IGNORECASE))
                for category, patterns in (data.get("negative_patterns") or {}).items()
                for p in patterns
            )
        except re.error as e:
            raise ValueError(f"Invalid non-VC rule pattern: {e}") from e
        return cls(
            exclusions=frozenset(data.get("exclusions", [])),
            positive=positive,
            negative=negative,
        )

    def classify(self, firm: str | None) -> Verdict:
        name = firm or ""
        if name in self.exclusions:
            return Verdict(True, EXCLUSION_LIST)
        for p in self.positive:
            if p.search(name):
                return Verdict(False, VC_SIGNAL, p.pattern)
        for category, p in self.negative:
            if p.search(name):
                return Verdict(True, category, p.pattern)
        return Verdict(False, DEFAULT)

    def is_non_vc(self, firm: str | None) -> bool:
        return self.classify(firm).excluded


def load_rules(path: Path | None = None) -> NonVcRules:
    """Load the rule table from `path` or from the packaged default."""
    if path is not None:
        text = path.read_text(encoding="utf-8")
    else:
        text = resources.files("investor_pipeline").joinpath("data/non_vc_rules.json").read_text(
            encoding="utf-8"
        )
    return NonVcRules.from_dict(json.loads(text))
