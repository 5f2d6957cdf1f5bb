"""Ska music post classifier.

A static, auditable decision list. Rules are evaluated in tiers:
- accept rules: high-confidence ska signals, match wins immediately
- reject rules: known false-positive shapes (Swedish "ska" = "shall", polska)
- contextual rules: ambiguous terms that only count next to a corroborating
  term elsewhere in the post

No I/O and no learned weights, so every verdict is reproducible.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Sequence, Tuple


@dataclass(frozen=True)
class Rule:
    name: str
    pattern: re.Pattern

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


@dataclass(frozen=True)
class ContextRule(Rule):
    """Matches only when `pattern` and `context` both occur in the text."""

    context: Optional[re.Pattern] = None

    def matches(self, text: str) -> bool:
        if self.pattern.search(text) is None:
            return False
        return self.context is not None and self.context.search(text) is not None


def _rule(name: str, pattern: str) -> Rule:
    return Rule(name=name, pattern=re.compile(pattern, re.IGNORECASE))


# -----------------------------
# Accept rules
# -----------------------------
ACCEPT_RULES: Tuple[Rule, ...] = (
    _rule("ska-punk", r"\bska[-\s]?punk\b"),
    _rule("ska-core", r"\bska[-\s]?core\b"),
    _rule("third-wave-ska", r"\bthird[-\s]?wave\s+ska\b"),
    _rule("rocksteady", r"\brock[-\s]?steady\b"),
    _rule("skanking", r"\bskankin[g']?\b"),
    _rule("rudeboy", r"\brudeboy\b"),
    _rule("rudegirl", r"\brudegirl\b"),
    _rule("two-tone-ska", r"\b(2|two)[-\s]?tone\s+ska\b"),
    _rule("hashtag", r"#ska\b"),
    # Notable bands
    _rule("band:specials", r"\b(the\s+)?specials\b"),
    _rule("band:selecter", r"\b(the\s+)?selecter\b"),
    _rule("band:skatalites", r"\b(the\s+)?skatalites\b"),
    _rule("band:madness", r"\bmadness\b"),
    _rule("band:operation-ivy", r"\boperation\s+ivy\b"),
    _rule("band:less-than-jake", r"\bless\s+than\s+jake\b"),
    _rule("band:streetlight-manifesto", r"\bstreetlight\s+manifesto\b"),
    _rule("band:reel-big-fish", r"\breel\s+big\s+fish\b"),
    _rule("band:bosstones", r"\bmighty\s+mighty\s+bosstones\b"),
    _rule("band:save-ferris", r"\bsave\s+ferris\b"),
    _rule("band:goldfinger", r"\bgoldfinger\b"),
    _rule("band:toots", r"\btoots\s+(and|&)\s+(the\s+)?maytals\b"),
    _rule("band:desmond-dekker", r"\bdesmond\s+dekker\b"),
    _rule("band:bad-manners", r"\bbad\s+manners\b"),
    _rule("band:the-beat", r"\bthe\s+beat\b.*\bska\b"),
)


# -----------------------------
# Reject rules
# -----------------------------
_SWEDISH_INFINITIVES = (
    "vara|göra|ha|bli|ta|komma|se|få|kunna|vilja|gå|säga|veta|tro|börja|sluta|försöka|behöva|"
    "finnas|heta|verka|känna|leva|dö|äta|dricka|sova|jobba|arbeta|spela|läsa|skriva|köpa|sälja|"
    "hjälpa|hända|prata|titta|lyssna|träffa|möta|visa|ge|hålla|stå|sitta|ligga|springa|flyga|"
    "köra|resa|bo|flytta"
)

REJECT_RULES: Tuple[Rule, ...] = (
    # Polish dance, or "Polish" in Swedish
    _rule("polska", r"\bpolska\b"),
    # Swedish modal "ska" (shall/will)
    _rule("swedish:ska-infinitive", rf"\bska\s+({_SWEDISH_INFINITIVES})\b"),
    _rule("swedish:pronoun-ska", r"\b(jag|du|han|hon|vi|de|den|det|man|ni)\s+ska\b"),
    _rule("swedish:ska-pronoun", r"\bska\s+(vi|du|jag|ni|han|hon|de|man)\b"),
    _rule("swedish:det-ska", r"\bdet\s+ska\b"),
    _rule("swedish:som-ska", r"\bsom\s+ska\b"),
    _rule("swedish:att-ska", r"\batt\s+ska\b"),
    _rule("swedish:och-ska", r"\boch\s+ska\b"),
)


# -----------------------------
# Contextual rules
# -----------------------------
MUSIC_CONTEXT = re.compile(
    r"\b(band|bands|music|song|songs|album|albums|track|tracks|record|records|vinyl|playlist|listen|"
    r"listening|heard|concert|concerts|show|shows|gig|gigs|tour|touring|live|genre|sound|sounds|horns|"
    r"brass|trumpet|trombone|saxophone|upstroke|offbeat)\b",
    re.IGNORECASE,
)

AFFINITY_CONTEXT = re.compile(
    r"\b(love|loving|into|obsessed|favorite|favourite|best|great|awesome)\s+(ska|this)\b",
    re.IGNORECASE,
)

_STANDALONE_SKA = re.compile(r"\bska\b", re.IGNORECASE)

CONTEXT_RULES: Tuple[ContextRule, ...] = (
    ContextRule(name="ska+music", pattern=_STANDALONE_SKA, context=MUSIC_CONTEXT),
    # Without music context these read as fashion/style
    ContextRule(name="two-tone+music", pattern=re.compile(r"\b(2|two)[-\s]?tone\b", re.IGNORECASE), context=MUSIC_CONTEXT),
    ContextRule(name="rude-boy+music", pattern=re.compile(r"\brude[-\s]?(boy|girl)\b", re.IGNORECASE), context=MUSIC_CONTEXT),
    # "love ska", "ska is great"-style posts where ska is the focus
    ContextRule(name="ska+affinity", pattern=_STANDALONE_SKA, context=AFFINITY_CONTEXT),
)


class SkaClassifier:
    def __init__(
        self,
        accept: Sequence[Rule] = ACCEPT_RULES,
        reject: Sequence[Rule] = REJECT_RULES,
        contextual: Sequence[Rule] = CONTEXT_RULES,
    ):
        self.accept = tuple(accept)
        self.reject = tuple(reject)
        self.contextual = tuple(contextual)

    def explain(self, text: Any) -> Tuple[bool, Optional[str]]:
        """Return (verdict, name of the deciding rule or None)."""
        if not isinstance(text, str) or not text.strip():
            return False, None
        for rule in self.accept:
            if rule.matches(text):
                return True, rule.name
        for rule in self.reject:
            if rule.matches(text):
                return False, rule.name
        for rule in self.contextual:
            if rule.matches(text):
                return True, rule.name
        return False, None

    def classify(self, text: Any) -> bool:
        return self.explain(text)[0]


DEFAULT_CLASSIFIER = SkaClassifier()


def is_ska_related(text: Any) -> bool:
    return DEFAULT_CLASSIFIER.classify(text)
