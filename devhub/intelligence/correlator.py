"""Cross-reference correlation between code reviews, meetings and tickets.

Every unordered pair of entities with different types is handed to a pair
scorer. The scorer returns at most one ``EntityConnection``; same-type and
self pairs are never scored. Connections are then aggregated into a
confidence value, natural-language insights and per-type patterns.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections import defaultdict
from itertools import combinations

from devhub.intelligence.models import (
    ConnectionDirection,
    ConnectionType,
    CrossReferenceEntity,
    CrossReferencePattern,
    CrossReferenceResult,
    CrossReferenceType,
    EntityConnection,
    EntityType,
)
from devhub.pipeline_config import CorrelationStrategy

ANALYSIS_ENTITY_TYPES: dict[CrossReferenceType, set[str] | None] = {
    CrossReferenceType.CODE_TO_MEETING: {EntityType.CODE_REVIEW, EntityType.MEETING},
    CrossReferenceType.MEETING_TO_JIRA: {EntityType.MEETING, EntityType.JIRA_TICKET},
    CrossReferenceType.CODE_TO_JIRA: {EntityType.CODE_REVIEW, EntityType.JIRA_TICKET},
    CrossReferenceType.FULL_SYSTEM: None,
}

STRONG_CONNECTION = 0.7

WORD = re.compile(r"[a-z][a-z0-9]+")
SHA = re.compile(r"[0-9a-f]{40}")
SHA_RUN = re.compile(r"\b[0-9a-f]{7,40}\b")
STOPWORDS = frozenset(
    """
    the and for with that this from into have has had are was were will would should could
    can not but all any our your their its about after before over under then than them they
    you she him her his who what when where which while why how also just more most some such
    only other very been being did does doing done make made need needs use used using get got
    let lets we'll i'll it's new fix add update added updated meeting review commit ticket
    """.split()
)


def keywords(text: str) -> set[str]:
    """Lowercase content words of length >= 3, minus stopwords."""
    return {w for w in WORD.findall(text.lower()) if len(w) >= 3 and w not in STOPWORDS}


def _mentions(entity: CrossReferenceEntity, other: CrossReferenceEntity) -> bool:
    """True if ``entity`` refers to ``other`` by its key (ticket key or sha prefix)."""
    if not other.key:
        return False
    key = other.key.lower()
    if any(ref.lower() == key or (len(ref) >= 7 and key.startswith(ref.lower())) for ref in entity.references):
        return True
    text = entity.text.lower()
    if SHA.fullmatch(key):
        # Any abbreviation of the sha from 7 characters up to the full 40.
        return any(key.startswith(m.group()) for m in SHA_RUN.finditer(text))
    return re.search(rf"\b{re.escape(key)}\b", text) is not None


class PairScorer(ABC):
    """Scores one pair of differently-typed entities."""

    @abstractmethod
    def score(self, a: CrossReferenceEntity, b: CrossReferenceEntity) -> EntityConnection | None: ...


class FixedSimilarity(PairScorer):
    """Connects every pair with the same constant strength and confidence."""

    strength = 0.6
    confidence = 0.7

    def score(self, a: CrossReferenceEntity, b: CrossReferenceEntity) -> EntityConnection | None:
        return EntityConnection(
            source_id=a.id,
            target_id=b.id,
            connection_type=ConnectionType.TOPIC_SIMILARITY,
            strength=self.strength,
            confidence=self.confidence,
            direction=ConnectionDirection.BIDIRECTIONAL,
            description="Related topics identified",
        )


class KeywordSimilarity(PairScorer):
    """Scores pairs by explicit references, shared owners and keyword overlap.

    Strength is continuous: direct references score 0.9; otherwise the
    Jaccard overlap of content words is doubled and capped at 1.0. Pairs
    below ``min_strength`` yield no connection.
    """

    def __init__(self, min_strength: float = 0.15) -> None:
        self.min_strength = min_strength

    def score(self, a: CrossReferenceEntity, b: CrossReferenceEntity) -> EntityConnection | None:
        a_mentions_b = _mentions(a, b)
        b_mentions_a = _mentions(b, a)
        if a_mentions_b or b_mentions_a:
            if a_mentions_b and b_mentions_a:
                direction = ConnectionDirection.BIDIRECTIONAL
            elif a_mentions_b:
                direction = ConnectionDirection.SOURCE_TO_TARGET
            else:
                direction = ConnectionDirection.TARGET_TO_SOURCE
            referenced = b if a_mentions_b else a
            return EntityConnection(
                source_id=a.id,
                target_id=b.id,
                connection_type=ConnectionType.DIRECT_REFERENCE,
                strength=0.9,
                confidence=0.95,
                direction=direction,
                description=f"Direct reference to {referenced.key}",
                evidence=[referenced.key],
            )

        a_words, b_words = keywords(a.text), keywords(b.text)
        union = a_words | b_words
        shared = a_words & b_words
        overlap = len(shared) / len(union) if union else 0.0
        topic_strength = round(min(1.0, overlap * 2), 3)

        same_owner = bool(a.owner and b.owner and a.owner.casefold() == b.owner.casefold())
        if same_owner and topic_strength < 0.5:
            return EntityConnection(
                source_id=a.id,
                target_id=b.id,
                connection_type=ConnectionType.PERSON_INVOLVEMENT,
                strength=0.5,
                confidence=0.6,
                description=f"Shared owner: {a.owner}",
                evidence=[a.owner, *sorted(shared)],
            )

        if topic_strength < self.min_strength:
            return None

        evidence = sorted(shared)
        if same_owner:
            evidence.append(f"owner:{a.owner}")
        return EntityConnection(
            source_id=a.id,
            target_id=b.id,
            connection_type=ConnectionType.TOPIC_SIMILARITY,
            strength=topic_strength,
            confidence=round(0.5 + topic_strength * 0.4, 3),
            description="Related topics identified",
            evidence=evidence,
        )


def make_scorer(strategy: CorrelationStrategy, min_strength: float = 0.15) -> PairScorer:
    if strategy == CorrelationStrategy.FIXED:
        return FixedSimilarity()
    return KeywordSimilarity(min_strength=min_strength)


# ── Analysis steps ─────────────────────────────────────────────────────────


def filter_entities(
    entities: list[CrossReferenceEntity], analysis_type: CrossReferenceType
) -> list[CrossReferenceEntity]:
    allowed = ANALYSIS_ENTITY_TYPES[analysis_type]
    if allowed is None:
        return list(entities)
    return [e for e in entities if e.entity_type in allowed]


def find_connections(entities: list[CrossReferenceEntity], scorer: PairScorer) -> list[EntityConnection]:
    """Score every unordered pair of differently-typed entities.

    O(n^2) in the number of entities.
    """
    connections: list[EntityConnection] = []
    for a, b in combinations(entities, 2):
        if a.id == b.id or a.entity_type == b.entity_type:
            continue
        connection = scorer.score(a, b)
        if connection is not None:
            connections.append(connection)
    return connections


def connection_confidence(connections: list[EntityConnection]) -> float:
    if not connections:
        return 0.0
    return sum(c.confidence for c in connections) / len(connections)


def generate_insights(connections: list[EntityConnection]) -> list[str]:
    insights: list[str] = []

    strong = sum(1 for c in connections if c.strength > STRONG_CONNECTION)
    if strong:
        insights.append(f"Found {strong} strong cross-system correlations")

    topical = sum(1 for c in connections if c.connection_type == ConnectionType.TOPIC_SIMILARITY)
    if topical:
        insights.append(f"Identified {topical} topic-based relationships")

    return insights


def identify_patterns(connections: list[EntityConnection]) -> list[CrossReferencePattern]:
    """Group connections by type; every group of two or more becomes a pattern."""
    groups: dict[ConnectionType, list[EntityConnection]] = defaultdict(list)
    for connection in connections:
        groups[connection.connection_type].append(connection)

    return [
        CrossReferencePattern(
            name=f"{connection_type} Pattern",
            description=f"Recurring {connection_type} connections between systems",
            frequency=len(group),
            confidence=connection_confidence(group),
        )
        for connection_type, group in groups.items()
        if len(group) > 1
    ]


def analyze_cross_references(
    entities: list[CrossReferenceEntity],
    analysis_type: CrossReferenceType = CrossReferenceType.FULL_SYSTEM,
    scorer: PairScorer | None = None,
) -> CrossReferenceResult:
    """Run a full correlation pass over ``entities``.

    Args:
        entities: Entities collected from any mix of sources.
        analysis_type: Restricts which entity types take part.
        scorer: Pair scorer; defaults to keyword similarity.

    Returns:
        Connections, confidence, insights, patterns and a one-line summary.
    """
    scorer = scorer or KeywordSimilarity()
    selected = filter_entities(entities, analysis_type)
    connections = find_connections(selected, scorer)

    result = CrossReferenceResult(
        analysis_type=analysis_type,
        entities=selected,
        connections=connections,
        confidence=connection_confidence(connections),
        insights=generate_insights(connections),
        patterns=identify_patterns(connections),
    )
    result.summary = (
        f"Cross-reference analysis identified {len(connections)} connections between "
        f"{len(selected)} entities with {result.confidence:.2f} confidence."
    )
    return result


def correlation_report(result: CrossReferenceResult, threshold: float = 0.6, limit: int = 5) -> str:
    """Render the strongest topic correlations as readable text."""
    strongest = sorted(
        (
            c
            for c in result.connections
            if c.connection_type == ConnectionType.TOPIC_SIMILARITY and c.strength > threshold
        ),
        key=lambda c: c.strength,
        reverse=True,
    )[:limit]

    if not strongest:
        return "No significant correlations found between recent code reviews and meeting discussions."

    lines = ["🔗 **Code and Meeting Correlations**", ""]
    for connection in strongest:
        source = result.entity(connection.source_id)
        target = result.entity(connection.target_id)
        if source is None or target is None:
            continue
        lines += [
            f"**High Correlation** ({connection.strength:.2f} strength)",
            f"• {source.entity_type}: {source.title}",
            f"• {target.entity_type}: {target.title}",
            f"• Connection: {connection.description}",
        ]
        if connection.evidence:
            lines.append(f"• Evidence: {', '.join(connection.evidence[:8])}")
        lines.append("")
    return "\n".join(lines).rstrip()
