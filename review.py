"""Smart review: find weak spots from the log of wrong answers."""

from dataclasses import dataclass, field
from typing import Dict, List

import config
from models import MistakeRecord, UserProgress


@dataclass
class TopicWeakness:
    topic_id: str
    topic_name: str
    mistake_count: int
    accuracy: float  # percent, 0 when never scored


@dataclass
class WeaknessAnalysis:
    subject_id: str
    subject_name: str
    topics: List[TopicWeakness] = field(default_factory=list)
    total_mistakes: int = 0


def analyze_weaknesses(progress: UserProgress) -> List[WeaknessAnalysis]:
    """Group mistakes by subject and topic, worst first.

    Mistakes for subjects or topics that are no longer offered are ignored.
    """
    grouped: Dict[str, Dict[str, List[MistakeRecord]]] = {}
    for m in progress.mistakes:
        grouped.setdefault(m.subject_id, {}).setdefault(m.topic_id, []).append(m)

    analyses = []
    for subject_id, by_topic in grouped.items():
        if subject_id not in config.SUBJECTS:
            continue
        known_topics = dict(config.TOPICS.get(subject_id, []))

        topics = []
        for topic_id, mistakes in by_topic.items():
            if topic_id not in known_topics:
                continue
            stat = progress.topic_stat(subject_id, topic_id)
            accuracy = stat.accuracy * 100 if stat and stat.accuracy is not None else 0.0
            topics.append(TopicWeakness(topic_id, known_topics[topic_id], len(mistakes), accuracy))

        topics.sort(key=lambda t: t.mistake_count, reverse=True)
        analyses.append(WeaknessAnalysis(
            subject_id=subject_id,
            subject_name=config.SUBJECTS[subject_id],
            topics=topics,
            total_mistakes=sum(t.mistake_count for t in topics),
        ))

    analyses.sort(key=lambda a: a.total_mistakes, reverse=True)
    return analyses


def review_recommendations(analyses: List[WeaknessAnalysis]) -> List[str]:
    recs = []
    if not analyses or all(a.total_mistakes == 0 for a in analyses):
        return ["No weak spots yet. Keep up the great work!"]

    for analysis in analyses:
        if not analysis.topics:
            continue
        worst = analysis.topics[0]
        recs.append(
            f"{analysis.subject_name}: review \"{worst.topic_name}\" "
            f"({worst.mistake_count} wrong answers, {worst.accuracy:.0f}% accuracy)."
        )
    return recs
