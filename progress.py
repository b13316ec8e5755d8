"""Parents' corner: progress summary, topic breakdown and recommendations."""

from typing import Dict, List

import config
import display
import quiz_stats
from models import UserProgress


class ProgressTracker:
    def __init__(self, progress: UserProgress, profile: str = ""):
        self.progress = progress
        self.profile = profile

    def show_dashboard(self) -> None:
        """Main dashboard entry point."""
        display.show_progress_dashboard(
            self.profile, self.summary(), self.subject_breakdown()
        )

        recommendations = self.get_recommendations()
        if recommendations:
            display.console.print()
            display.console.print("  [bold]Recommendations:[/bold]")
            for rec in recommendations:
                display.console.print(f"  - {rec}")
            display.console.print()

    def summary(self) -> Dict:
        accuracy = quiz_stats.overall_accuracy(self.progress)
        return {
            "quizzes": quiz_stats.total_quizzes(self.progress),
            "questions": quiz_stats.total_questions(self.progress),
            "correct": quiz_stats.total_correct(self.progress),
            "perfect_scores": quiz_stats.total_perfect_scores(self.progress),
            "accuracy_pct": round(accuracy * 100, 1) if accuracy is not None else 0.0,
            "badges": len(self.progress.earned_badges),
            "consecutive_play_days": self.progress.consecutive_play_days,
            "perfect_score_streak": self.progress.perfect_score_streak,
        }

    def subject_breakdown(self) -> Dict[str, List[Dict]]:
        """Per-subject rows of played topics with accuracy bands."""
        breakdown = {}
        for subject_id in config.SUBJECTS:
            rows = []
            for topic_id, stat in self.progress.stats.get(subject_id, {}).items():
                if stat.times_completed == 0 or stat.total_questions == 0:
                    continue
                accuracy = stat.accuracy
                if accuracy >= config.STRONG_ACCURACY:
                    status = "Strong"
                elif accuracy >= config.NEEDS_WORK_ACCURACY:
                    status = "Needs Work"
                else:
                    status = "Weak"
                rows.append({
                    "topic_id": topic_id,
                    "name": config.topic_name(subject_id, topic_id),
                    "times_completed": stat.times_completed,
                    "best_score": stat.best_score,
                    "accuracy": accuracy,
                    "status": status,
                })
            breakdown[subject_id] = rows
        return breakdown

    def get_recommendations(self) -> List[str]:
        """Generate rule-based study recommendations."""
        recs = []

        if quiz_stats.total_quizzes(self.progress) == 0:
            recs.append("Play a first quiz to see how things are going!")
            return recs

        for subject_id, subject_name in config.SUBJECTS.items():
            weakest = quiz_stats.weakest_topic(self.progress, subject_id)
            if weakest:
                name = config.topic_name(subject_id, weakest)
                recs.append(f"{subject_name}: practise \"{name}\" again - it is the trickiest topic so far.")

        unplayed = [
            name for subject_id, name in config.SUBJECTS.items()
            if not self.progress.stats.get(subject_id)
        ]
        if unplayed:
            recs.append(f"Try something new: {', '.join(unplayed)}.")

        if self.progress.consecutive_play_days >= 3:
            recs.append(
                f"{self.progress.consecutive_play_days} days in a row - a great habit!"
            )

        if not recs:
            recs.append("Keep practising regularly - consistency is key!")

        return recs
