#!/usr/bin/env python3
"""Brainy Playground: main entry point and menu system."""

import logging
import sys
from typing import Optional, Tuple

import config
import display
import themes
from badges import BADGES, badges_by_category, validate_catalog
from game import GameSession
from logging_config import setup_logging
from progress import ProgressTracker
from quiz_stats import QuizResultError
from review import analyze_weaknesses, review_recommendations
from storage import ProgressStore, ProgressStoreError, open_store

logger = logging.getLogger(__name__)


def select_or_create_profile(store: ProgressStore) -> Optional[str]:
    """List existing profiles or create a new one."""
    try:
        profiles = store.list_profiles()
    except ProgressStoreError as e:
        logger.warning("Could not list profiles: %s", e)
        profiles = []

    if not profiles:
        display.show_info("No profiles found. Let's create one!")
        return create_new_profile()

    options = list(profiles) + ["Create new profile"]
    choice = display.show_menu("Who is playing?", options)
    if choice == len(options):
        return create_new_profile()
    return profiles[choice - 1]


def create_new_profile() -> str:
    display.console.print()
    name = display.prompt_text("Child's name")
    if not name:
        display.show_error("Name cannot be empty.")
        return create_new_profile()
    display.show_success(f"Profile created for {name}!")
    return name


def choose_subject() -> Tuple[str, str]:
    subjects = list(config.SUBJECTS.items())
    choice = display.show_menu("Choose a subject", [name for _, name in subjects])
    return subjects[choice - 1]


def record_quiz(session: GameSession) -> None:
    subject_id, subject_name = choose_subject()
    topics = [(tid, name) for tid, name in config.TOPICS[subject_id]
              if tid not in config.ACTIVITY_TOPICS]
    choice = display.show_menu(f"{subject_name} topics", [name for _, name in topics])
    topic_id, _ = topics[choice - 1]

    total = display.prompt_int("Number of questions", 1, 50, default=config.QUIZ_LENGTH)
    score = display.prompt_int("Correct answers", 0, total)
    outcome = session.complete_quiz(subject_id, topic_id, score, total)
    display.show_quiz_result(outcome, score, total)


def record_exam(session: GameSession) -> None:
    subject_id, _ = choose_subject()
    choice = display.show_menu("Exam length", [d.title() for d in config.EXAM_DURATIONS])
    duration = config.EXAM_DURATIONS[choice - 1]

    total = display.prompt_int("Number of questions", 1, 100)
    score = display.prompt_int("Correct answers", 0, total)
    outcome = session.complete_exam(subject_id, duration, score, total)
    display.show_quiz_result(outcome, score, total)


def themes_menu(session: GameSession) -> None:
    display.show_themes(themes.THEMES, session.progress.unlocked_themes,
                        session.progress.current_theme_id)
    options = [t.name for t in themes.THEMES] + ["Back"]
    choice = display.show_menu("Pick a theme", options)
    if choice == len(options):
        return
    theme = themes.THEMES[choice - 1]
    if session.change_theme(theme.id):
        display.show_success(f"Theme changed to {theme.name}")
    else:
        display.show_warning("That theme is still locked. Keep earning badges!")


def main_menu_loop(store: ProgressStore, session: GameSession) -> None:
    """Main menu loop."""
    while True:
        display.clear_screen()
        display.show_banner()
        theme = themes.get_theme_by_id(session.progress.current_theme_id)
        display.show_info(
            f"Player: {session.profile} | Badges: {len(session.progress.earned_badges)}"
            f"/{len(BADGES)} | Theme: {theme.name}"
        )
        display.console.print()

        options = [
            "Record a quiz result",
            "Record a practice exam",
            "Badge collection",
            "Parents' corner",
            "Smart review",
            "Themes",
            "Switch profile",
            "Reset progress (caution!)",
            "Exit",
        ]

        choice = display.show_menu("Main Menu", options)

        try:
            if choice == 1:
                record_quiz(session)
                display.press_enter_to_continue()

            elif choice == 2:
                record_exam(session)
                display.press_enter_to_continue()

            elif choice == 3:
                display.show_badge_collection(
                    badges_by_category(session.progress.earned_badges),
                    len(session.progress.earned_badges),
                    len(BADGES),
                )
                display.press_enter_to_continue()

            elif choice == 4:
                tracker = ProgressTracker(session.progress, session.profile)
                tracker.show_dashboard()
                display.press_enter_to_continue()

            elif choice == 5:
                analyses = analyze_weaknesses(session.progress)
                display.show_weaknesses(analyses, review_recommendations(analyses))
                display.press_enter_to_continue()

            elif choice == 6:
                themes_menu(session)
                display.press_enter_to_continue()

            elif choice == 7:
                profile = select_or_create_profile(store)
                if profile:
                    session = GameSession(store, profile)
                    session.load()

            elif choice == 8:
                if display.confirm("This will delete ALL progress for this player. Are you sure?"):
                    if display.confirm("This CANNOT be undone. Really delete?"):
                        session.reset()
                        display.show_success("Progress has been reset.")

            elif choice == 9:
                display.show_info("Goodbye! See you next time!")
                break

        except KeyboardInterrupt:
            display.console.print("\n")
            display.show_info("Returning to main menu...")
            continue
        except QuizResultError as e:
            display.show_error(str(e))
            display.press_enter_to_continue()
        except Exception as e:
            logger.exception("Unexpected error in main menu")
            display.show_error(f"An error occurred: {e}")
            display.press_enter_to_continue()


def main() -> None:
    """Entry point."""
    setup_logging()
    validate_catalog()

    display.clear_screen()
    display.show_banner()

    try:
        store = open_store()
    except ProgressStoreError as e:
        display.show_error(str(e))
        sys.exit(1)

    try:
        profile = select_or_create_profile(store)
        if not profile:
            display.show_error("No profile selected. Exiting.")
            sys.exit(1)

        session = GameSession(store, profile)
        session.load()
        main_menu_loop(store, session)

    except KeyboardInterrupt:
        display.console.print("\n")
        display.show_info("Goodbye!")
    finally:
        store.close()


if __name__ == "__main__":
    main()
