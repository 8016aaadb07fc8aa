import pytest
from unittest.mock import AsyncMock, MagicMock

from app.models.content import DifficultyLevel, Flashcard, QuizQuestion
from app.models.events import FlashcardAction, Outcome
from app.models.history import HistoryKind
from app.services.gamification import new_snapshot
from app.services.session_recorder import SessionRecorder, quiz_score


@pytest.fixture
def content_generator():
    generator = MagicMock()
    generator.generate_quiz = AsyncMock()
    generator.generate_flashcards = AsyncMock()
    return generator


@pytest.fixture
def recorder(db_service, progress_service, content_generator, clock):
    return SessionRecorder(
        db_service,
        progress_service=progress_service,
        content_generator=content_generator,
        clock=clock,
    )


def test_quiz_score():
    assert quiz_score(4, 1, 1) == 66.7
    assert quiz_score(5, 0) == 100.0
    assert quiz_score(0, 0, 0) == 0.0


class TestStudySessions:
    """Study sessions feed both the snapshot and the history log."""

    def test_first_session_earns_achievement(self, recorder, now):
        result = recorder.record_study_session("user-1", 10, True, session_id="s-1")

        assert result.accepted
        assert "first-session" in result.delta.earned
        # 50 for the session, 25 for the achievement
        assert result.snapshot.points == 75

        entries = recorder.history_db.list_entries("user-1")
        assert len(entries) == 1
        assert entries[0].kind == HistoryKind.STUDY_SESSION
        assert entries[0].duration_minutes == 10
        assert entries[0].points_earned == 75
        assert entries[0].occurred_at == now

    def test_session_levels_up_stored_snapshot(self, recorder, progress_service):
        seeded = new_snapshot("user-1")
        seeded.points = 90
        seeded.find_achievement("first-session").earned = True
        progress_service.push_snapshot("user-1", seeded)

        result = recorder.record_study_session("user-1", 10, True)

        assert result.snapshot.points == 240
        assert result.snapshot.level == 2
        assert progress_service.get_snapshot("user-1").points == 240

    def test_aborted_session(self, recorder, progress_service):
        seeded = new_snapshot("user-1")
        seeded.points = 40
        progress_service.push_snapshot("user-1", seeded)

        result = recorder.record_study_session("user-1", 5, False)

        assert result.snapshot.points == 15
        entry = recorder.history_db.list_entries("user-1")[0]
        assert entry.completed is False
        assert entry.points_earned == -25

    def test_aborted_session_blocks_perfect_day(self, recorder, clock):
        recorder.record_study_session("user-1", 5, False)
        clock.advance(minutes=10)

        result = recorder.record_study_session("user-1", 30, True)

        assert result.snapshot.daily_goal_met_date == clock.now.date()
        assert "perfect-day" not in result.delta.earned

    def test_goal_without_abort_completes_perfect_day(self, recorder, clock):
        result = recorder.record_study_session("user-1", 30, True)
        assert "perfect-day" in result.delta.earned

    def test_negative_duration_is_invalid(self, recorder):
        result = recorder.record_study_session("user-1", -5, True)

        assert result.outcome == Outcome.INVALID
        assert result.snapshot.points == 0
        assert recorder.history_db.list_entries("user-1") == []


class TestQuizzes:
    def test_quiz_scored_and_logged(self, recorder):
        result = recorder.record_quiz("user-1", 4, 1, revealed=1, duration_seconds=400)

        assert result.delta.base == 9
        assert "first-quiz" in result.delta.earned

        entry = recorder.history_db.list_entries("user-1")[0]
        assert entry.kind == HistoryKind.QUIZ
        assert entry.score == 66.7
        assert entry.duration_minutes == 6
        assert entry.duration_seconds == 400

    def test_fast_perfect_quiz(self, recorder):
        result = recorder.record_quiz("user-1", 5, 0, duration_seconds=120)

        assert {"first-quiz", "perfect-score", "speed-demon", "speed-quiz"} <= set(
            result.delta.earned
        )

    def test_rejected_quiz_is_not_logged(self, recorder):
        result = recorder.record_quiz("user-1", 2, 0, revealed=4)

        assert result.outcome == Outcome.INVALID
        assert recorder.history_db.list_entries("user-1") == []

    def test_under_reported_reveals_logged_and_charged(self, recorder, progress_service):
        progress_service.start_quiz_attempt("user-1")
        for _ in range(3):
            progress_service.use_answer_reveal("user-1")

        result = recorder.record_quiz("user-1", 4, 0, revealed=0)

        assert result.delta.base == -10
        assert result.snapshot.coins == 0
        entry = recorder.history_db.list_entries("user-1")[0]
        assert entry.revealed == 3
        assert entry.score == 57.1

    def test_scholar_badge_from_history(self, recorder):
        for _ in range(9):
            recorder.record_quiz("user-1", 1, 1)
        result = recorder.record_quiz("user-1", 1, 1)

        assert "scholar" in result.delta.earned


class TestOtherActivities:
    def test_ai_questions_in_one_session(self, recorder):
        for _ in range(4):
            recorder.record_ai_question("user-1", session_id="s-1")
        recorder.record_ai_question("user-1", session_id="s-2")

        result = recorder.record_ai_question("user-1", session_id="s-1")

        assert "ai-master" in result.delta.earned
        assert result.snapshot.find_quest("ai-chat-10").progress == 6

    def test_flashcard_review_logged_with_action(self, recorder):
        result = recorder.record_flashcard_review("user-1", FlashcardAction.KNOWN)

        assert result.snapshot.points == 5
        entry = recorder.history_db.list_entries("user-1")[0]
        assert entry.metadata == {"action": "known"}
        counts = recorder.history_db.activity_counts("user-1", entry.occurred_at.date())
        assert counts["flashcards_mastered"] == 1

    def test_flashcards_generated_badges(self, recorder):
        result = recorder.record_flashcards_generated("user-1", 10)

        assert {"first-flashcard", "flashcard-collector"} <= set(result.delta.earned)
        # 30 for the cards, 25 for the quest
        assert result.snapshot.points == 55


class TestGeneratedContent:
    """AI backed activities with the content generator mocked out."""

    @pytest.mark.asyncio
    async def test_prepare_quiz_resets_reveals(
        self, recorder, progress_service, content_generator
    ):
        question = QuizQuestion(question="2 + 2?", options=["3", "4"], correct_answer=1)
        content_generator.generate_quiz.return_value = [question]
        progress_service.use_answer_reveal("user-1")
        progress_service.use_answer_reveal("user-1")

        questions = await recorder.prepare_quiz(
            "user-1", "Arithmetic notes", count=1, difficulty=DifficultyLevel.EASY
        )

        assert questions == [question]
        assert progress_service.get_snapshot("user-1").coins == 0
        content_generator.generate_quiz.assert_awaited_once_with(
            "Arithmetic notes", 1, DifficultyLevel.EASY
        )

    @pytest.mark.asyncio
    async def test_generate_flashcards_awards_points(self, recorder, content_generator):
        cards = [Flashcard(front=f"Q{i}", back=f"A{i}") for i in range(6)]
        content_generator.generate_flashcards.return_value = cards

        flashcards, result = await recorder.generate_flashcards(
            "user-1", "Biology notes", count=6, topic="Cells"
        )

        assert flashcards == cards
        assert result.delta.base == 18
        entry = recorder.history_db.list_entries("user-1")[0]
        assert entry.kind == HistoryKind.FLASHCARDS_GENERATED
        assert entry.item_count == 6
