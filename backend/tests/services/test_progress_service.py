import pytest
from datetime import timedelta

from app.models.events import Outcome
from app.models.progress import PowerUpType
from app.services.gamification import new_snapshot


class TestProgressService:
    """Loading, applying and storing snapshots."""

    def test_get_snapshot_creates_defaults(self, progress_service, now):
        snapshot = progress_service.get_snapshot("user-1")

        assert snapshot.user_id == "user-1"
        assert snapshot.points == 0
        assert snapshot.level == 1
        assert snapshot.daily_goal == 30
        assert len(snapshot.power_ups) == 3
        assert snapshot.updated_at == now

        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored == snapshot

    def test_apply_persists_accepted_result(self, progress_service):
        result = progress_service.apply_study_session_completion("user-1", 10, True)

        assert result.accepted
        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored.points == 50
        assert stored.total_study_time == 10

    def test_rejected_result_is_not_stored(self, progress_service, clock):
        progress_service.get_snapshot("user-1")
        clock.advance(minutes=5)

        result = progress_service.purchase_power_up("user-1", PowerUpType.POINTS)

        assert result.outcome == Outcome.INSUFFICIENT_POINTS
        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored.points == 0
        assert stored.updated_at == clock.now - timedelta(minutes=5)

    def test_power_up_expires_on_read(self, progress_service, clock):
        seeded = new_snapshot("user-1")
        seeded.points = 150
        progress_service.push_snapshot("user-1", seeded)

        result = progress_service.purchase_power_up("user-1", PowerUpType.POINTS)
        assert result.outcome == Outcome.ACTIVATED

        clock.advance(minutes=59)
        active = progress_service.get_snapshot("user-1")
        assert active.find_power_up(PowerUpType.POINTS).active

        clock.advance(minutes=2)
        expired = progress_service.get_snapshot("user-1")
        assert not expired.find_power_up(PowerUpType.POINTS).active

    def test_reveal_limit_per_quiz(self, progress_service):
        assert progress_service.start_quiz_attempt("user-1").accepted
        for _ in range(3):
            assert progress_service.use_answer_reveal("user-1").outcome == Outcome.GRANTED

        blocked = progress_service.use_answer_reveal("user-1")
        assert blocked.outcome == Outcome.LIMIT_REACHED
        assert progress_service.get_snapshot("user-1").coins == 3

        progress_service.start_quiz_attempt("user-1")
        assert progress_service.get_snapshot("user-1").coins == 0

    def test_push_snapshot_recomputes_derived_values(self, progress_service, now):
        pushed = new_snapshot("someone-else")
        pushed.points = 300
        pushed.level = 9
        pushed.coins = 10
        pushed.daily_progress = 100

        stored = progress_service.push_snapshot("user-1", pushed)

        assert stored.user_id == "user-1"
        assert stored.level == 3
        assert stored.highest_level == 3
        assert stored.coins == 3
        assert stored.daily_progress == 30
        assert stored.updated_at == now
        assert progress_service.progress_db.get_snapshot("someone-else") is None
        # Caller's copy untouched
        assert pushed.user_id == "someone-else"

    def test_push_snapshot_fills_missing_catalog(self, progress_service):
        pushed = new_snapshot("user-1")
        pushed.badges = pushed.badges[:2]
        pushed.quests = []

        stored = progress_service.push_snapshot("user-1", pushed)

        assert len(stored.badges) == 14
        assert len(stored.quests) == 7

    def test_set_daily_goal(self, progress_service):
        progress_service.apply_study_session_completion("user-1", 20, True)

        result = progress_service.set_daily_goal("user-1", 15)

        assert result.outcome == Outcome.APPLIED
        assert result.snapshot.daily_goal == 15
        assert result.snapshot.daily_progress == 15
        assert progress_service.progress_db.get_snapshot("user-1").daily_goal == 15

    def test_set_daily_goal_rejects_zero(self, progress_service):
        result = progress_service.set_daily_goal("user-1", 0)

        assert result.outcome == Outcome.INVALID
        assert result.snapshot.daily_goal == 30
        assert progress_service.progress_db.get_snapshot("user-1").daily_goal == 30

    def test_negative_duration_is_invalid(self, progress_service):
        """Malformed input comes back as an INVALID result, nothing stored"""
        progress_service.apply_study_session_completion("user-1", 10, True)

        result = progress_service.apply_study_session_completion("user-1", -5, True)

        assert result.outcome == Outcome.INVALID
        assert not result.accepted
        assert "greater than or equal to 0" in result.message
        assert result.snapshot.points == 50
        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored.points == 50
        assert stored.total_study_time == 10

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.apply_study_session_completion("user-1", -1, False),
            lambda s: s.apply_quiz_result("user-1", correct=-1, incorrect=0),
            lambda s: s.apply_quiz_result("user-1", correct=1, incorrect=0, score=150),
            lambda s: s.record_flashcards_generated("user-1", -3),
            lambda s: s.purchase_power_up("user-1", "teleport"),
        ],
    )
    def test_malformed_operations_are_invalid(self, progress_service, call):
        result = call(progress_service)

        assert result.outcome == Outcome.INVALID
        assert progress_service.progress_db.get_snapshot("user-1").points == 0

    def test_under_reported_reveals_are_charged(self, progress_service):
        """3 reveals then a submission claiming none still costs 30 points"""
        seeded = new_snapshot("user-1")
        seeded.points = 100
        progress_service.push_snapshot("user-1", seeded)
        progress_service.start_quiz_attempt("user-1")
        for _ in range(3):
            assert progress_service.use_answer_reveal("user-1").outcome == Outcome.GRANTED

        result = progress_service.apply_quiz_result(
            "user-1", correct=4, incorrect=0, revealed=0
        )

        assert result.delta.base == 20 - 30
        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored.coins == 0
        assert stored.points == 90

    def test_check_quest_progress_pays_reward(self, progress_service):
        result = progress_service.check_quest_progress("user-1", "study-60", 60)

        assert result.delta.completed_quests == ["study-60"]
        assert result.delta.bonus == 50
        stored = progress_service.progress_db.get_snapshot("user-1")
        assert stored.points == 50
        assert stored.find_quest("study-60").completed

        again = progress_service.check_quest_progress("user-1", "study-60", 60)
        assert again.delta.net == 0
        assert progress_service.progress_db.get_snapshot("user-1").points == 50

    def test_recent_achievements_and_active_quests(self, progress_service, now):
        seeded = new_snapshot("user-1")
        first = seeded.find_achievement("first-session")
        first.earned, first.earned_at = True, now - timedelta(days=2)
        marathon = seeded.find_achievement("marathon-study")
        marathon.earned, marathon.earned_at = True, now - timedelta(days=1)
        seeded.find_quest("quiz-5").completed = True
        progress_service.push_snapshot("user-1", seeded)

        recent = progress_service.recent_achievements("user-1")
        assert [a.id for a in recent] == ["marathon-study", "first-session"]
        assert len(progress_service.recent_achievements("user-1", limit=1)) == 1

        quests = progress_service.active_quests("user-1")
        assert "quiz-5" not in [q.id for q in quests]
        assert len(quests) == 6
