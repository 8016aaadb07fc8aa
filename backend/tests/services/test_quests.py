from datetime import timedelta

from app.models.progress import QuestCategory
from app.services.gamification import advance_quest, advance_quests, check_quest_progress


class TestQuestProgress:
    """Quest progress is clamped and its reward paid exactly once."""

    def test_advance_quest_partial(self, snapshot, now):
        quest = snapshot.find_quest("quiz-5")
        assert advance_quest(quest, 2, now) is False
        assert quest.progress == 2
        assert not quest.completed

    def test_advance_quest_completes_and_clamps(self, snapshot, now):
        quest = snapshot.find_quest("quiz-5")
        assert advance_quest(quest, 9, now) is True
        assert quest.progress == 5
        assert quest.completed
        assert quest.completed_at == now

    def test_completed_quest_is_not_paid_twice(self, snapshot, now):
        assert check_quest_progress(snapshot, "study-60", 60, now) == 50
        assert check_quest_progress(snapshot, "study-60", 60, now) == 0
        assert check_quest_progress(snapshot, "study-60", 0, now) == 0
        assert snapshot.find_quest("study-60").progress == 60

    def test_zero_or_negative_amount_is_noop(self, snapshot, now):
        assert check_quest_progress(snapshot, "quiz-5", 0, now) == 0
        assert check_quest_progress(snapshot, "quiz-5", -3, now) == 0
        assert snapshot.find_quest("quiz-5").progress == 0

    def test_unknown_quest(self, snapshot, now):
        assert check_quest_progress(snapshot, "does-not-exist", 5, now) == 0

    def test_advance_by_category(self, snapshot, now):
        completed, reward = advance_quests(snapshot, QuestCategory.FLASHCARDS_CREATED, 12, now)
        assert completed == ["create-flashcards-10"]
        assert reward == 25
        # Other categories are untouched
        assert snapshot.find_quest("master-flashcards-20").progress == 0

    def test_streak_quest_follows_best_streak(self, snapshot, now):
        quest = snapshot.find_quest("streak-30")

        snapshot.streak = 12
        advance_quests(snapshot, QuestCategory.STREAK, 0, now)
        assert quest.progress == 12

        # A reset never moves the quest back
        snapshot.streak = 1
        advance_quests(snapshot, QuestCategory.STREAK, 0, now)
        assert quest.progress == 12

        snapshot.streak = 30
        completed, reward = advance_quests(
            snapshot, QuestCategory.STREAK, 0, now + timedelta(days=30)
        )
        assert completed == ["streak-30"]
        assert reward == 150
