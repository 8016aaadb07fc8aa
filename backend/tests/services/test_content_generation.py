import pytest
from unittest.mock import AsyncMock, MagicMock

from app.llm_clients.exceptions import ContentParseError
from app.models.content import DifficultyLevel
from app.services.content_generation import MAX_CONTENT_CHARS, ContentGenerator


@pytest.fixture
def llm_client():
    client = MagicMock()
    client.generate_json = AsyncMock()
    return client


@pytest.fixture
def generator(llm_client):
    factory = MagicMock()
    factory.get_client.return_value = llm_client
    return ContentGenerator(llm_factory=factory, provider="ollama")


class TestContentGenerator:
    """Test cases for quiz and flashcard generation."""

    @pytest.mark.asyncio
    async def test_generate_uses_configured_provider(self, generator, llm_client):
        llm_client.generate_json.return_value = {"ok": True}

        result = await generator.generate("Prompt", "x" * (MAX_CONTENT_CHARS + 100))

        assert result == {"ok": True}
        generator.llm_factory.get_client.assert_called_once_with("ollama")
        prompt = llm_client.generate_json.await_args.args[0]
        assert prompt.startswith("Prompt\n\nContent:\n")
        assert prompt.count("x") == MAX_CONTENT_CHARS

    @pytest.mark.asyncio
    async def test_generate_quiz(self, generator, llm_client):
        llm_client.generate_json.return_value = {
            "questions": [
                {
                    "question": "Capital of France?",
                    "options": ["Berlin", "Paris", "Rome", "Madrid"],
                    "answer": "Paris",
                    "explanation": "Paris is the capital.",
                },
                {
                    "question": "2 + 2?",
                    "options": ["3", "4", "5", "6"],
                    "correct_answer": 1,
                },
            ]
        }

        questions = await generator.generate_quiz("notes", 2, DifficultyLevel.HARD)

        assert len(questions) == 2
        assert questions[0].correct_answer == 1
        assert questions[0].explanation == "Paris is the capital."
        assert questions[0].difficulty == DifficultyLevel.HARD
        assert questions[1].correct_answer == 1

    @pytest.mark.asyncio
    async def test_generate_quiz_skips_malformed_items(self, generator, llm_client):
        llm_client.generate_json.return_value = [
            {"question": "No options"},
            {"question": "Bad answer", "options": ["a", "b"], "answer": "c"},
            {"question": "Index out of range", "options": ["a", "b"], "answer": 5},
            "not an object",
            {"question": "Good", "options": ["a", "b"], "answer": "b"},
        ]

        questions = await generator.generate_quiz("notes", 10)

        assert [q.question for q in questions] == ["Good"]

    @pytest.mark.asyncio
    async def test_generate_quiz_truncates_to_count(self, generator, llm_client):
        item = {"question": "Q", "options": ["a", "b"], "answer": 0}
        llm_client.generate_json.return_value = {"questions": [item] * 5}

        questions = await generator.generate_quiz("notes", 3)
        assert len(questions) == 3

    @pytest.mark.asyncio
    async def test_generate_quiz_without_valid_questions(self, generator, llm_client):
        llm_client.generate_json.return_value = {"questions": [{"question": "?"}]}

        with pytest.raises(ContentParseError):
            await generator.generate_quiz("notes", 5)

    @pytest.mark.asyncio
    async def test_unexpected_reply_shape(self, generator, llm_client):
        llm_client.generate_json.return_value = {"questions": "none"}

        with pytest.raises(ContentParseError):
            await generator.generate_quiz("notes", 5)

    @pytest.mark.asyncio
    async def test_generate_flashcards(self, generator, llm_client):
        llm_client.generate_json.return_value = {
            "flashcards": [
                {"front": "Mitochondria?", "back": "Powerhouse of the cell"},
                {"front": "DNA?", "back": "Genetic material", "topic": "Genetics"},
                {"front": "", "back": "Empty front"},
            ]
        }

        cards = await generator.generate_flashcards("notes", 10, topic="Biology")

        assert [c.front for c in cards] == ["Mitochondria?", "DNA?"]
        assert cards[0].topic == "Biology"
        assert cards[1].topic == "Genetics"

    @pytest.mark.asyncio
    async def test_flashcard_count_is_clamped(self, generator, llm_client):
        llm_client.generate_json.return_value = [
            {"front": f"Q{i}", "back": f"A{i}"} for i in range(30)
        ]

        cards = await generator.generate_flashcards("notes", 50)
        assert len(cards) == 15

        prompt = llm_client.generate_json.await_args.args[0]
        assert "Generate exactly 15 study flashcards" in prompt

    @pytest.mark.asyncio
    async def test_generate_flashcards_without_valid_cards(self, generator, llm_client):
        llm_client.generate_json.return_value = {"flashcards": []}

        with pytest.raises(ContentParseError):
            await generator.generate_flashcards("notes")
