"""
AI content generation for quizzes and flashcards
"""

from typing import Any, Dict, List, Optional
import logging

from pydantic import ValidationError

from app.llm_clients import llm_client_factory as LLMFactory
from app.llm_clients.exceptions import ContentParseError
from app.models.content import DifficultyLevel, Flashcard, QuizQuestion

logger = logging.getLogger(__name__)

MAX_CONTENT_CHARS = 8000
MIN_FLASHCARDS = 5
MAX_FLASHCARDS = 15


class ContentGenerator:
    def __init__(self, llm_factory=None, provider: Optional[str] = None):
        self.llm_factory = llm_factory or LLMFactory
        self.provider = provider

    async def generate(self, prompt: str, content: str = "") -> Any:
        """Send ``prompt`` (with optional source content) and return parsed JSON"""
        llm_client = self.llm_factory.get_client(self.provider)
        if content:
            prompt = f"{prompt}\n\nContent:\n{content[:MAX_CONTENT_CHARS]}"
        return await llm_client.generate_json(prompt)

    async def generate_quiz(
        self,
        content: str,
        count: int = 10,
        difficulty: DifficultyLevel = DifficultyLevel.MEDIUM,
    ) -> List[QuizQuestion]:
        """
        Generate multiple choice questions from study material.

        Args:
            content: Text of the study material
            count: Number of questions to ask for
            difficulty: Difficulty the questions should target

        Returns:
            Validated questions, at most ``count``

        Raises:
            ContentParseError: when the reply holds no usable question
        """
        data = await self.generate(self._quiz_prompt(count, difficulty), content)
        questions = []
        for item in self._items(data, "questions")[:count]:
            try:
                questions.append(self._to_question(item, difficulty))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed generated question: {e}")

        if not questions:
            raise ContentParseError("Model reply contained no valid quiz questions")
        logger.info(f"Generated {len(questions)} quiz questions")
        return questions

    async def generate_flashcards(
        self, content: str, count: int = 10, topic: Optional[str] = None
    ) -> List[Flashcard]:
        count = max(MIN_FLASHCARDS, min(MAX_FLASHCARDS, count))
        data = await self.generate(self._flashcard_prompt(count), content)

        flashcards = []
        for item in self._items(data, "flashcards")[:count]:
            try:
                card = Flashcard.model_validate(item)
            except ValidationError as e:
                logger.warning(f"Skipping malformed generated flashcard: {e}")
                continue
            if topic and not card.topic:
                card.topic = topic
            flashcards.append(card)

        if not flashcards:
            raise ContentParseError("Model reply contained no valid flashcards")
        logger.info(f"Generated {len(flashcards)} flashcards")
        return flashcards

    def _items(self, data: Any, key: str) -> List[Dict[str, Any]]:
        """Accept either a bare JSON array or an object wrapping one"""
        if isinstance(data, dict):
            data = data.get(key, [])
        if not isinstance(data, list):
            raise ContentParseError(f"Expected a list of {key} in model reply")
        return [item for item in data if isinstance(item, dict)]

    def _to_question(
        self, item: Dict[str, Any], difficulty: DifficultyLevel
    ) -> QuizQuestion:
        options = item["options"]
        answer = item.get("correct_answer", item.get("answer"))
        # Answer may be given as the option text instead of its index
        if isinstance(answer, str):
            answer = options.index(answer)
        return QuizQuestion(
            question=item["question"],
            options=options,
            correct_answer=answer,
            explanation=item.get("explanation"),
            difficulty=item.get("difficulty", difficulty),
            category=item.get("category", "general"),
        )

    def _quiz_prompt(self, count: int, difficulty: DifficultyLevel) -> str:
        return f"""
Generate exactly {count} multiple choice quiz questions at {difficulty.value}
difficulty from the content below. Test understanding, not just memorization.

Requirements:
- Every question has exactly 4 options
- "answer" is the exact text of the correct option
- Include a one sentence explanation

Output format: JSON object with this structure:
{{
  "questions": [
    {{
      "question": "Question text here",
      "options": ["A", "B", "C", "D"],
      "answer": "A",
      "explanation": "Brief explanation"
    }}
  ]
}}
"""

    def _flashcard_prompt(self, count: int) -> str:
        return f"""
Generate exactly {count} study flashcards from the content below.

Requirements:
- "front" is a short question or prompt, at most 100 characters
- "back" is a concise complete answer, at most 200 characters
- Cover the most important concepts first

Output format: JSON object with this structure:
{{
  "flashcards": [
    {{"front": "Question", "back": "Answer", "topic": "Topic"}}
  ]
}}
"""
