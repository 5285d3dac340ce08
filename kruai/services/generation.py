"""
AI-powered services for lesson summaries, quiz questions and study chat.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from kruai.core.config import settings
from kruai.core.errors import GenerationError
from kruai.models.quiz import Question

logger = logging.getLogger(__name__)

TEACHER_PERSONA = (
    'You are "Kru AI", a kind teacher for primary school students in grades 4-6 '
    "(10-12 years old). Speak simply and warmly, like an older sibling explaining to a younger one."
)

STYLE_INSTRUCTIONS = {
    "SHORT": "Keep the summary short: 2 short paragraphs.",
    "DETAILED": "Write a detailed summary: 3-4 paragraphs that tell the topic as a story.",
}


class SummaryData(BaseModel):
    original_topic: str = Field(alias="originalTopic", min_length=1)
    summary_content: str = Field(alias="summaryContent", min_length=1)
    key_points: List[str] = Field(alias="keyPoints", default_factory=list)
    examples: List[str] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class ChatMessage(BaseModel):
    role: str  # "user" or "model"
    text: str


class ContentGenerator:
    """Thin wrapper over the chat completions API. Every failure becomes ``GenerationError``."""

    def __init__(self, client: Optional[OpenAI] = None):
        self.client = client or self._make_client()
        self.model = settings.OPENAI_MODEL

    def _make_client(self) -> Optional[OpenAI]:
        if not settings.OPENAI_API_KEY:
            return None
        return OpenAI(
            api_key=settings.OPENAI_API_KEY.get_secret_value(),
            base_url=settings.OPENAI_BASE_URL,
        )

    def generate_summary(self, content: str, file_name: Optional[str] = None, style: str = "SHORT") -> SummaryData:
        """Summarise study material for a young student.

        When only a file name is given the lesson is built from the name.
        """
        content = (content or "")[: settings.MAX_INPUT_CHARS]
        prompt = f"""Your task:
1. Read the material below. If there is only a file name, create a lesson that fits that file name.
2. Summarise it so it is very easy to understand, in friendly language.
3. If the material is too thin, add the knowledge a student of this grade needs for exams.
4. Add 2-3 everyday examples that illustrate the main idea.
{STYLE_INSTRUCTIONS.get(style, STYLE_INSTRUCTIONS["SHORT"])}

Input: {f"file name: {file_name}" if file_name else ""}
Material: "{content}"

Answer with a JSON object with keys:
"originalTopic" (main topic), "summaryContent" (the summary),
"keyPoints" (3-5 short bullet points), "examples" (list of short examples)."""
        data = self._complete_json(prompt, "summary")
        try:
            return SummaryData.model_validate(data)
        except ValidationError as e:
            logger.warning("Summary payload failed validation: %s", e.error_count())
            raise GenerationError("Sorry, Kru AI could not summarise this right now. Please try again.") from e

    def generate_quiz(self, summary: SummaryData, count: Optional[int] = None) -> List[Question]:
        count = count or settings.QUIZ_QUESTION_COUNT
        prompt = f"""From the topic "{summary.original_topic}" and this summary:
"{summary.summary_content}"

Create a {count}-question multiple-choice quiz for grade 4-6 students.
- Questions must be clear and unambiguous.
- Exactly 4 options per question.
- The answer key must be accurate.
- A short, encouraging explanation of why the answer is right.
- A hint that nudges toward the answer without giving it away.

Answer with a JSON object {{"questions": [...]}} where each item has keys
"question", "options", "correctAnswerIndex" (0-3), "explanation", "hint"."""
        data = self._complete_json(prompt, "quiz")
        items = data.get("questions") if isinstance(data, dict) else data
        if not isinstance(items, list) or not items:
            raise GenerationError("Could not create the quiz")
        try:
            return [Question.model_validate(item) for item in items]
        except ValidationError as e:
            logger.warning("Quiz payload failed validation: %s", e.error_count())
            raise GenerationError("Could not create the quiz") from e

    def chat_with_teacher(self, message: str, history: List[ChatMessage], summary: SummaryData) -> str:
        messages: List[Dict[str, str]] = [{
            "role": "system",
            "content": f"{TEACHER_PERSONA}\nThe student is studying \"{summary.original_topic}\".\n"
                       f"Lesson summary:\n{summary.summary_content}\n"
                       "Answer questions about this lesson briefly and encourage the student.",
        }]
        for m in history:
            messages.append({"role": "assistant" if m.role == "model" else "user", "content": m.text})
        messages.append({"role": "user", "content": message})
        text = self._complete(messages, "chat")
        return text.strip()

    def _complete_json(self, prompt: str, purpose: str) -> Any:
        messages = [
            {"role": "system", "content": TEACHER_PERSONA},
            {"role": "user", "content": prompt},
        ]
        text = self._complete(messages, purpose, json_mode=True)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("%s response is not valid JSON", purpose)
            raise GenerationError(f"The AI returned an unreadable {purpose}") from e

    def _complete(self, messages: List[Dict[str, str]], purpose: str, json_mode: bool = False) -> str:
        if self.client is None:
            raise GenerationError("AI service is not configured (OPENAI_API_KEY missing)")
        kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": settings.OPENAI_TEMPERATURE,
            "max_tokens": settings.OPENAI_MAX_TOKENS,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.warning("%s generation error: %s", purpose, type(e).__name__)
            raise GenerationError(f"The AI could not produce the {purpose}") from e
        text = resp.choices[0].message.content if resp.choices else None
        if not text:
            raise GenerationError(f"No {purpose} from AI")
        return text


_generator: Optional[ContentGenerator] = None


def get_generator() -> ContentGenerator:
    global _generator
    if _generator is None:
        _generator = ContentGenerator()
    return _generator
