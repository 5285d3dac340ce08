import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_BACKEND"] = "memory"
os.environ["PROMETHEUS_ENABLED"] = "false"
os.environ.pop("OPENAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from kruai.core import cache
from kruai.core.database import Base, engine
from kruai.core.errors import GenerationError
from kruai.main import app
from kruai.models.quiz import Question
from kruai.services.generation import SummaryData, get_generator


def make_questions(n, with_hints=True):
    return [
        Question(
            text=f"Question {i + 1}?",
            options=["A", "B", "C", "D"],
            correct_index=i % 4,
            explanation=f"Because of reason {i + 1}",
            hint=f"Think about {i + 1}" if with_hints else None,
        )
        for i in range(n)
    ]


SUMMARY = SummaryData(
    originalTopic="Plants",
    summaryContent="Plants make food from sunlight.",
    keyPoints=["Leaves", "Sunlight", "Water"],
    examples=["A sunflower turns to face the sun"],
)


class FakeGenerator:
    def __init__(self, questions=None, fail=False):
        self.questions = questions if questions is not None else make_questions(3)
        self.fail = fail
        self.calls = []

    def generate_summary(self, content, file_name=None, style="SHORT"):
        self.calls.append(("summary", content, file_name, style))
        if self.fail:
            raise GenerationError("Sorry, Kru AI could not summarise this right now.")
        return SUMMARY.model_copy(update={"original_topic": file_name or SUMMARY.original_topic})

    def generate_quiz(self, summary, count=None):
        self.calls.append(("quiz", summary.original_topic))
        if self.fail:
            raise GenerationError("Could not create the quiz")
        return list(self.questions)

    def chat_with_teacher(self, message, history, summary):
        self.calls.append(("chat", message, len(history)))
        return f"Good question about {summary.original_topic}!"


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def client(generator):
    Base.metadata.drop_all(bind=engine)
    cache._store = cache.MemorySessionStore(ttl=3600)
    app.dependency_overrides[get_generator] = lambda: generator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
