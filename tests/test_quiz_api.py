import pytest

from conftest import SUMMARY, FakeGenerator
from kruai.core.errors import PersistenceError
from kruai.services import records
from kruai.services.generation import get_generator
from kruai.main import app

SUMMARY_JSON = SUMMARY.model_dump(by_alias=True)


def start_quiz(client, user_id=None):
    r = client.post("/api/quizzes", json={"summary": SUMMARY_JSON, "user_id": user_id})
    assert r.status_code == 201
    return r.json()


def answer(client, quiz_id, idx):
    r = client.post(f"/api/quizzes/{quiz_id}/answers", json={"option_index": idx})
    assert r.status_code == 200
    return r.json()


def advance(client, quiz_id):
    r = client.post(f"/api/quizzes/{quiz_id}/advance")
    assert r.status_code == 200
    return r.json()


def test_create_quiz(client):
    q = start_quiz(client)
    assert q["topic"] == "Plants"
    assert q["total"] == 3 and q["current_index"] == 0
    assert q["state"] == "unanswered"
    assert q["correct_index"] is None and q["explanation"] is None and q["hint"] is None
    assert q["user_answers"] == [None, None, None]
    assert client.get(f"/api/quizzes/{q['quiz_id']}").json() == q


def test_retry_with_hint_then_lock(client):
    qid = start_quiz(client)["quiz_id"]
    v = answer(client, qid, 1)
    assert v["state"] == "retrying" and v["attempts_left"] == 2
    assert v["hint"] == "Think about 1"
    assert v["selected_option"] == 1 and v["user_answers"][0] is None
    # cannot move on while retrying
    assert advance(client, qid)["quiz"]["current_index"] == 0
    answer(client, qid, 2)
    v = answer(client, qid, 3)
    assert v["state"] == "completed" and v["attempts_left"] == 0
    assert v["correct_index"] == 0 and v["explanation"] == "Because of reason 1"
    assert v["user_answers"][0] == 3 and v["score"] == 0
    assert v["hint"] is None
    # locked: further answers change nothing
    assert answer(client, qid, 0) == v


def test_full_quiz_saves_snapshot(client):
    user = client.post("/api/users", json={"nickname": "Fah", "grade": "P.5"}).json()
    qid = start_quiz(client, user_id=user["id"])["quiz_id"]
    answer(client, qid, 0)                      # q1 correct
    advance(client, qid)
    answer(client, qid, 0)                      # q2 wrong, then correct
    answer(client, qid, 1)
    advance(client, qid)
    for pick in (0, 1, 3):                      # q3 locked out
        answer(client, qid, pick)
    done = advance(client, qid)
    assert done["finished"] is True and done["saved"] is True
    assert done["result"]["score"] == 2 and done["result"]["total"] == 3
    assert done["result"]["tier"] == "good"

    record = client.get(f"/api/quiz-history/records/{done['record_id']}").json()
    assert record["details"]["topic"] == "Plants"
    assert record["details"]["userAnswers"] == [0, 1, 3]
    review = client.get(f"/api/quiz-history/records/{done['record_id']}/review").json()
    assert [i["is_correct"] for i in review["items"]] == [True, True, False]

    # advancing a finished quiz does not record it twice
    again = advance(client, qid)
    assert again["finished"] is True and again["saved"] is False
    assert len(client.get(f"/api/quiz-history/{user['id']}").json()) == 1


def test_anonymous_quiz_is_not_saved(client, generator):
    generator.questions = generator.questions[:1]
    qid = start_quiz(client)["quiz_id"]
    answer(client, qid, 0)
    done = advance(client, qid)
    assert done["finished"] and not done["saved"] and done["record_id"] is None
    assert done["result"]["tier"] == "excellent"


def test_save_failure_keeps_result(client, generator, monkeypatch):
    generator.questions = generator.questions[:1]
    user = client.post("/api/users", json={"nickname": "Fah", "grade": "P.5"}).json()

    def fail(*a, **kw):
        raise PersistenceError("Failed to save result")

    monkeypatch.setattr(records, "save_snapshot", fail)
    qid = start_quiz(client, user_id=user["id"])["quiz_id"]
    answer(client, qid, 0)
    done = advance(client, qid)
    assert done["finished"] is True and done["saved"] is False
    assert done["result"]["score"] == 1
    assert done["warning"]


def test_restart_and_discard(client):
    qid = start_quiz(client)["quiz_id"]
    answer(client, qid, 0)
    advance(client, qid)
    v = client.post(f"/api/quizzes/{qid}/restart").json()
    assert v["current_index"] == 0 and v["score"] == 0 and v["state"] == "unanswered"
    assert client.delete(f"/api/quizzes/{qid}").status_code == 204
    assert client.get(f"/api/quizzes/{qid}").status_code == 404


def test_unknown_quiz(client):
    r = client.post("/api/quizzes/nope/answers", json={"option_index": 0})
    assert r.status_code == 404
    assert r.json()["type"] == "not_found"


def test_option_out_of_range(client):
    qid = start_quiz(client)["quiz_id"]
    r = client.post(f"/api/quizzes/{qid}/answers", json={"option_index": 4})
    assert r.status_code == 422


@pytest.mark.parametrize("questions", [None, []])
def test_generation_failure(client, questions):
    gen = FakeGenerator(fail=questions is None, questions=questions)
    app.dependency_overrides[get_generator] = lambda: gen
    r = client.post("/api/quizzes", json={"summary": SUMMARY_JSON})
    assert r.status_code == 502
    assert r.json()["type"] == "generation_error"


def test_quiz_for_unknown_user(client, generator):
    r = client.post("/api/quizzes", json={"summary": SUMMARY_JSON, "user_id": 999})
    assert r.status_code == 404
    assert generator.calls == []
