from sqlalchemy.exc import OperationalError

from kruai.core.database import SessionLocal, get_db
from kruai.main import app
from kruai.models.orm import QuizHistory


def make_user(client, nickname="Nong Fah", grade="P.4", style=None):
    body = {"nickname": nickname, "grade": grade}
    if style:
        body["summary_style"] = style
    r = client.post("/api/users", json=body)
    assert r.status_code == 200
    return r.json()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200 and r.json() == {"status": "ok"}
    r = client.get("/api/db-test")
    assert r.status_code == 200 and r.json()["success"] is True


def test_users_crud(client):
    u = make_user(client)
    assert u["summary_style"] == "SHORT"
    make_user(client, nickname="Ton", grade="P.6", style="DETAILED")
    users = client.get("/api/users").json()
    assert [x["nickname"] for x in users] == ["Ton", "Nong Fah"]
    r = client.put(f"/api/users/{u['id']}", json={"summary_style": "DETAILED"})
    assert r.status_code == 200 and r.json()["summary_style"] == "DETAILED"


def test_update_missing_user(client):
    r = client.put("/api/users/999", json={"summary_style": "SHORT"})
    assert r.status_code == 404
    assert r.json()["error"] == "User not found"


def test_invalid_style_rejected(client):
    u = make_user(client)
    r = client.put(f"/api/users/{u['id']}", json={"summary_style": "LONG"})
    assert r.status_code == 422


def test_summaries(client):
    u = make_user(client)
    content = {"originalTopic": "Plants", "summaryContent": "...", "keyPoints": ["a"]}
    r = client.post("/api/summaries", json={"user_id": u["id"], "title": "Plants", "content": content})
    assert r.status_code == 200 and r.json()["content"] == content
    client.post("/api/summaries", json={"user_id": u["id"], "title": "Water", "content": {"x": 1}})
    titles = [s["title"] for s in client.get(f"/api/summaries/{u['id']}").json()]
    assert titles == ["Water", "Plants"]
    assert client.get("/api/summaries/999").json() == []


def test_quiz_history_and_legacy_review(client):
    u = make_user(client)
    r = client.post("/api/quiz-history", json={"user_id": u["id"], "score": 3, "total_questions": 5,
                                               "details": {"topic": "Old lesson"}})
    assert r.status_code == 200
    record = r.json()
    history = client.get(f"/api/quiz-history/{u['id']}").json()
    assert [h["id"] for h in history] == [record["id"]]
    review = client.get(f"/api/quiz-history/records/{record['id']}/review").json()
    assert review["available"] is False
    assert review["message"] == "no answer-key data"
    assert review["topic"] == "Old lesson"


def test_score_above_total_rejected(client):
    r = client.post("/api/quiz-history", json={"score": 6, "total_questions": 5})
    assert r.status_code == 422


def test_missing_record(client):
    assert client.get("/api/quiz-history/records/42").status_code == 404
    assert client.get("/api/quiz-history/records/42/review").status_code == 404


def test_database_failure_is_server_error(client):
    class BrokenSession:
        def __init__(self):
            self.inner = SessionLocal()

        def __getattr__(self, name):
            return getattr(self.inner, name)

        def commit(self):
            raise OperationalError("INSERT", {}, Exception("db down"))

    def broken_db():
        db = BrokenSession()
        try:
            yield db
        finally:
            db.inner.close()

    app.dependency_overrides[get_db] = broken_db
    r = client.post("/api/users", json={"nickname": "A", "grade": "P.5"})
    assert r.status_code == 500
    assert r.json()["error"] == "Server error"
    assert r.json()["type"] == "persistence_error"


def test_malformed_stored_details_do_not_break_history(client):
    u = make_user(client)
    with SessionLocal() as db:
        row = QuizHistory(user_id=u["id"], score=1, total_questions=2,
                          details={"topic": "Old", "userAnswers": ["a", "b"], "questions": [1, 2]})
        db.add(row)
        db.commit()
        record_id = row.id
    r = client.get(f"/api/quiz-history/{u['id']}")
    assert r.status_code == 200
    assert r.json()[0]["details"]["topic"] == "Old"
    assert client.get(f"/api/quiz-history/records/{record_id}").status_code == 200
    r = client.get(f"/api/quiz-history/records/{record_id}/review")
    assert r.status_code == 200
    assert r.json()["available"] is False
    assert r.json()["message"] == "no answer-key data"


def test_malformed_details_rejected_before_saving(client):
    u = make_user(client)
    r = client.post("/api/quiz-history", json={"user_id": u["id"], "score": 1, "total_questions": 2,
                                               "details": {"topic": 5, "questions": "x"}})
    assert r.status_code == 422
    assert client.get(f"/api/quiz-history/{u['id']}").json() == []
