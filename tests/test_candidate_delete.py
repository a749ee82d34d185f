import pytest
from sqlalchemy.exc import SQLAlchemyError

from backend.app.models.candidate import Candidate
from backend.app.models.comment import Comment
from backend.app.models.job import Job
from backend.app.models.user import User
from backend.app.services import asset_store
from backend.app.services import candidates as candidate_service


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _recruiter(client, email: str) -> tuple[str, str]:
    data = client.post("/auth/signup", json={"email": email, "password": "Testpass123!", "name": "Rec"}).json()
    return data["access_token"], data["user"]["id"]


def _candidate_via_api(client, token: str) -> dict:
    job = client.post("/jobs", headers=_auth_headers(token), json={"title": "QA Engineer"}).json()["job"]
    r = client.post(
        f"/jobs/{job['id']}/candidates",
        headers=_auth_headers(token),
        data={"name": "To Delete"},
        files={
            "cv": ("cv.pdf", b"%PDF-1.4\n", "application/pdf"),
            "cover_letter": ("letter.txt", b"Dear team", "text/plain"),
        },
    )
    assert r.status_code == 201, r.text
    return r.json()["candidate"]


def _seed(db_session, *, comments: int) -> tuple[Candidate, User]:
    author = User(email=f"seed{comments}@example.com", password="hashed", role="recruiter", name="Seeder")
    db_session.add(author)
    db_session.flush()
    job = Job(title="Seeded Job", created_by_id=author.id)
    db_session.add(job)
    db_session.flush()
    candidate = Candidate(name="Seeded", job_id=job.id, cv_file_path="cvs/missing.pdf")
    db_session.add(candidate)
    db_session.flush()
    for i in range(comments):
        db_session.add(Comment(text=f"note {i}", candidate_id=candidate.id, created_by_id=author.id))
    db_session.commit()
    return candidate, author


def test_delete_removes_candidate_comments_and_files(client, db_session, upload_dir):
    token, _ = _recruiter(client, "del_rec@example.com")
    cand = _candidate_via_api(client, token)
    for text in ("first", "second", "third"):
        r = client.post(f"/candidates/{cand['id']}/comments", headers=_auth_headers(token), json={"text": text})
        assert r.status_code == 201, r.text

    cv_path = upload_dir / cand["cv_file_path"]
    letter_path = upload_dir / cand["cover_letter_path"]
    assert cv_path.is_file() and letter_path.is_file()

    r = client.delete(f"/candidates/{cand['id']}", headers=_auth_headers(token))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["deleted_candidate_id"] == cand["id"]
    assert body["deleted_comments"] == 3

    assert db_session.query(Candidate).filter(Candidate.id == cand["id"]).count() == 0
    assert db_session.query(Comment).filter(Comment.candidate_id == cand["id"]).count() == 0
    assert not cv_path.exists()
    assert not letter_path.exists()

    gone = client.get(f"/candidates/{cand['id']}", headers=_auth_headers(token))
    assert gone.status_code == 404, gone.text


def test_delete_with_no_comments(db_session, upload_dir):
    candidate, _ = _seed(db_session, comments=0)
    assert candidate_service.delete_candidate(db_session, candidate.id) == 0
    assert db_session.query(Candidate).count() == 0


def test_delete_unknown_candidate_is_404(client):
    token, _ = _recruiter(client, "del_404@example.com")
    r = client.delete("/candidates/not-a-real-id", headers=_auth_headers(token))
    assert r.status_code == 404, r.text
    assert r.json()["error"] == "Candidate not found"


def test_delete_requires_login(client):
    token, _ = _recruiter(client, "del_auth@example.com")
    cand = _candidate_via_api(client, token)
    r = client.delete(f"/candidates/{cand['id']}")
    assert r.status_code == 401, r.text


def test_failure_after_comment_delete_rolls_everything_back(db_session, upload_dir, monkeypatch):
    candidate, _ = _seed(db_session, comments=4)
    candidate_id = candidate.id
    real_delete_comments = candidate_service._delete_comments

    def delete_then_fail(db, cid):
        real_delete_comments(db, cid)
        raise SQLAlchemyError("simulated failure after removing comments")

    monkeypatch.setattr(candidate_service, "_delete_comments", delete_then_fail)
    stored = asset_store.store(b"%PDF-1.4\n", original_filename="cv.pdf", category=asset_store.CV)
    candidate.cv_file_path = stored.locator
    db_session.commit()

    with pytest.raises(SQLAlchemyError):
        candidate_service.delete_candidate(db_session, candidate_id)

    db_session.expire_all()
    assert db_session.query(Candidate).filter(Candidate.id == candidate_id).count() == 1
    assert db_session.query(Comment).filter(Comment.candidate_id == candidate_id).count() == 4
    assert (upload_dir / stored.locator).is_file()


def test_failed_delete_over_http_is_500_and_keeps_data(client, db_session, monkeypatch):
    token, _ = _recruiter(client, "del_500@example.com")
    cand = _candidate_via_api(client, token)
    client.post(f"/candidates/{cand['id']}/comments", headers=_auth_headers(token), json={"text": "keep me"})

    def fail(db, cid):
        raise SQLAlchemyError("boom")

    monkeypatch.setattr(candidate_service, "_delete_comments", fail)
    r = client.delete(f"/candidates/{cand['id']}", headers=_auth_headers(token))
    assert r.status_code == 500, r.text
    assert r.json()["success"] is False

    assert db_session.query(Candidate).filter(Candidate.id == cand["id"]).count() == 1
    assert db_session.query(Comment).filter(Comment.candidate_id == cand["id"]).count() == 1
