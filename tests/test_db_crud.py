import pytest
from sqlalchemy.exc import IntegrityError

from backend.app.models.candidate import Candidate
from backend.app.models.comment import Comment
from backend.app.models.job import Job
from backend.app.models.user import User


def test_db_crud_operations_and_relationships(db_session):
    # Create recruiter user
    recruiter = User(email="crud_recruiter@example.com", password="hashed", name="Recruiter")
    db_session.add(recruiter)
    db_session.commit()
    db_session.refresh(recruiter)
    assert len(recruiter.id) == 36
    assert recruiter.role == "recruiter"

    # Create job with the recruiter as creator and assignee
    job = Job(title="CRUD Job", created_by_id=recruiter.id, assignees=[recruiter])
    db_session.add(job)
    db_session.commit()
    db_session.refresh(job)
    assert job.status == "open"
    assert job.created_by.email == "crud_recruiter@example.com"
    assert [u.id for u in job.assignees] == [recruiter.id]
    assert [j.id for j in recruiter.assigned_jobs] == [job.id]

    # Create candidate
    candidate = Candidate(name="Cand", job_id=job.id, cv_file_path="cvs/1-abc-cv.pdf", created_by_id=recruiter.id)
    db_session.add(candidate)
    db_session.commit()
    db_session.refresh(candidate)
    assert candidate.status == "new"
    assert candidate.job.title == "CRUD Job"
    assert candidate.created_at is not None

    # Create comment
    comment = Comment(text="Looks good", candidate_id=candidate.id, created_by_id=recruiter.id)
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)
    assert comment.candidate.id == candidate.id
    assert comment.created_by.name == "Recruiter"

    # Update
    candidate.status = "reviewing"
    db_session.commit()
    db_session.refresh(candidate)
    assert candidate.status == "reviewing"

    # Delete
    db_session.delete(comment)
    db_session.delete(candidate)
    db_session.commit()
    assert db_session.query(Candidate).count() == 0
    assert db_session.query(Comment).count() == 0


def test_comment_requires_existing_candidate(db_session):
    author = User(email="fk_author@example.com", password="hashed", name="Author")
    db_session.add(author)
    db_session.commit()

    db_session.add(Comment(text="orphan", candidate_id="no-such-candidate", created_by_id=author.id))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
    assert db_session.query(Comment).count() == 0
