from .user import User
from .job import Job, job_assignees
from .candidate import Candidate
from .comment import Comment

__all__ = ["User", "Job", "job_assignees", "Candidate", "Comment"]
