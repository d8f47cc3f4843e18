"""
Storage collaborator tests: read failures and stable paging.
"""
from datetime import datetime

import pytest
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import InternalError
from app.core.policy import ScopeSpec
from app.models import Task
from app.repositories import TaskRepository


@pytest.mark.integration
class TestReadFailures:
    """A failed read leaves the session usable for the rest of the request."""

    @pytest.mark.parametrize("call", [
        lambda repo: repo.find("task-1"),
        lambda repo: repo.query(ScopeSpec.unrestricted()),
        lambda repo: repo.count(Task.status == "open"),
    ], ids=["find", "query", "count"])
    def test_rolls_back_before_raising(self, db_session, monkeypatch, call) -> None:
        rollbacks = []

        def broken_query(*args, **kwargs):
            raise SQLAlchemyError("connection reset")

        monkeypatch.setattr(db_session, "query", broken_query)
        monkeypatch.setattr(db_session, "rollback", lambda: rollbacks.append(True))

        with pytest.raises(InternalError):
            call(TaskRepository(db_session))

        assert rollbacks == [True]


@pytest.mark.integration
class TestPaging:

    def test_equal_timestamps_page_without_overlap(self, db_session, factory) -> None:
        project = factory.project(factory.tenant())
        tasks = [factory.task(project) for _ in range(5)]
        db_session.query(Task).update({"created_at": datetime(2024, 1, 1)}, synchronize_session="fetch")
        db_session.commit()

        repo = TaskRepository(db_session)
        seen = []
        for page in (1, 2, 3):
            seen.extend(t.id for t in repo.query(ScopeSpec.unrestricted(), page=page, page_size=2).items)

        assert seen == sorted(t.id for t in tasks)
