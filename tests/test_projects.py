"""Tests for project listing and feedback status."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from video_review.domain import PROJECTS_TABLE, CommentValidationError, Project, ProjectStatus
from video_review.projects import (
    acknowledge_feedback,
    list_projects,
    load_project,
    review_link,
    send_feedback,
    set_project_status,
    share_project,
)
from video_review.records import RecordStoreError
from video_review.records.memory import MemoryRecordStore


def _records():
    return MemoryRecordStore(
        {
            PROJECTS_TABLE: [
                {"id": "p1", "title": "Old", "user_id": "u1", "created_at": "2024-01-01T00:00:00+00:00",
                 "status": ProjectStatus.PENDING, "video_url": "https://cdn.test/a.mp4"},
                {"id": "p2", "title": "New", "user_id": "u1", "created_at": "2024-03-01T00:00:00+00:00",
                 "status": ProjectStatus.COMMENT_NOTIFICATION, "video_url": "b.mp4"},
                {"id": "p3", "title": "Someone else", "user_id": "u2",
                 "created_at": "2024-02-01T00:00:00+00:00"},
            ]
        }
    )


class TestListProjects:
    def test_newest_first(self):
        projects = list_projects(_records())
        assert [p.id for p in projects] == ["p2", "p3", "p1"]

    def test_filtered_by_owner(self):
        projects = list_projects(_records(), user_id="u1")
        assert [p.id for p in projects] == ["p2", "p1"]

    def test_load_project(self):
        p = load_project(_records(), "p1")
        assert p.title == "Old"
        assert p.status == ProjectStatus.PENDING
        assert load_project(_records(), "missing") is None

    def test_missing_status_defaults_to_pending(self):
        assert load_project(_records(), "p3").status == ProjectStatus.PENDING


class TestFeedback:
    def test_send_feedback_flags_project(self):
        records = _records()
        project = send_feedback(records, "p1", has_comments=True)
        assert project.status == ProjectStatus.COMMENT_NOTIFICATION
        assert load_project(records, "p1").status == ProjectStatus.COMMENT_NOTIFICATION

    def test_send_feedback_requires_comments(self):
        records = MagicMock()
        with pytest.raises(CommentValidationError):
            send_feedback(records, "p1", has_comments=False)
        records.update.assert_not_called()

    def test_acknowledge_moves_to_in_review(self):
        records = _records()
        project = load_project(records, "p2")
        assert acknowledge_feedback(records, project) is True
        assert project.status == ProjectStatus.IN_REVIEW
        assert load_project(records, "p2").status == ProjectStatus.IN_REVIEW

    def test_acknowledge_ignores_other_statuses(self):
        records = MagicMock()
        project = Project(id="p1", title="x", status=ProjectStatus.IN_REVIEW)
        assert acknowledge_feedback(records, project) is False
        records.update.assert_not_called()

    def test_acknowledge_failure_keeps_status(self):
        records = MagicMock()
        records.update.side_effect = RecordStoreError("offline")
        project = Project(id="p1", title="x", status=ProjectStatus.COMMENT_NOTIFICATION)
        assert acknowledge_feedback(records, project) is False
        assert project.status == ProjectStatus.COMMENT_NOTIFICATION


class TestShareAndStatus:
    def test_review_link(self):
        assert review_link("p1", "https://review.example.com/") == "https://review.example.com/review/p1"
        assert review_link("p1") == "review/p1"

    def test_share_moves_to_in_review(self):
        records = _records()
        project = load_project(records, "p1")
        link = share_project(records, project, "https://review.example.com")
        assert link == "https://review.example.com/review/p1"
        assert project.status == ProjectStatus.IN_REVIEW
        assert load_project(records, "p1").status == ProjectStatus.IN_REVIEW

    def test_share_already_in_review_sends_nothing(self):
        records = MagicMock()
        project = Project(id="p1", title="x", status=ProjectStatus.IN_REVIEW)
        assert share_project(records, project) == "review/p1"
        records.update.assert_not_called()

    def test_share_failure_still_returns_link(self):
        records = MagicMock()
        records.update.side_effect = RecordStoreError("offline")
        project = Project(id="p1", title="x", status=ProjectStatus.PENDING)
        assert share_project(records, project) == "review/p1"
        assert project.status == ProjectStatus.PENDING

    def test_set_status_completed(self):
        records = _records()
        project = load_project(records, "p2")
        set_project_status(records, project, ProjectStatus.COMPLETED)
        assert project.status == ProjectStatus.COMPLETED
        assert load_project(records, "p2").status == ProjectStatus.COMPLETED

    def test_set_status_back_to_pending(self):
        records = _records()
        project = load_project(records, "p2")
        set_project_status(records, project, ProjectStatus.PENDING)
        assert load_project(records, "p2").status == ProjectStatus.PENDING

    def test_unknown_status_is_rejected(self):
        records = MagicMock()
        project = Project(id="p1", title="x")
        with pytest.raises(ValueError):
            set_project_status(records, project, "archived")
        records.update.assert_not_called()
        assert project.status == ProjectStatus.PENDING

    def test_set_status_failure_keeps_status(self):
        records = MagicMock()
        records.update.side_effect = RecordStoreError("offline")
        project = Project(id="p1", title="x", status=ProjectStatus.IN_REVIEW)
        with pytest.raises(RecordStoreError):
            set_project_status(records, project, ProjectStatus.COMPLETED)
        assert project.status == ProjectStatus.IN_REVIEW
