# video_review/projects.py
from __future__ import annotations

import logging
from typing import List, Optional

from .domain import PROJECTS_TABLE, CommentValidationError, Project, ProjectStatus
from .records.base import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)


def list_projects(records: RecordStore, user_id: Optional[str] = None) -> List[Project]:
    """Newest first. user_id limits the list to one editor's projects."""
    filters = {"user_id": user_id} if user_id else None
    rows = records.select(PROJECTS_TABLE, filters, order="created_at", ascending=False)
    return [Project.from_record(r) for r in rows]


def load_project(records: RecordStore, project_id: str) -> Optional[Project]:
    rows = records.select(PROJECTS_TABLE, {"id": project_id})
    return Project.from_record(rows[0]) if rows else None


def send_feedback(records: RecordStore, project_id: str, has_comments: bool) -> Project:
    """Client hands the review back: flags the project so the editor sees new comments."""
    if not has_comments:
        raise CommentValidationError("Please add at least one comment before sending feedback.")
    row = records.update(PROJECTS_TABLE, project_id, {"status": ProjectStatus.COMMENT_NOTIFICATION})
    logger.info("feedback sent for project %s", project_id)
    return Project.from_record(row)


def acknowledge_feedback(records: RecordStore, project: Project) -> bool:
    """
    Editor opened a project with unseen client feedback: move it to in_review.
    Returns True if the status changed. Failures are logged; the project keeps its status.
    """
    if project.status != ProjectStatus.COMMENT_NOTIFICATION:
        return False
    try:
        records.update(PROJECTS_TABLE, project.id, {"status": ProjectStatus.IN_REVIEW})
    except RecordStoreError as e:
        logger.warning("could not mark project %s as in review: %s", project.id, e)
        return False
    project.status = ProjectStatus.IN_REVIEW
    return True


def review_link(project_id: str, base_url: str = "") -> str:
    """Where a client opens the review: <base_url>/review/<id>, or just review/<id> without a base."""
    base = (base_url or "").rstrip("/")
    return f"{base}/review/{project_id}" if base else f"review/{project_id}"


def share_project(records: RecordStore, project: Project, base_url: str = "") -> str:
    """
    Editor hands the project to the client: returns the review link and moves it to in_review.
    The link is returned even if the status update fails; the failure is logged.
    """
    link = review_link(project.id, base_url)
    if project.status != ProjectStatus.IN_REVIEW:
        try:
            records.update(PROJECTS_TABLE, project.id, {"status": ProjectStatus.IN_REVIEW})
        except RecordStoreError as e:
            logger.warning("could not mark project %s as in review: %s", project.id, e)
            return link
        project.status = ProjectStatus.IN_REVIEW
    return link


def set_project_status(records: RecordStore, project: Project, status: str) -> Project:
    """Editor sets the status by hand (e.g. closes the project as completed)."""
    if status not in ProjectStatus.ALL:
        raise ValueError(f"Unknown project status '{status}'. Expected one of {list(ProjectStatus.ALL)}")
    row = records.update(PROJECTS_TABLE, project.id, {"status": status})
    project.status = str(row.get("status") or status)
    logger.info("project %s status -> %s", project.id, project.status)
    return project
