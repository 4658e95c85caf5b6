"""
Visibility policy for projects and their work packages.

The rules, in the order they are checked:

- Only active projects exist for queries. An archived project behaves like a
  missing one.
- A project is visible to admins, to its members (any role) and, when it is
  public, to everybody including anonymous viewers.
- A permission is granted in a visible project to admins, to members whose
  role carries it, and in public projects to everybody for the permissions
  listed in PUBLIC_PERMISSIONS.
- A work package is visible exactly when its own project grants
  ``view_work_packages``. Membership in a parent or child project does not
  grant anything.

A viewer who cannot see a project gets NotFound even when individual records
in it would match; a viewer who sees the project but may not view its work
packages gets Forbidden.
"""

import logging
from typing import Dict, List, Optional, Set
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

from workpack.core.config import PUBLIC_PERMISSIONS
from workpack.projects.dao import ProjectDAO
from workpack.projects.models import Project, User
from workpack.query.errors import Forbidden, NotFound
from workpack.work_packages.models import WorkPackage

logger = logging.getLogger(__name__)

VIEW_PROJECT = "view_project"
VIEW_WORK_PACKAGES = "view_work_packages"


class VisibilityPolicy:
    """Decides which projects and work packages a viewer may see."""

    def __init__(self, db: Session, public_permissions: Optional[List[str]] = None):
        self.project_dao = ProjectDAO(db)
        self.public_permissions = set(PUBLIC_PERMISSIONS if public_permissions is None else public_permissions)
        self._permission_cache: Dict[Optional[int], Dict[int, Set[str]]] = {}

    # ===== PROJECT LEVEL =====

    def _member_permissions(self, viewer: Optional[User]) -> Dict[int, Set[str]]:
        if viewer is None:
            return {}
        if viewer.id not in self._permission_cache:
            self._permission_cache[viewer.id] = self.project_dao.get_member_permissions(viewer.id)
        return self._permission_cache[viewer.id]

    def is_visible(self, project: Project, viewer: Optional[User]) -> bool:
        if not project.active:
            return False
        if viewer is not None and viewer.admin:
            return True
        return project.public or project.id in self._member_permissions(viewer)

    def allowed_to(self, permission: str, project: Project, viewer: Optional[User]) -> bool:
        if not self.is_visible(project, viewer):
            return False
        if viewer is not None and viewer.admin:
            return True
        if permission in self._member_permissions(viewer).get(project.id, set()):
            return True
        return project.public and permission in self.public_permissions

    def visible_projects(self, viewer: Optional[User]) -> List[Project]:
        """Visible and active projects, ordered by name."""
        return [p for p in self.project_dao.get_active() if self.is_visible(p, viewer)]

    def allowed_project_ids(self, permission: str, viewer: Optional[User]) -> List[int]:
        return [p.id for p in self.project_dao.get_active() if self.allowed_to(permission, p, viewer)]

    def authorize_project(self, id_or_identifier: str, viewer: Optional[User]) -> Project:
        """
        Resolve the container project of a request.

        Visibility is checked before permission so that the response never
        tells an outsider whether a project exists.
        """
        project = self.project_dao.get_by_id_or_identifier(id_or_identifier)
        if project is None or not self.is_visible(project, viewer):
            raise NotFound(f"Project '{id_or_identifier}' not found")
        if not self.allowed_to(VIEW_WORK_PACKAGES, project, viewer):
            logger.info("Viewer %s may see project %s but not its work packages",
                        getattr(viewer, "id", None), project.id)
            raise Forbidden("You are not authorized to view work packages of this project")
        return project

    # ===== RECORD LEVEL =====

    def filter(self, scope: Select, viewer: Optional[User]) -> Select:
        """Narrow a work package query to the records the viewer may see."""
        return scope.where(WorkPackage.project_id.in_(self.allowed_project_ids(VIEW_WORK_PACKAGES, viewer)))
