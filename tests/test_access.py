"""Tests for note permission checks."""

import pytest

from notevault.errors import ForbiddenError, NotFoundError
from notevault.models.note import CollaboratorPermission, Note, NoteCollaborator
from notevault.services.access import (
    check_permission,
    effective_permission,
    permission_level,
    require_access,
    require_owner,
)

AUTHOR_ID = 1
VIEWER_ID = 2
EDITOR_ID = 3
ADMIN_ID = 4
STRANGER_ID = 99


@pytest.fixture
def note():
    return Note(
        author_id=AUTHOR_ID,
        title="Plan",
        content="Body",
        collaborators=[
            NoteCollaborator(user_id=VIEWER_ID, permission=CollaboratorPermission.VIEW),
            NoteCollaborator(user_id=EDITOR_ID, permission=CollaboratorPermission.EDIT),
            NoteCollaborator(user_id=ADMIN_ID, permission="admin"),
        ],
    )


class TestPermissionOrdering:

    def test_levels_are_strictly_ordered(self):
        assert permission_level("view") < permission_level("edit") < permission_level("admin")

    def test_unknown_permission_is_zero(self):
        assert permission_level("owner") == 0
        assert permission_level(None) == 0

    def test_viewer_denied_edit(self, note):
        assert check_permission(note, VIEWER_ID, CollaboratorPermission.EDIT) is False

    def test_editor_allowed_view(self, note):
        assert check_permission(note, EDITOR_ID, CollaboratorPermission.VIEW) is True

    def test_admin_allowed_everything(self, note):
        for required in CollaboratorPermission:
            assert check_permission(note, ADMIN_ID, required) is True

    def test_author_always_allowed(self, note):
        for required in CollaboratorPermission:
            assert check_permission(note, AUTHOR_ID, required) is True

    def test_author_allowed_even_with_stray_entry(self, note):
        note.collaborators.append(NoteCollaborator(user_id=AUTHOR_ID, permission=CollaboratorPermission.VIEW))

        assert check_permission(note, AUTHOR_ID, CollaboratorPermission.ADMIN) is True

    def test_stranger_denied(self, note):
        assert check_permission(note, STRANGER_ID, CollaboratorPermission.VIEW) is False

    def test_effective_permission(self, note):
        assert effective_permission(note, AUTHOR_ID) == CollaboratorPermission.ADMIN
        assert effective_permission(note, EDITOR_ID) == CollaboratorPermission.EDIT
        assert effective_permission(note, STRANGER_ID) is None


class TestRequireAccess:

    def test_stranger_gets_not_found(self, note):
        with pytest.raises(NotFoundError):
            require_access(note, STRANGER_ID, CollaboratorPermission.VIEW)

    def test_insufficient_collaborator_gets_forbidden(self, note):
        with pytest.raises(ForbiddenError):
            require_access(note, VIEWER_ID, CollaboratorPermission.EDIT)

    def test_sufficient_collaborator_passes(self, note):
        require_access(note, EDITOR_ID, CollaboratorPermission.EDIT)

    def test_require_owner(self, note):
        require_owner(note, AUTHOR_ID)

        with pytest.raises(ForbiddenError):
            require_owner(note, ADMIN_ID)
        with pytest.raises(NotFoundError):
            require_owner(note, STRANGER_ID)
