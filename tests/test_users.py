"""
Tests for the user directory.
"""

import pytest

from pagevault.exceptions import (
    AuthenticationError,
    ConflictError,
    ResourceNotFoundError,
    ValidationError,
)
from pagevault.types import Role
from pagevault.utils.identifiers import PASSWORD_ALPHABET


class TestCreateUser:

    @pytest.mark.asyncio
    async def test_create_with_generated_password(self, vault, admin):
        user = await vault.users.create_user("Alice", role="editor", actor=admin)

        assert user.username == "alice"
        assert user.role == Role.EDITOR
        assert user.created_by == "local"
        assert len(user.password) == 16
        assert set(user.password) <= set(PASSWORD_ALPHABET)

    @pytest.mark.asyncio
    async def test_default_role_is_contributor(self, vault, admin):
        user = await vault.users.create_user("bob", actor=admin)
        assert user.role == Role.CONTRIBUTOR

    @pytest.mark.asyncio
    async def test_duplicate_username_conflicts(self, vault, admin):
        await vault.users.create_user("bob", actor=admin)

        with pytest.raises(ConflictError):
            await vault.users.create_user("BOB", actor=admin)

    @pytest.mark.asyncio
    async def test_empty_username_and_bad_role_rejected(self, vault, admin):
        with pytest.raises(ValidationError):
            await vault.users.create_user("   ", actor=admin)
        with pytest.raises(ValidationError):
            await vault.users.create_user("carol", role="superuser", actor=admin)

    @pytest.mark.asyncio
    async def test_listing_never_includes_passwords(self, vault, admin):
        await vault.users.create_user("bob", password="hunter2", actor=admin)

        for summary in vault.users.list_users():
            assert "password" not in summary.model_dump()


class TestUpdateUser:

    @pytest.mark.asyncio
    async def test_role_change(self, vault, admin):
        await vault.users.create_user("bob", actor=admin)

        result = await vault.users.update_user("bob", role="editor", actor=admin)

        assert result.role == Role.EDITOR
        assert result.new_password is None
        assert vault.audit.query(limit=1)[0].action == "user_role_change"

    @pytest.mark.asyncio
    async def test_reset_password_returns_working_password(self, vault, admin):
        await vault.users.create_user("bob", password="old", actor=admin)

        result = await vault.users.update_user("bob", reset_password=True, actor=admin)

        assert result.new_password and result.new_password != "old"
        session = await vault.sessions.authenticate("bob", result.new_password)
        assert session.username == "bob"
        with pytest.raises(AuthenticationError):
            await vault.sessions.authenticate("bob", "old")

    @pytest.mark.asyncio
    async def test_password_only_update_does_not_log_role_change(self, vault, admin):
        await vault.users.create_user("bob", role="editor", password="old", actor=admin)

        await vault.users.update_user("bob", password="new-secret", actor=admin)

        latest = vault.audit.query(limit=1)[0]
        assert latest.action == "password_change"
        assert latest.details == {"username": "bob", "reset": False}
        assert vault.audit.query(action="user_role_change") == []

    @pytest.mark.asyncio
    async def test_same_role_is_not_a_change(self, vault, admin):
        await vault.users.create_user("bob", role="editor", actor=admin)

        await vault.users.update_user("bob", role="editor", actor=admin)

        assert vault.audit.query(action="user_role_change") == []

    @pytest.mark.asyncio
    async def test_reset_with_role_logs_both(self, vault, admin):
        await vault.users.create_user("bob", actor=admin)

        await vault.users.update_user("bob", role="editor", reset_password=True, actor=admin)

        assert [e.action for e in vault.audit.query(limit=2)] == ["password_change", "user_role_change"]

    @pytest.mark.asyncio
    async def test_unknown_user(self, vault, admin):
        with pytest.raises(ResourceNotFoundError):
            await vault.users.update_user("ghost", role="editor", actor=admin)


class TestDeleteUser:

    @pytest.mark.asyncio
    async def test_delete_revokes_sessions(self, vault, admin, editor):
        await vault.users.delete_user("editor", actor=admin)

        assert "editor" not in vault.store.users
        with pytest.raises(AuthenticationError):
            vault.sessions.validate(editor.token)
        assert vault.audit.query(limit=1)[0].action == "user_delete"

    @pytest.mark.asyncio
    async def test_cannot_delete_self(self, vault, admin):
        with pytest.raises(ValidationError):
            await vault.users.delete_user("local", actor=admin)

    @pytest.mark.asyncio
    async def test_unknown_user(self, vault, admin):
        with pytest.raises(ResourceNotFoundError):
            await vault.users.delete_user("ghost", actor=admin)
