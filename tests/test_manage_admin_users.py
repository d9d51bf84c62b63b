import pytest

from conftest import seed_account
from scripts import manage_admin_users


@pytest.mark.asyncio
async def test_set_admin_by_email(async_session_maker, monkeypatch, capsys):
    monkeypatch.setattr(manage_admin_users, "AsyncSessionLocal", async_session_maker)
    async with async_session_maker() as session:
        await seed_account(session)

    assert await manage_admin_users.set_admin("penpal_1@example.com", True)
    await manage_admin_users.list_admin_users()
    assert "penpal_1@example.com" in capsys.readouterr().out

    assert await manage_admin_users.set_admin("penpal_1@example.com", False)
    await manage_admin_users.list_admin_users()
    assert "No admin users found." in capsys.readouterr().out


@pytest.mark.asyncio
async def test_set_admin_unknown_email(async_session_maker, monkeypatch):
    monkeypatch.setattr(manage_admin_users, "AsyncSessionLocal", async_session_maker)
    assert not await manage_admin_users.set_admin("nobody@example.com", True)
