"""Admin user routes — ADMIN-only role changes, owner-or-admin avatar updates."""

from sqlalchemy import select

from app.core.domain_types import Role
from app.models.activity_log import ActivityLog
from app.models.user import User


async def _user(test_session_factory, user_id):
    async with test_session_factory() as db:
        return (await db.execute(select(User).where(User.id == user_id))).scalar_one()


async def test_list_users_requires_admin(client, login):
    _, committee = await login(Role.COMMITTEE)
    assert (await client.get("/api/admin/users", headers=committee)).status_code == 403

    _, admin = await login(Role.ADMIN)
    res = await client.get("/api/admin/users", headers=admin)
    assert res.status_code == 200
    assert res.json()["total"] == 2


async def test_promote_to_committee_with_function(
    client, login, make_user, audit_recorder, test_session_factory,
):
    admin, headers = await login(Role.ADMIN)
    target = await make_user(role=Role.MEMBER)

    res = await client.patch(
        f"/api/admin/users/{target.id}/role",
        json={"role": "COMMITTEE", "committee_role": "  Trésorier  "},
        headers=headers,
    )

    assert res.status_code == 200
    assert res.json()["role"] == "COMMITTEE"
    assert res.json()["committee_role"] == "Trésorier"

    await audit_recorder.join()
    async with test_session_factory() as db:
        log = (await db.execute(select(ActivityLog))).scalar_one()
    assert log.action == "USER_ROLE_UPDATED"
    assert log.user_id == admin.id
    assert log.target_id == target.id
    assert log.changes["previousRole"] == "MEMBER"
    assert log.changes["newCommitteeRole"] == "Trésorier"


async def test_leaving_committee_clears_function(client, login, make_user, test_session_factory):
    _, headers = await login(Role.ADMIN)
    target = await make_user(role=Role.COMMITTEE, committee_role="Président")

    res = await client.patch(
        f"/api/admin/users/{target.id}/role", json={"role": "COACH"}, headers=headers,
    )

    assert res.status_code == 200
    assert (await _user(test_session_factory, target.id)).committee_role is None


async def test_committee_role_on_non_committee_is_400(client, login, make_user):
    _, headers = await login(Role.ADMIN)
    target = await make_user()
    res = await client.patch(
        f"/api/admin/users/{target.id}/role",
        json={"role": "COACH", "committee_role": "Président"},
        headers=headers,
    )
    assert res.status_code == 400


async def test_committee_member_cannot_change_roles(client, login, make_user):
    _, headers = await login(Role.COMMITTEE)
    target = await make_user()
    res = await client.patch(
        f"/api/admin/users/{target.id}/role", json={"role": "ADMIN"}, headers=headers,
    )
    assert res.status_code == 403


async def test_role_change_on_unknown_user_is_404(client, login):
    _, headers = await login(Role.ADMIN)
    res = await client.patch(
        "/api/admin/users/missing/role", json={"role": "ADMIN"}, headers=headers,
    )
    assert res.status_code == 404


async def test_owner_updates_own_image(client, login, test_session_factory):
    user, headers = await login(Role.MEMBER)
    res = await client.patch(
        f"/api/admin/users/{user.id}/image",
        json={"image": "https://cdn.ladtc.be/a.png"},
        headers=headers,
    )
    assert res.status_code == 200
    assert (await _user(test_session_factory, user.id)).image == "https://cdn.ladtc.be/a.png"


async def test_member_cannot_update_someone_elses_image(client, login, make_user):
    _, headers = await login(Role.MEMBER)
    other = await make_user()
    res = await client.patch(
        f"/api/admin/users/{other.id}/image",
        json={"image": "https://cdn.ladtc.be/a.png"},
        headers=headers,
    )
    assert res.status_code == 403


async def test_admin_clears_image(client, login, make_user):
    _, headers = await login(Role.ADMIN)
    other = await make_user()
    res = await client.patch(
        f"/api/admin/users/{other.id}/image", json={"image": None}, headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["image"] is None


async def test_invalid_image_url_is_400(client, login):
    user, headers = await login(Role.MEMBER)
    res = await client.patch(
        f"/api/admin/users/{user.id}/image", json={"image": "ftp://x"}, headers=headers,
    )
    assert res.status_code == 400
