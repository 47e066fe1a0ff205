"""
tests.test_identity_store

IdentityStore restoration, commit/clear/patch semantics and storage fallback.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping

import pytest

from campus_wallet.db.init_db import init_db
from campus_wallet.db.session import create_engine, create_sessionmaker
from campus_wallet.identity.models import AuthoritativeRole, PrincipalKind, RoleTag
from campus_wallet.identity.storage import (
    KeyValueStorage,
    MemoryStorage,
    SqlKeyValueStorage,
    StorageUnavailableError,
)
from campus_wallet.identity.store import STORAGE_FALLBACK_WARNING, IdentityStore, NoActiveSessionError
from campus_wallet.settings import Settings

USER_ROLE = AuthoritativeRole.from_server(None)
TREASURY = AuthoritativeRole.from_server("treasury")


class BrokenStorage(KeyValueStorage):
    durable = True

    async def read(self, keys: Iterable[str]) -> dict[str, str]:
        raise StorageUnavailableError("disk gone")

    async def write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: Iterable[str] = (),
    ) -> None:
        raise StorageUnavailableError("disk gone")


class FlakyStorage(MemoryStorage):
    # Works until `broken` is set, then fails every call.
    broken = False

    async def read(self, keys: Iterable[str]) -> dict[str, str]:
        if self.broken:
            raise StorageUnavailableError("disk gone")
        return await super().read(keys)

    async def write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: Iterable[str] = (),
    ) -> None:
        if self.broken:
            raise StorageUnavailableError("disk gone")
        await super().write(updates=updates, removals=removals)


def _user_record() -> dict[str, str]:
    return {
        "userToken": "t-user",
        "userData": json.dumps({"userId": "u1", "email": "student01@nu.edu", "isActive": True}),
    }


@pytest.mark.asyncio
async def test_restore_is_idempotent() -> None:
    store = IdentityStore(MemoryStorage(_user_record()))

    first = await store.restore()
    second = await store.restore()

    assert first is not None
    assert first == second
    assert first.principal.kind is PrincipalKind.user
    assert first.principal.account_id == "u1"
    assert store.restored


@pytest.mark.asyncio
async def test_restore_without_records_is_logged_out() -> None:
    store = IdentityStore(MemoryStorage())

    assert store.restored is False
    assert await store.restore() is None
    assert store.restored is True
    assert store.is_logged_in is False


@pytest.mark.asyncio
async def test_corrupt_admin_record_is_purged() -> None:
    storage = MemoryStorage({"adminToken": "t-admin", "adminData": "{not json"})
    store = IdentityStore(storage)

    assert await store.restore() is None
    assert "adminToken" not in storage.dump()
    assert "adminData" not in storage.dump()


@pytest.mark.asyncio
async def test_corrupt_admin_record_falls_through_to_user_record() -> None:
    storage = MemoryStorage({"adminToken": "t-admin", "adminData": "[]", **_user_record()})
    store = IdentityStore(storage)

    session = await store.restore()

    assert session is not None
    assert session.principal.kind is PrincipalKind.user
    assert set(storage.dump()) == {"userToken", "userData"}


@pytest.mark.asyncio
async def test_half_written_record_is_purged() -> None:
    storage = MemoryStorage({"userData": json.dumps({"userId": "u1"})})
    store = IdentityStore(storage)

    assert await store.restore() is None
    assert storage.dump() == {}


@pytest.mark.asyncio
async def test_admin_record_with_unknown_role_is_purged() -> None:
    storage = MemoryStorage(
        {"adminToken": "t-admin", "adminData": json.dumps({"adminId": "a1", "role": "janitor"})}
    )
    store = IdentityStore(storage)

    assert await store.restore() is None
    assert storage.dump() == {}


@pytest.mark.asyncio
async def test_commit_replaces_other_namespace_without_merging() -> None:
    storage = MemoryStorage()
    store = IdentityStore(storage)
    await store.restore()

    await store.commit(
        {"adminId": "a1", "fullName": "Tess Treasurer", "desk": "B2"}, "t-admin", role=TREASURY
    )
    session = await store.commit({"userId": "u1", "email": "student01@nu.edu"}, "t-user", role=USER_ROLE)

    dumped = storage.dump()
    assert set(dumped) == {"userToken", "userData"}
    assert "desk" not in json.loads(dumped["userData"])
    assert session.principal.role_tag is None
    assert store.session == session


@pytest.mark.asyncio
async def test_commit_stores_authoritative_role_on_admin_record() -> None:
    storage = MemoryStorage()
    store = IdentityStore(storage)

    session = await store.commit({"adminId": "a1", "role": "motorpool"}, "t-admin", role=TREASURY)

    assert session.principal.role_tag is RoleTag.treasury
    assert json.loads(storage.dump()["adminData"])["role"] == "treasury"


@pytest.mark.asyncio
async def test_commit_with_empty_token_leaves_storage_untouched() -> None:
    storage = MemoryStorage(_user_record())
    store = IdentityStore(storage)
    before = await store.restore()

    with pytest.raises(ValueError):
        await store.commit({"adminId": "a1"}, "", role=TREASURY)

    assert storage.dump() == _user_record()
    assert store.session == before


@pytest.mark.asyncio
async def test_clear_removes_both_namespaces() -> None:
    storage = MemoryStorage(
        {
            **_user_record(),
            "adminToken": "t-admin",
            "adminData": json.dumps({"adminId": "a1", "role": "sysad"}),
        }
    )
    store = IdentityStore(storage)
    await store.restore()

    await store.clear()

    assert storage.dump() == {}
    assert store.session is None
    assert store.restored


@pytest.mark.asyncio
async def test_patch_updates_profile_and_keeps_token() -> None:
    storage = MemoryStorage()
    store = IdentityStore(storage)
    await store.commit({"adminId": "a1", "fullName": "Old Name"}, "t-admin", role=TREASURY)

    session = await store.patch({"fullName": "New Name", "role": "sysad"})

    assert session.token == "t-admin"
    assert session.principal.display_name == "New Name"
    assert session.principal.role_tag is RoleTag.treasury
    stored = json.loads(storage.dump()["adminData"])
    assert stored["fullName"] == "New Name"
    assert stored["role"] == "treasury"


@pytest.mark.asyncio
async def test_patch_without_session_raises() -> None:
    store = IdentityStore(MemoryStorage())
    await store.restore()

    with pytest.raises(NoActiveSessionError):
        await store.patch({"fullName": "Nobody"})


@pytest.mark.asyncio
async def test_storage_failure_falls_back_to_memory() -> None:
    store = IdentityStore(BrokenStorage())

    assert await store.restore() is None
    session = await store.commit({"userId": "u1"}, "t-user", role=USER_ROLE)

    assert store.session == session
    assert store.degraded
    assert store.storage_warning == STORAGE_FALLBACK_WARNING


@pytest.mark.asyncio
async def test_sql_storage_survives_restart(tmp_path) -> None:
    settings = Settings(storage_url=f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}")
    engine = create_engine(settings)
    try:
        await init_db(engine)
        factory = create_sessionmaker(engine)

        first = IdentityStore(SqlKeyValueStorage(factory))
        await first.restore()
        committed = await first.commit(
            {"adminId": "a9", "fullName": "Sam Sysad"}, "t-sysad", role=AuthoritativeRole.from_server("sysad")
        )

        second = IdentityStore(SqlKeyValueStorage(factory))
        restored = await second.restore()
    finally:
        await engine.dispose()

    assert restored == committed
    assert restored.principal.role_tag is RoleTag.sysad
    assert second.degraded is False


@pytest.mark.asyncio
async def test_patch_after_storage_failure_keeps_a_whole_record() -> None:
    fallback = MemoryStorage()
    storage = FlakyStorage()
    store = IdentityStore(storage, fallback_factory=lambda: fallback)
    committed = await store.commit({"adminId": "a1", "fullName": "Old Name"}, "t-admin", role=TREASURY)

    storage.broken = True
    patched = await store.patch({"fullName": "Tess"})

    assert store.degraded
    assert fallback.dump()["adminToken"] == "t-admin"
    assert json.loads(fallback.dump()["adminData"])["fullName"] == "Tess"

    restored = await store.restore()
    assert restored == patched
    assert restored.token == committed.token
    assert restored.principal.display_name == "Tess"


@pytest.mark.asyncio
async def test_restore_after_storage_failure_keeps_live_session() -> None:
    storage = FlakyStorage()
    store = IdentityStore(storage)
    committed = await store.commit({"userId": "u1", "isActive": True}, "t-user", role=USER_ROLE)

    storage.broken = True

    assert await store.restore() == committed
    assert await store.restore() == committed
    assert store.session == committed
    assert store.storage_warning == STORAGE_FALLBACK_WARNING


def test_outlet_roles_are_merchant_admins() -> None:
    for outlet in ("cafeteria", "Bookstore", "printshop"):
        role = AuthoritativeRole.from_server(outlet)
        assert role.kind is PrincipalKind.admin
        assert role.role_tag is RoleTag.merchant
