"""Integration tests for AccountRepository hierarchy queries."""

import pytest

from hierarchy_ledger.repositories.account_repository import AccountRepository
from hierarchy_ledger.utils.exceptions import NotFound


class TestHierarchyStore:
    """Parent/child edges, ancestry and locking."""

    @pytest.mark.asyncio
    async def test_get_account(self, session, hierarchy):
        repo = AccountRepository(session)

        account = await repo.get_account(hierarchy.xavier.id)

        assert account.username == "xavier"

        with pytest.raises(NotFound):
            await repo.get_account(9999)

    @pytest.mark.asyncio
    async def test_parent(self, session, hierarchy):
        repo = AccountRepository(session)

        assert await repo.get_parent_id(hierarchy.yvonne.id) == hierarchy.xavier.id
        assert await repo.get_parent_id(hierarchy.peter.id) is None

        with pytest.raises(NotFound):
            await repo.get_parent_id(9999)

    @pytest.mark.asyncio
    async def test_is_direct_child(self, session, hierarchy):
        h = hierarchy
        repo = AccountRepository(session)

        assert await repo.is_direct_child(h.xavier.id, h.yvonne.id)
        assert not await repo.is_direct_child(h.xavier.id, h.zed.id)
        assert not await repo.is_direct_child(h.yvonne.id, h.xavier.id)
        assert not await repo.is_direct_child(h.xavier.id, 9999)

    @pytest.mark.asyncio
    async def test_ancestry(self, session, hierarchy):
        h = hierarchy
        repo = AccountRepository(session)

        assert await repo.get_ancestor_ids(h.zed.id) == [
            h.zed.id,
            h.yvonne.id,
            h.xavier.id,
            h.peter.id,
        ]
        assert await repo.get_level(h.zed.id) == 3
        assert await repo.get_level(h.peter.id) == 0

        with pytest.raises(NotFound):
            await repo.get_level(9999)

    @pytest.mark.asyncio
    async def test_is_descendant(self, session, hierarchy):
        h = hierarchy
        repo = AccountRepository(session)

        assert await repo.is_descendant(h.peter.id, h.zed.id)
        assert await repo.is_descendant(h.xavier.id, h.yvonne.id)
        assert not await repo.is_descendant(h.zed.id, h.peter.id)
        assert not await repo.is_descendant(h.xavier.id, h.xavier.id)
        assert not await repo.is_descendant(h.admin.id, h.zed.id)
        assert not await repo.is_descendant(h.peter.id, 9999)

    @pytest.mark.asyncio
    async def test_direct_children(self, session, hierarchy):
        repo = AccountRepository(session)

        children = await repo.get_direct_children(hierarchy.xavier.id)

        assert [child.username for child in children] == ["yvonne"]
        assert await repo.count_direct_children(hierarchy.zed.id) == 0

    @pytest.mark.asyncio
    async def test_full_downline(self, session, hierarchy):
        repo = AccountRepository(session)

        tree = await repo.get_full_downline(hierarchy.peter.id)

        assert len(tree) == 1
        xavier = tree[0]
        assert xavier.username == "xavier"
        assert xavier.children[0].username == "yvonne"
        assert xavier.children[0].children[0].username == "zed"
        assert xavier.children[0].children[0].depth_from_root == 3

    @pytest.mark.asyncio
    async def test_lock_accounts(self, session, hierarchy):
        h = hierarchy
        repo = AccountRepository(session)

        locked = await repo.lock_accounts([h.zed.id, h.peter.id, h.zed.id])

        assert set(locked) == {h.zed.id, h.peter.id}

        with pytest.raises(NotFound):
            await repo.lock_accounts([h.peter.id, 9999])

    @pytest.mark.asyncio
    async def test_parent_map(self, session, hierarchy):
        h = hierarchy
        repo = AccountRepository(session)

        parent_map = await repo.get_parent_map()

        assert parent_map[h.zed.id] == h.yvonne.id
        assert parent_map[h.admin.id] is None
