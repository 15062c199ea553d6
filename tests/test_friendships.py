"""Tests for the friendship state machine."""

import copy
from datetime import timedelta

import pytest

from liftsync.db.repositories import FriendshipRepository
from liftsync.exceptions import (
    AlreadyFriendsError,
    BlockedError,
    FriendshipNotFoundError,
    InvalidFriendshipStateError,
    RequestAlreadySentError,
)
from liftsync.models.base import SyncStatus
from liftsync.models.social import FriendshipStatus
from liftsync.services.friendships import FriendshipService


@pytest.fixture
def service(db_path):
    return FriendshipService(FriendshipRepository(db_path))


class TestRequests:
    """Tests for sending and answering friend requests."""

    @pytest.mark.asyncio
    async def test_send_and_accept(self, service):
        request = await service.send_request("alice", "bob")
        assert request.status == FriendshipStatus.PENDING
        assert [f.id for f in await service.pending_requests_for("bob")] == [request.id]

        accepted = await service.accept(request.id, "bob")
        assert accepted.status == FriendshipStatus.ACCEPTED
        assert accepted.sync_status == SyncStatus.PENDING_SYNC
        assert await service.are_friends("bob", "alice")
        assert await service.friends_of("alice") == ["bob"]

    @pytest.mark.asyncio
    async def test_duplicate_request_rejected(self, service):
        await service.send_request("alice", "bob")
        with pytest.raises(RequestAlreadySentError):
            await service.send_request("alice", "bob")

    @pytest.mark.asyncio
    async def test_crossing_request_accepts(self, service):
        """Bob sending a request back to Alice accepts hers."""
        first = await service.send_request("alice", "bob")
        result = await service.send_request("bob", "alice")
        assert result.id == first.id
        assert result.status == FriendshipStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_request_to_friend_rejected(self, service):
        request = await service.send_request("alice", "bob")
        await service.accept(request.id, "bob")
        with pytest.raises(AlreadyFriendsError) as exc:
            await service.send_request("bob", "alice")
        assert exc.value.code == "FRIENDSHIP_ALREADY_FRIENDS"

    @pytest.mark.asyncio
    async def test_requester_cannot_accept(self, service):
        request = await service.send_request("alice", "bob")
        with pytest.raises(InvalidFriendshipStateError):
            await service.accept(request.id, "alice")

    @pytest.mark.asyncio
    async def test_unknown_friendship(self, service):
        with pytest.raises(FriendshipNotFoundError):
            await service.accept("missing", "bob")

    @pytest.mark.asyncio
    async def test_decline_removes_request(self, service):
        request = await service.send_request("alice", "bob")
        await service.decline(request.id, "bob")
        assert await service.pending_requests_for("bob") == []
        # A new request is possible afterwards
        await service.send_request("alice", "bob")

    @pytest.mark.asyncio
    async def test_outsider_cannot_decline(self, service):
        request = await service.send_request("alice", "bob")
        with pytest.raises(InvalidFriendshipStateError):
            await service.decline(request.id, "carol")


class TestBlocking:
    """Tests for blocking and unblocking."""

    @pytest.mark.asyncio
    async def test_block_prevents_requests_both_ways(self, service):
        await service.block("alice", "bob")
        assert await service.is_blocked("bob", "alice")
        with pytest.raises(BlockedError):
            await service.send_request("bob", "alice")
        with pytest.raises(BlockedError):
            await service.send_request("alice", "bob")

    @pytest.mark.asyncio
    async def test_block_replaces_friendship(self, service):
        request = await service.send_request("alice", "bob")
        await service.accept(request.id, "bob")

        blocked = await service.block("bob", "alice")

        assert blocked.requester_id == "bob"
        assert blocked.status == FriendshipStatus.BLOCKED
        assert not await service.are_friends("alice", "bob")
        assert await service.friends_of("alice") == []

    @pytest.mark.asyncio
    async def test_block_by_requester_updates_in_place(self, service):
        request = await service.send_request("alice", "bob")
        blocked = await service.block("alice", "bob")
        assert blocked.id == request.id

    @pytest.mark.asyncio
    async def test_only_blocker_can_unblock(self, service):
        await service.block("alice", "bob")
        with pytest.raises(InvalidFriendshipStateError):
            await service.unblock("bob", "alice")
        await service.unblock("alice", "bob")
        assert not await service.is_blocked("alice", "bob")

    @pytest.mark.asyncio
    async def test_unblock_without_block(self, service):
        with pytest.raises(InvalidFriendshipStateError):
            await service.unblock("alice", "bob")


class TestUpdateFromCloud:
    """Tests for last-write-wins friendship updates."""

    @pytest.mark.asyncio
    async def test_newer_cloud_copy_saved(self, service):
        local = await service.send_request("alice", "bob")
        cloud = copy.deepcopy(local)
        cloud.status = FriendshipStatus.ACCEPTED
        cloud.updated_at = local.updated_at + timedelta(minutes=1)

        assert await service.update_from_cloud([cloud]) == 1
        stored = await service.repository.find(local.id)
        assert stored.status == FriendshipStatus.ACCEPTED
        assert stored.sync_status == SyncStatus.SYNCED

    @pytest.mark.asyncio
    async def test_older_cloud_copy_ignored(self, service):
        local = await service.send_request("alice", "bob")
        cloud = copy.deepcopy(local)
        cloud.status = FriendshipStatus.BLOCKED
        cloud.updated_at = local.updated_at - timedelta(minutes=1)

        assert await service.update_from_cloud([cloud]) == 0
        assert (await service.repository.find(local.id)).status == FriendshipStatus.PENDING
