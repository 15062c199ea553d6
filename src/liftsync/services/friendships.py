"""Friend requests, acceptance and blocking between two users."""

from ..db.repositories import FriendshipRepository
from ..exceptions import (
    AlreadyFriendsError,
    BlockedError,
    FriendshipNotFoundError,
    InvalidFriendshipStateError,
    RequestAlreadySentError,
)
from ..models.base import SyncStatus, utc_now
from ..models.social import Friendship, FriendshipStatus
from ..utils.logging import get_logger

logger = get_logger(__name__)


class FriendshipService:
    """Relationship state machine over the local friendship repository.

    Every rejection is raised to the caller as a ``FriendshipError``; none
    of them is a sync failure.
    """

    def __init__(self, repository: FriendshipRepository):
        self.repository = repository

    async def _between(self, user_a: str, user_b: str) -> Friendship | None:
        return await self.repository.find_between(user_a, user_b)

    async def _require(self, friendship_id: str) -> Friendship:
        friendship = await self.repository.find(friendship_id)
        if friendship is None:
            raise FriendshipNotFoundError(details={"friendship_id": friendship_id})
        return friendship

    async def _save(self, friendship: Friendship) -> Friendship:
        friendship.updated_at = utc_now()
        friendship.sync_status = SyncStatus.PENDING_SYNC
        await self.repository.save(friendship)
        return friendship

    async def send_request(self, from_user: str, to_user: str) -> Friendship:
        """Send a friend request.

        A pending request already sent the other way is accepted instead.
        """
        existing = await self._between(from_user, to_user)
        if existing is None:
            friendship = Friendship(requester_id=from_user, addressee_id=to_user)
            await self.repository.save(friendship)
            logger.info("friend request sent", requester=from_user, addressee=to_user)
            return friendship

        if existing.status == FriendshipStatus.BLOCKED:
            raise BlockedError(details={"user_id": to_user})
        if existing.status == FriendshipStatus.ACCEPTED:
            raise AlreadyFriendsError(details={"user_id": to_user})
        if existing.requester_id == to_user:
            existing.status = FriendshipStatus.ACCEPTED
            logger.info("crossing friend request accepted", friendship_id=existing.id)
            return await self._save(existing)
        raise RequestAlreadySentError(details={"user_id": to_user})

    async def accept(self, friendship_id: str, user_id: str) -> Friendship:
        """Accept a pending request addressed to ``user_id``."""
        friendship = await self._require(friendship_id)
        if friendship.status != FriendshipStatus.PENDING or friendship.addressee_id != user_id:
            raise InvalidFriendshipStateError(
                details={"friendship_id": friendship_id, "status": friendship.status.value}
            )
        friendship.status = FriendshipStatus.ACCEPTED
        return await self._save(friendship)

    async def decline(self, friendship_id: str, user_id: str) -> None:
        """Decline a pending request; the relationship is removed."""
        friendship = await self._require(friendship_id)
        if friendship.status != FriendshipStatus.PENDING or not friendship.involves(user_id):
            raise InvalidFriendshipStateError(
                details={"friendship_id": friendship_id, "status": friendship.status.value}
            )
        await self.repository.delete(friendship)

    async def block(self, blocker: str, blocked: str) -> Friendship:
        """Block a user, replacing any existing relationship.

        The blocker always ends up as the requester.
        """
        existing = await self._between(blocker, blocked)
        if existing is not None and existing.requester_id == blocker:
            existing.status = FriendshipStatus.BLOCKED
            return await self._save(existing)
        if existing is not None:
            await self.repository.delete(existing)
        friendship = Friendship(
            requester_id=blocker, addressee_id=blocked, status=FriendshipStatus.BLOCKED
        )
        await self.repository.save(friendship)
        logger.info("user blocked", blocker=blocker, blocked=blocked)
        return friendship

    async def unblock(self, blocker: str, blocked: str) -> None:
        existing = await self._between(blocker, blocked)
        if (
            existing is None
            or existing.status != FriendshipStatus.BLOCKED
            or existing.requester_id != blocker
        ):
            raise InvalidFriendshipStateError(details={"user_id": blocked})
        await self.repository.delete(existing)

    async def are_friends(self, user_a: str, user_b: str) -> bool:
        existing = await self._between(user_a, user_b)
        return existing is not None and existing.status == FriendshipStatus.ACCEPTED

    async def is_blocked(self, user_a: str, user_b: str) -> bool:
        """True when either user has blocked the other."""
        existing = await self._between(user_a, user_b)
        return existing is not None and existing.status == FriendshipStatus.BLOCKED

    async def friends_of(self, user_id: str) -> list[str]:
        return [
            f.other_user(user_id)
            for f in await self.repository.load_all()
            if f.involves(user_id) and f.status == FriendshipStatus.ACCEPTED
        ]

    async def pending_requests_for(self, user_id: str) -> list[Friendship]:
        return [
            f
            for f in await self.repository.load_all()
            if f.addressee_id == user_id and f.status == FriendshipStatus.PENDING
        ]

    async def update_from_cloud(self, friendships: list[Friendship]) -> int:
        """Apply cloud friendships last-write-wins. Returns how many were saved."""
        saved = 0
        for cloud in friendships:
            local = await self.repository.find(cloud.id)
            if local is not None and local.updated_at >= cloud.updated_at:
                continue
            cloud.sync_status = SyncStatus.SYNCED
            await self.repository.save(cloud)
            saved += 1
        logger.debug("friendships updated from cloud", received=len(friendships), saved=saved)
        return saved
