import asyncio
import enum
from typing import Any, Dict, Optional, Set
from jose import jwt, JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from laneboard.core import get_settings
from laneboard.core.identifiers import parse_global_id, to_global_id
from laneboard.models.board import Board
from laneboard.models.user import User
from laneboard.services.access_service import AccessService
from laneboard.logs import api_logger

# Get application settings
settings = get_settings()


class StreamTokenService:
    """Signed, tamper-evident names of board streams"""

    TOKEN_TYPE = "stream"

    @staticmethod
    def stream_name(board_id: int) -> str:
        """Topic of a board: its global identifier"""
        return to_global_id(settings.GLOBAL_ID_APP, "Board", board_id)

    @staticmethod
    def sign(board_id: int) -> str:
        """Token handed to the client together with the board"""
        payload = {"sub": StreamTokenService.stream_name(board_id), "type": StreamTokenService.TOKEN_TYPE}
        return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def verify(signed_stream_name: Any) -> Optional[str]:
        """Stream name carried by a valid token, None if the token was tampered with"""
        if not signed_stream_name or not isinstance(signed_stream_name, str):
            return None
        try:
            payload = jwt.decode(signed_stream_name, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != StreamTokenService.TOKEN_TYPE:
            return None
        return payload.get("sub")

    @staticmethod
    async def locate_board(db: AsyncSession, stream_name: str) -> Optional[Board]:
        """Resolve a stream name to the board it names"""
        parsed = parse_global_id(stream_name, settings.GLOBAL_ID_APP)
        if parsed is None:
            return None
        model_name, record_id = parsed
        if model_name != "Board":
            return None
        return await db.get(Board, record_id)


class SubscriptionState(str, enum.Enum):
    UNSUBSCRIBED = "unsubscribed"
    PENDING = "pending"
    SUBSCRIBED = "subscribed"
    REJECTED = "rejected"


class InvalidTransition(RuntimeError):
    pass


class StreamSubscription:
    """
    One connection's subscription to a board stream.

    State machine: UNSUBSCRIBED -> PENDING -> SUBSCRIBED | REJECTED.
    Both outcomes are terminal; a reconnect uses a new subscription.
    Outgoing frames are buffered in a bounded queue drained by the
    connection's sender task; a full queue drops the frame.
    """

    def __init__(self, user_id: Optional[int] = None, queue_size: Optional[int] = None):
        self.user_id = user_id
        self.state = SubscriptionState.UNSUBSCRIBED
        self.stream_name: Optional[str] = None
        self.board_id: Optional[int] = None
        self.rejection_reason: Optional[str] = None
        self.dropped = 0
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size or settings.STREAM_QUEUE_SIZE)

    def _transition(self, expected: SubscriptionState, new_state: SubscriptionState) -> None:
        if self.state != expected:
            raise InvalidTransition(f"Cannot move subscription from {self.state.value} to {new_state.value}")
        self.state = new_state

    def begin(self) -> None:
        self._transition(SubscriptionState.UNSUBSCRIBED, SubscriptionState.PENDING)

    def confirm(self, stream_name: str, board_id: int) -> None:
        self._transition(SubscriptionState.PENDING, SubscriptionState.SUBSCRIBED)
        self.stream_name = stream_name
        self.board_id = board_id

    def reject(self, reason: str) -> None:
        self._transition(SubscriptionState.PENDING, SubscriptionState.REJECTED)
        self.rejection_reason = reason

    @property
    def is_subscribed(self) -> bool:
        return self.state == SubscriptionState.SUBSCRIBED

    def deliver(self, message: str) -> bool:
        """Queue a frame without waiting; False when it had to be dropped"""
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def next_message(self) -> str:
        return await self.queue.get()


class BoardStreamRegistry:
    """Stream name -> active subscriptions; entries live while they have subscribers"""

    def __init__(self):
        self._streams: Dict[str, Set[StreamSubscription]] = {}

    def add(self, subscription: StreamSubscription) -> None:
        if not subscription.is_subscribed:
            raise InvalidTransition("Only confirmed subscriptions can listen to a stream")
        self._streams.setdefault(subscription.stream_name, set()).add(subscription)
        api_logger.info(
            f"Stream: user {subscription.user_id} subscribed to {subscription.stream_name} "
            f"({len(self._streams[subscription.stream_name])} listeners)"
        )

    def remove(self, subscription: StreamSubscription) -> None:
        listeners = self._streams.get(subscription.stream_name)
        if not listeners or subscription not in listeners:
            return
        listeners.discard(subscription)
        if not listeners:
            del self._streams[subscription.stream_name]
        api_logger.info(f"Stream: user {subscription.user_id} left {subscription.stream_name}")

    def subscriber_count(self, stream_name: str) -> int:
        return len(self._streams.get(stream_name, ()))

    def has_stream(self, stream_name: str) -> bool:
        return stream_name in self._streams

    def broadcast(self, stream_name: str, message: str) -> int:
        """Hand a frame to every listener of the stream; returns how many accepted it"""
        listeners = self._streams.get(stream_name)
        if not listeners:
            return 0

        delivered = 0
        for subscription in list(listeners):
            if subscription.deliver(message):
                delivered += 1
            else:
                api_logger.warning(
                    f"Stream: queue full for user {subscription.user_id} on {stream_name}, frame dropped"
                )
        return delivered


class BoardChannel:
    """Subscribe-time authorization for board streams"""

    @staticmethod
    async def subscribe(
        db: AsyncSession,
        registry: BoardStreamRegistry,
        subscription: StreamSubscription,
        user: Optional[User],
        signed_stream_name: Any
    ) -> bool:
        """
        Run the handshake checks and register the subscription.

        Rejects unauthenticated connections, tampered tokens, tokens that do
        not name an existing board, and users without a membership on it.
        """
        subscription.begin()

        if user is None:
            subscription.reject("unauthenticated")
            api_logger.warning("Stream: rejected unauthenticated subscription")
            return False
        subscription.user_id = user.id

        stream_name = StreamTokenService.verify(signed_stream_name)
        if stream_name is None:
            subscription.reject("invalid signature")
            api_logger.warning(f"Stream: rejected tampered stream token from user {user.id}")
            return False

        board = await StreamTokenService.locate_board(db, stream_name)
        if board is None:
            subscription.reject("unknown board")
            api_logger.warning(f"Stream: {stream_name} does not resolve to a board (user {user.id})")
            return False

        role = await AccessService.get_user_role(db, board.id, user.id)
        if role is None:
            subscription.reject("not a member")
            api_logger.warning(f"Stream: user {user.id} is not a member of board {board.id}")
            return False

        subscription.confirm(stream_name, board.id)
        registry.add(subscription)
        return True
