from typing import Iterable

from laneboard.core.identifiers import SWIMLANES_CONTAINER, cards_container_id, dom_id
from laneboard.models.card import Card
from laneboard.models.swimlane import Swimlane
from laneboard.schemas.websocket import ChangeAction, ChangeEvent, WebSocketEventType, WebSocketMessage
from laneboard.services import fragments
from laneboard.services.stream_service import BoardStreamRegistry, StreamTokenService
from laneboard.logs import api_logger


class BoardBroadcaster:
    """
    Publishes change events to board streams.

    Publishing never waits for delivery and never raises: the mutation it
    reports is already committed, so a failed fan-out is only logged.
    """

    def __init__(self, registry: BoardStreamRegistry):
        self.registry = registry

    def publish(self, event: ChangeEvent) -> int:
        """Serialize the event and hand it to the board's listeners"""
        stream_name = StreamTokenService.stream_name(event.board_id)
        try:
            message = WebSocketMessage(
                event=WebSocketEventType.CHANGE,
                data=event.model_dump(mode="json")
            ).model_dump_json()
            delivered = self.registry.broadcast(stream_name, message)
        except Exception as e:
            api_logger.error(f"Stream: failed to publish {event.action.value} {event.target} on board {event.board_id}: {str(e)}")
            return 0

        api_logger.info(
            f"Stream: published {event.action.value} {event.target} on board {event.board_id} to {delivered} listeners"
        )
        return delivered

    def _emit(self, board_id: int, action: ChangeAction, target: str, fragment=None) -> ChangeEvent:
        event = ChangeEvent(board_id=board_id, action=action, target=target, fragment=fragment)
        self.publish(event)
        return event

    # Swimlanes

    def swimlane_created(self, board_id: int, swimlane: Swimlane) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.APPEND, SWIMLANES_CONTAINER, fragments.render_swimlane(swimlane))

    def swimlane_updated(self, board_id: int, swimlane: Swimlane) -> ChangeEvent:
        fragment = fragments.render_swimlane_header(swimlane)
        return self._emit(board_id, ChangeAction.REPLACE, fragment["id"], fragment)

    def swimlanes_reordered(self, board_id: int, swimlanes: Iterable[Swimlane]) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.REPLACE, SWIMLANES_CONTAINER, fragments.render_swimlane_list(swimlanes))

    def swimlane_deleted(self, board_id: int, swimlane_id: int) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.REMOVE, dom_id("swimlane", swimlane_id))

    # Cards

    def card_created(self, board_id: int, card: Card) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.APPEND, cards_container_id(card.swimlane_id), fragments.render_card(card))

    def card_updated(self, board_id: int, card: Card) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.REPLACE, dom_id(card), fragments.render_card(card))

    def cards_reordered(self, board_id: int, swimlane_id: int, cards: Iterable[Card]) -> ChangeEvent:
        return self._emit(
            board_id,
            ChangeAction.REPLACE,
            cards_container_id(swimlane_id),
            fragments.render_card_list(swimlane_id, cards)
        )

    def card_deleted(self, board_id: int, card_id: int) -> ChangeEvent:
        return self._emit(board_id, ChangeAction.REMOVE, dom_id("card", card_id))
