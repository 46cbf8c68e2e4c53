import json
from typing import AsyncIterable, Optional

import httpx

from laneboard.client.view import BoardView
from laneboard.core.identifiers import parse_dom_id
from laneboard.services.stream_service import SubscriptionState
from laneboard.logs import api_logger


class BoardAgent:
    """
    Keeps one BoardView in sync for one session.

    ``drop`` handles a local drag: the view is reordered at once, the move
    is sent to the endpoint of the destination list and reverted if the
    server rejects it or cannot be reached. Stream frames go through
    ``handle_message`` and are applied to the view as they come.
    """

    def __init__(self, view: BoardView, http: httpx.AsyncClient):
        self.view = view
        self.http = http
        self.state = SubscriptionState.UNSUBSCRIBED
        self.rejection_reason: Optional[str] = None

    # Drag and drop

    async def drop(self, item_id: str, to_container: str, new_index: int) -> bool:
        """Optimistically move ``item_id``; True when the server accepted the move"""
        parsed = parse_dom_id(item_id)
        if parsed is None:
            raise ValueError(f"Not a movable item: {item_id}")
        kind, record_id = parsed

        from_container, old_index = self.view.move(item_id, to_container, new_index)
        endpoint = self.view.endpoints[to_container]
        payload = {f"{kind}_id": record_id, "position": new_index}

        try:
            response = await self.http.patch(endpoint, json=payload)
        except httpx.HTTPError as e:
            api_logger.warning(f"Move of {item_id} failed to reach the server: {str(e)}")
            self.view.move(item_id, from_container, old_index)
            return False

        if not response.is_success:
            api_logger.warning(f"Move of {item_id} rejected with status {response.status_code}")
            self.view.move(item_id, from_container, old_index)
            return False

        return True

    # Board stream

    def subscribe_command(self) -> str:
        """First frame to send once the stream socket is open"""
        self.state = SubscriptionState.PENDING
        return json.dumps({
            "command": "subscribe",
            "data": {"signed_stream_name": self.view.signed_stream_name},
        })

    def handle_message(self, raw: str) -> None:
        message = json.loads(raw)
        event = message.get("event")
        data = message.get("data") or {}

        if event == "confirm_subscription":
            self.state = SubscriptionState.SUBSCRIBED
        elif event == "reject_subscription":
            self.state = SubscriptionState.REJECTED
            self.rejection_reason = data.get("reason")
        elif event == "change":
            if self.state != SubscriptionState.SUBSCRIBED:
                api_logger.warning("Change event received before the subscription was confirmed")
                return
            if data.get("board_id") != self.view.board_id:
                return
            self.view.apply_event(data)

    async def listen(self, messages: AsyncIterable[str]) -> SubscriptionState:
        """Consume stream frames until the source ends or the subscription is rejected"""
        async for raw in messages:
            self.handle_message(raw)
            if self.state == SubscriptionState.REJECTED:
                break
        return self.state
