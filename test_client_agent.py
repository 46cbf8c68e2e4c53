import json

import httpx
import pytest

from laneboard.client import BoardAgent, BoardView
from laneboard.services.stream_service import SubscriptionState

BOARD_PAYLOAD = {
    "id": 1,
    "name": "Roadmap",
    "signed_stream_name": "signed-token",
    "swimlanes": [
        {
            "id": 10, "name": "Todo", "position": 0, "board_id": 1,
            "cards": [
                {"id": 100, "swimlane_id": 10, "name": "A", "position": 0, "labels": [{"id": 1, "color": "red"}]},
                {"id": 101, "swimlane_id": 10, "name": "B", "position": 1, "labels": []},
                {"id": 102, "swimlane_id": 10, "name": "C", "position": 2, "labels": []},
            ],
        },
        {"id": 11, "name": "Done", "position": 1, "board_id": 1, "cards": []},
    ],
}


def make_agent(handler):
    view = BoardView.from_payload(BOARD_PAYLOAD)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test")
    return BoardAgent(view, http)


def change(action, target, fragment=None, board_id=1):
    return json.dumps({
        "event": "change",
        "data": {"board_id": board_id, "action": action, "target": target, "fragment": fragment},
    })


def subscribed(agent):
    agent.subscribe_command()
    agent.handle_message(json.dumps({"event": "confirm_subscription", "data": {"board_id": 1}}))
    return agent


class TestBoardView:
    """Локальная модель доски"""

    def test_built_from_payload(self):
        view = BoardView.from_payload(BOARD_PAYLOAD)

        assert view.order("swimlanes") == ["swimlane_10", "swimlane_11"]
        assert view.order("cards_in_swimlane_10") == ["card_100", "card_101", "card_102"]
        assert view.order("cards_in_swimlane_11") == []
        assert view.fragments["card_100"]["labels"] == ["red"]
        assert view.fragments["header_swimlane_10"]["name"] == "Todo"
        assert view.endpoints["cards_in_swimlane_11"] == "/api/v1/boards/1/swimlanes/11/cards/reorder"
        assert view.endpoints["swimlanes"] == "/api/v1/boards/1/swimlanes/reorder"

    def test_local_move_is_clamped(self):
        view = BoardView.from_payload(BOARD_PAYLOAD)

        origin = view.move("card_100", "cards_in_swimlane_11", 9)

        assert origin == ("cards_in_swimlane_10", 0)
        assert view.order("cards_in_swimlane_11") == ["card_100"]
        assert view.order("cards_in_swimlane_10") == ["card_101", "card_102"]

    def test_move_unknown_item(self):
        view = BoardView.from_payload(BOARD_PAYLOAD)
        with pytest.raises(KeyError):
            view.move("card_999", "cards_in_swimlane_10", 0)


class TestDrop:
    """Оптимистичное перемещение и откат"""

    @pytest.mark.asyncio
    async def test_success_keeps_optimistic_order(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"card_id": 102, "swimlane_id": 10, "position": 0})

        agent = make_agent(handler)

        assert await agent.drop("card_102", "cards_in_swimlane_10", 0) is True
        assert agent.view.order("cards_in_swimlane_10") == ["card_102", "card_100", "card_101"]

        request = requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/api/v1/boards/1/swimlanes/10/cards/reorder"
        assert json.loads(request.content) == {"card_id": 102, "position": 0}

    @pytest.mark.asyncio
    async def test_request_goes_to_destination_endpoint(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={})

        agent = make_agent(handler)
        await agent.drop("card_101", "cards_in_swimlane_11", 0)

        assert requests[0].url.path == "/api/v1/boards/1/swimlanes/11/cards/reorder"

    @pytest.mark.asyncio
    async def test_swimlane_drop_sends_swimlane_id(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={})

        agent = make_agent(handler)
        await agent.drop("swimlane_11", "swimlanes", 0)

        assert json.loads(requests[0].content) == {"swimlane_id": 11, "position": 0}
        assert agent.view.order("swimlanes") == ["swimlane_11", "swimlane_10"]

    @pytest.mark.asyncio
    async def test_rejection_reverts(self):
        agent = make_agent(lambda request: httpx.Response(404, json={"detail": "Card not found"}))

        assert await agent.drop("card_100", "cards_in_swimlane_11", 0) is False
        assert agent.view.order("cards_in_swimlane_10") == ["card_100", "card_101", "card_102"]
        assert agent.view.order("cards_in_swimlane_11") == []

    @pytest.mark.asyncio
    async def test_transport_error_reverts(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        agent = make_agent(handler)

        assert await agent.drop("card_101", "cards_in_swimlane_10", 2) is False
        assert agent.view.order("cards_in_swimlane_10") == ["card_100", "card_101", "card_102"]

    @pytest.mark.asyncio
    async def test_container_is_not_draggable(self):
        agent = make_agent(lambda request: httpx.Response(200))
        with pytest.raises(ValueError):
            await agent.drop("cards_in_swimlane_10", "swimlanes", 0)


class TestStreamMessages:
    """Применение событий из потока"""

    def test_subscription_states(self):
        agent = make_agent(lambda request: httpx.Response(200))

        command = json.loads(agent.subscribe_command())
        assert command == {"command": "subscribe", "data": {"signed_stream_name": "signed-token"}}
        assert agent.state == SubscriptionState.PENDING

        agent.handle_message(json.dumps({"event": "reject_subscription", "data": {"reason": "not a member"}}))
        assert agent.state == SubscriptionState.REJECTED
        assert agent.rejection_reason == "not a member"

    def test_changes_before_confirmation_are_ignored(self):
        agent = make_agent(lambda request: httpx.Response(200))
        agent.subscribe_command()

        agent.handle_message(change("remove", "card_100"))

        assert "card_100" in agent.view.order("cards_in_swimlane_10")

    def test_append_card(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("append", "cards_in_swimlane_11", {
            "id": "card_103", "card_id": 103, "swimlane_id": 11, "name": "D", "position": 0, "labels": [],
        }))

        assert agent.view.order("cards_in_swimlane_11") == ["card_103"]
        assert agent.view.fragments["card_103"]["name"] == "D"

    def test_append_swimlane_creates_its_card_list(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("append", "swimlanes", {
            "id": "swimlane_12", "swimlane_id": 12, "name": "Review", "position": 2,
            "container": "cards_in_swimlane_12", "cards": [],
        }))

        assert agent.view.order("swimlanes") == ["swimlane_10", "swimlane_11", "swimlane_12"]
        assert agent.view.order("cards_in_swimlane_12") == []
        assert agent.view.endpoints["cards_in_swimlane_12"].endswith("/swimlanes/12/cards/reorder")

    def test_replace_card_list_adopts_moved_card(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("replace", "cards_in_swimlane_11", {
            "id": "cards_in_swimlane_11",
            "children": [{"id": "card_101", "card_id": 101, "swimlane_id": 11, "name": "B", "position": 0}],
        }))

        assert agent.view.order("cards_in_swimlane_11") == ["card_101"]
        assert agent.view.order("cards_in_swimlane_10") == ["card_100", "card_102"]
        assert agent.view.fragments["card_101"]["swimlane_id"] == 11

    def test_replace_swimlane_order_keeps_card_lists(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("replace", "swimlanes", {
            "id": "swimlanes",
            "children": [
                {"id": "swimlane_11", "swimlane_id": 11, "name": "Done", "position": 0},
                {"id": "swimlane_10", "swimlane_id": 10, "name": "Todo", "position": 1},
            ],
        }))

        assert agent.view.order("swimlanes") == ["swimlane_11", "swimlane_10"]
        assert agent.view.fragments["swimlane_10"]["container"] == "cards_in_swimlane_10"
        assert agent.view.order("cards_in_swimlane_10") == ["card_100", "card_101", "card_102"]

    def test_replace_header(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("replace", "header_swimlane_10", {
            "id": "header_swimlane_10", "swimlane_id": 10, "name": "Backlog",
        }))

        assert agent.view.fragments["header_swimlane_10"]["name"] == "Backlog"

    def test_remove_card_and_swimlane(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("remove", "card_101"))
        assert agent.view.order("cards_in_swimlane_10") == ["card_100", "card_102"]

        agent.handle_message(change("remove", "swimlane_10"))
        assert agent.view.order("swimlanes") == ["swimlane_11"]
        assert "cards_in_swimlane_10" not in agent.view.containers
        assert "card_100" not in agent.view.fragments

    def test_events_for_other_board_are_ignored(self):
        agent = subscribed(make_agent(lambda request: httpx.Response(200)))

        agent.handle_message(change("remove", "card_100", board_id=2))

        assert "card_100" in agent.view.fragments

    @pytest.mark.asyncio
    async def test_listen_stops_on_rejection(self):
        agent = make_agent(lambda request: httpx.Response(200))
        agent.subscribe_command()

        async def frames():
            yield json.dumps({"event": "reject_subscription", "data": {"reason": "invalid signature"}})
            yield change("remove", "card_100")

        state = await agent.listen(frames())

        assert state == SubscriptionState.REJECTED
        assert "card_100" in agent.view.fragments
