import pytest
import pytest_asyncio

from laneboard.services.board_service import BoardService
from laneboard.services.swimlane_service import SwimlaneService
from conftest import auth_headers


def cards_url(board_id, swimlane_id):
    return f"/api/v1/boards/{board_id}/swimlanes/{swimlane_id}/cards"


@pytest_asyncio.fixture
async def lanes(db_session, broadcaster, board):
    todo = await SwimlaneService.create(db_session, broadcaster, board.id, "Todo")
    done = await SwimlaneService.create(db_session, broadcaster, board.id, "Done")
    return todo, done


async def create_card(client, board, lane, owner, name, **fields):
    response = await client.post(
        cards_url(board.id, lane.id),
        json={"name": name, **fields},
        headers=auth_headers(owner)
    )
    assert response.status_code == 201
    return response.json()


class TestCardEndpoints:
    """Интеграционные тесты эндпоинтов карточек"""

    @pytest.mark.asyncio
    async def test_create_with_labels_and_due_date(self, client, board, lanes, owner):
        todo, _ = lanes
        labels = (await client.get("/api/v1/labels", headers=auth_headers(owner))).json()["labels"]
        red = next(label for label in labels if label["color"] == "red")

        card = await create_card(
            client, board, todo, owner, "Write docs",
            description="Public API", due_date="2026-11-01", label_ids=[red["id"]]
        )

        assert card["position"] == 0
        assert card["due_date"] == "2026-11-01"
        assert [label["color"] for label in card["labels"]] == ["red"]

    @pytest.mark.asyncio
    async def test_label_palette(self, client, owner):
        response = await client.get("/api/v1/labels", headers=auth_headers(owner))
        colors = {label["color"] for label in response.json()["labels"]}
        assert colors == {"red", "yellow", "green", "blue", "purple"}

    @pytest.mark.asyncio
    async def test_unknown_label_is_not_found(self, client, board, lanes, owner):
        todo, _ = lanes
        response = await client.post(
            cards_url(board.id, todo.id),
            json={"name": "Card", "label_ids": [12345]},
            headers=auth_headers(owner)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_blank_name_is_rejected(self, client, board, lanes, owner):
        todo, _ = lanes
        response = await client.post(cards_url(board.id, todo.id), json={"name": ""}, headers=auth_headers(owner))
        assert response.status_code == 422

        update = await create_card(client, board, todo, owner, "Valid")
        response = await client.put(
            f"{cards_url(board.id, todo.id)}/{update['id']}",
            json={"name": "  "},
            headers=auth_headers(owner)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, client, board, lanes, owner):
        todo, _ = lanes
        card = await create_card(client, board, todo, owner, "Draft", description="Keep me")

        response = await client.put(
            f"{cards_url(board.id, todo.id)}/{card['id']}",
            json={"name": "Final"},
            headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Final"
        assert response.json()["description"] == "Keep me"

    @pytest.mark.asyncio
    async def test_move_within_swimlane(self, client, board, lanes, owner):
        todo, _ = lanes
        a = await create_card(client, board, todo, owner, "A")
        b = await create_card(client, board, todo, owner, "B")
        c = await create_card(client, board, todo, owner, "C")

        response = await client.patch(
            f"{cards_url(board.id, todo.id)}/reorder",
            json={"card_id": c["id"], "position": 0},
            headers=auth_headers(owner)
        )

        assert response.status_code == 200
        listing = (await client.get(cards_url(board.id, todo.id), headers=auth_headers(owner))).json()["cards"]
        assert [(card["id"], card["position"]) for card in listing] == [(c["id"], 0), (a["id"], 1), (b["id"], 2)]

    @pytest.mark.asyncio
    async def test_move_to_other_swimlane(self, client, board, lanes, owner):
        todo, done = lanes
        a = await create_card(client, board, todo, owner, "A")
        b = await create_card(client, board, todo, owner, "B")

        response = await client.patch(
            f"{cards_url(board.id, done.id)}/reorder",
            json={"card_id": a["id"], "position": 5},
            headers=auth_headers(owner)
        )

        assert response.status_code == 200
        assert response.json() == {"card_id": a["id"], "swimlane_id": done.id, "position": 0}

        todo_cards = (await client.get(cards_url(board.id, todo.id), headers=auth_headers(owner))).json()["cards"]
        done_cards = (await client.get(cards_url(board.id, done.id), headers=auth_headers(owner))).json()["cards"]
        assert [(card["id"], card["position"]) for card in todo_cards] == [(b["id"], 0)]
        assert [(card["id"], card["swimlane_id"]) for card in done_cards] == [(a["id"], done.id)]

    @pytest.mark.asyncio
    async def test_move_card_of_other_board_is_not_found(self, client, db_session, broadcaster, board, lanes, owner):
        todo, _ = lanes
        other = await BoardService.create(db_session, "Other", owner)
        other_lane = await SwimlaneService.create(db_session, broadcaster, other.id, "Elsewhere")
        foreign = await create_card(client, other, other_lane, owner, "Foreign")

        response = await client.patch(
            f"{cards_url(board.id, todo.id)}/reorder",
            json={"card_id": foreign["id"], "position": 0},
            headers=auth_headers(owner)
        )

        assert response.status_code == 404
        listing = (await client.get(cards_url(other.id, other_lane.id), headers=auth_headers(owner))).json()["cards"]
        assert [card["id"] for card in listing] == [foreign["id"]]

    @pytest.mark.asyncio
    async def test_outsider_cannot_move(self, client, board, lanes, owner, outsider):
        todo, _ = lanes
        card = await create_card(client, board, todo, owner, "A")

        response = await client.patch(
            f"{cards_url(board.id, todo.id)}/reorder",
            json={"card_id": card["id"], "position": 0},
            headers=auth_headers(outsider)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_card_in_other_swimlane_url_is_not_found(self, client, board, lanes, owner):
        todo, done = lanes
        card = await create_card(client, board, todo, owner, "A")

        response = await client.get(f"{cards_url(board.id, done.id)}/{card['id']}", headers=auth_headers(owner))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_closes_gap(self, client, board, lanes, owner):
        todo, _ = lanes
        a = await create_card(client, board, todo, owner, "A")
        b = await create_card(client, board, todo, owner, "B")
        c = await create_card(client, board, todo, owner, "C")

        response = await client.delete(f"{cards_url(board.id, todo.id)}/{b['id']}", headers=auth_headers(owner))

        assert response.status_code == 204
        listing = (await client.get(cards_url(board.id, todo.id), headers=auth_headers(owner))).json()["cards"]
        assert [(card["id"], card["position"]) for card in listing] == [(a["id"], 0), (c["id"], 1)]
