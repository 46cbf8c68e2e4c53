"""
Rendering of board entities into fragments carried by change events.

A fragment is a JSON-ready dict whose ``id`` is the fragment identifier
of the node it describes. List fragments carry their items, in order,
under ``children``.
"""
from typing import Any, Dict, Iterable, List

from laneboard.core.identifiers import SWIMLANES_CONTAINER, cards_container_id, dom_id
from laneboard.models.card import Card
from laneboard.models.swimlane import Swimlane

Fragment = Dict[str, Any]


def render_card(card: Card) -> Fragment:
    # labels must already be loaded
    return {
        "id": dom_id(card),
        "card_id": card.id,
        "swimlane_id": card.swimlane_id,
        "name": card.name,
        "description": card.description,
        "due_date": card.due_date.isoformat() if card.due_date else None,
        "position": card.position,
        "labels": [label.color for label in card.labels],
    }


def render_swimlane_header(swimlane: Swimlane) -> Fragment:
    return {
        "id": dom_id(swimlane, prefix="header"),
        "swimlane_id": swimlane.id,
        "name": swimlane.name,
    }


def render_swimlane(swimlane: Swimlane, cards: Iterable[Card] = ()) -> Fragment:
    """Full swimlane, including the (possibly empty) list of its cards"""
    return {
        "id": dom_id(swimlane),
        "swimlane_id": swimlane.id,
        "name": swimlane.name,
        "position": swimlane.position,
        "container": cards_container_id(swimlane.id),
        "cards": [render_card(card) for card in cards],
    }


def render_card_list(swimlane_id: int, cards: Iterable[Card]) -> Fragment:
    return {
        "id": cards_container_id(swimlane_id),
        "children": [render_card(card) for card in cards],
    }


def render_swimlane_list(swimlanes: Iterable[Swimlane]) -> Fragment:
    """Board's swimlane order; cards are not repeated"""
    children: List[Fragment] = []
    for swimlane in swimlanes:
        children.append({
            "id": dom_id(swimlane),
            "swimlane_id": swimlane.id,
            "name": swimlane.name,
            "position": swimlane.position,
        })
    return {"id": SWIMLANES_CONTAINER, "children": children}
