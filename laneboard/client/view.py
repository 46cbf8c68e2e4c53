"""
Local model of a rendered board.

The view mirrors what a browser tab shows: ordered containers of fragment
identifiers (the board's swimlane list and one card list per swimlane),
the data of each fragment, and the move endpoint every container carries.
Drag logic and change events both operate on this model.
"""
from typing import Any, Dict, List, Optional, Tuple

from laneboard.core.identifiers import SWIMLANES_CONTAINER, cards_container_id, dom_id
from laneboard.logs import debug_logger

API_PREFIX = "/api/v1"


class BoardView:
    def __init__(self, board_id: int, signed_stream_name: Optional[str] = None):
        self.board_id = board_id
        self.signed_stream_name = signed_stream_name
        self.containers: Dict[str, List[str]] = {SWIMLANES_CONTAINER: []}
        self.fragments: Dict[str, Dict[str, Any]] = {}
        self.endpoints: Dict[str, str] = {
            SWIMLANES_CONTAINER: f"{API_PREFIX}/boards/{board_id}/swimlanes/reorder"
        }

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "BoardView":
        """Build the view from the board detail response"""
        view = cls(payload["id"], payload.get("signed_stream_name"))
        swimlanes = sorted(payload.get("swimlanes", []), key=lambda item: item["position"])
        for swimlane in swimlanes:
            view._add_swimlane({
                "id": dom_id("swimlane", swimlane["id"]),
                "swimlane_id": swimlane["id"],
                "name": swimlane["name"],
                "position": swimlane["position"],
                "container": cards_container_id(swimlane["id"]),
                "cards": [
                    {
                        "id": dom_id("card", card["id"]),
                        "card_id": card["id"],
                        "swimlane_id": card["swimlane_id"],
                        "name": card["name"],
                        "description": card.get("description"),
                        "due_date": card.get("due_date"),
                        "position": card["position"],
                        "labels": [label["color"] for label in card.get("labels", [])],
                    }
                    for card in sorted(swimlane.get("cards", []), key=lambda item: item["position"])
                ],
            })
        return view

    def _add_swimlane(self, fragment: Dict[str, Any]) -> None:
        swimlane_id = fragment["swimlane_id"]
        container = fragment.get("container") or cards_container_id(swimlane_id)
        cards = fragment.get("cards", [])

        self.fragments[fragment["id"]] = {key: value for key, value in fragment.items() if key != "cards"}
        self.fragments[dom_id("swimlane", swimlane_id, "header")] = {
            "id": dom_id("swimlane", swimlane_id, "header"),
            "swimlane_id": swimlane_id,
            "name": fragment["name"],
        }
        self._detach(fragment["id"])
        self.containers[SWIMLANES_CONTAINER].append(fragment["id"])

        self.containers[container] = []
        self.endpoints[container] = f"{API_PREFIX}/boards/{self.board_id}/swimlanes/{swimlane_id}/cards/reorder"
        for card in cards:
            self.fragments[card["id"]] = dict(card)
            self.containers[container].append(card["id"])

    # Queries

    def order(self, container: str) -> List[str]:
        return list(self.containers.get(container, []))

    def locate(self, item_id: str) -> Optional[Tuple[str, int]]:
        """Container and index of an item, None when it is not shown"""
        for container, items in self.containers.items():
            if item_id in items:
                return container, items.index(item_id)
        return None

    def _detach(self, item_id: str) -> None:
        located = self.locate(item_id)
        if located is not None:
            self.containers[located[0]].remove(item_id)

    # Local moves

    def move(self, item_id: str, to_container: str, index: int) -> Tuple[str, int]:
        """
        Move an item as a drop would: out of its list and into ``to_container``
        at ``index`` (clamped). Returns where the item was before.
        """
        located = self.locate(item_id)
        if located is None:
            raise KeyError(item_id)
        if to_container not in self.containers:
            raise KeyError(to_container)

        from_container, old_index = located
        self.containers[from_container].remove(item_id)
        items = self.containers[to_container]
        items.insert(max(0, min(index, len(items))), item_id)
        return from_container, old_index

    # Change events

    def apply_event(self, event: Dict[str, Any]) -> bool:
        """Apply one change event verbatim; False when its target is not shown"""
        action = event["action"]
        target = event["target"]
        fragment = event.get("fragment") or {}

        if action == "append":
            return self._append(target, fragment)
        if action == "replace":
            return self._replace(target, fragment)
        if action == "remove":
            return self._remove(target)

        debug_logger.warning(f"Неизвестное действие события: {action}")
        return False

    def _append(self, target: str, fragment: Dict[str, Any]) -> bool:
        if target not in self.containers:
            debug_logger.warning(f"Контейнер {target} не найден, событие пропущено")
            return False

        if target == SWIMLANES_CONTAINER:
            self._add_swimlane(fragment)
        else:
            self._detach(fragment["id"])
            self.fragments[fragment["id"]] = dict(fragment)
            self.containers[target].append(fragment["id"])
        return True

    def _replace(self, target: str, fragment: Dict[str, Any]) -> bool:
        if target in self.containers:
            children = fragment.get("children", [])
            order = []
            for child in children:
                # A list replace also adopts items still shown in another list
                if child["id"] not in self.containers[target]:
                    self._detach(child["id"])
                self.fragments.setdefault(child["id"], {}).update(child)
                order.append(child["id"])
            self.containers[target] = order
            return True

        if target in self.fragments:
            self.fragments[target] = dict(fragment)
            return True

        debug_logger.warning(f"Фрагмент {target} не найден, событие пропущено")
        return False

    def _remove(self, target: str) -> bool:
        if target not in self.fragments:
            return False

        fragment = self.fragments.pop(target)
        self._detach(target)

        container = fragment.get("container")
        if container:
            for card_id in self.containers.pop(container, []):
                self.fragments.pop(card_id, None)
            self.endpoints.pop(container, None)
            self.fragments.pop(dom_id("swimlane", fragment["swimlane_id"], "header"), None)
        return True
