"""
Identifiers shared by the server and the client agent.

Fragment identifiers name the nodes that change events target. Both sides
derive them from the entity kind and id, so these helpers are the single
source of truth for the format.

Global identifiers name a board as a stream topic:
``gid://<app>/Board/<id>``.
"""
from typing import Optional, Tuple, Union

SWIMLANES_CONTAINER = "swimlanes"

_KINDS = {
    "Board": "board",
    "Swimlane": "swimlane",
    "Card": "card",
    "BoardMembership": "board_membership",
}


def record_kind(record) -> str:
    """snake_case kind of a model instance (``Card`` -> ``card``)"""
    class_name = type(record).__name__
    return _KINDS.get(class_name, class_name.lower())


def dom_id(record_or_kind: Union[object, str], record_id: Optional[int] = None, prefix: Optional[str] = None) -> str:
    """
    Build a fragment identifier.

    Accepts either a model instance or an explicit kind and id:

        dom_id(card)                      -> "card_12"
        dom_id("swimlane", 3, "header")   -> "header_swimlane_3"
    """
    if isinstance(record_or_kind, str):
        kind = record_or_kind
    else:
        kind = record_kind(record_or_kind)
        record_id = record_or_kind.id

    identifier = f"{kind}_{record_id}"
    if prefix:
        identifier = f"{prefix}_{identifier}"
    return identifier


def cards_container_id(swimlane_id: int) -> str:
    """Identifier of the list holding a swimlane's cards"""
    return f"cards_in_swimlane_{swimlane_id}"


def parse_dom_id(identifier: str) -> Optional[Tuple[str, int]]:
    """
    Split ``card_12`` into ``("card", 12)``.

    Prefixed or container identifiers are not entities and yield None.
    """
    kind, _, raw_id = identifier.rpartition("_")
    if kind not in _KINDS.values() or not raw_id.isdigit():
        return None
    return kind, int(raw_id)


def to_global_id(app: str, model_name: str, record_id: int) -> str:
    return f"gid://{app}/{model_name}/{record_id}"


def parse_global_id(global_id: str, app: str) -> Optional[Tuple[str, int]]:
    """Parse ``gid://app/Model/id``; None when malformed or for another app"""
    prefix = f"gid://{app}/"
    if not global_id or not global_id.startswith(prefix):
        return None

    parts = global_id[len(prefix):].split("/")
    if len(parts) != 2 or not parts[0] or not parts[1].isdigit():
        return None
    return parts[0], int(parts[1])
