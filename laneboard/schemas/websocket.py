from pydantic import BaseModel
from typing import Dict, Any, Optional
from enum import Enum


class WebSocketEventType(str, Enum):
    """Types of frames the server sends on the board stream"""
    CONFIRM_SUBSCRIPTION = "confirm_subscription"
    REJECT_SUBSCRIPTION = "reject_subscription"
    CHANGE = "change"
    ERROR = "error"
    PONG = "pong"


class WebSocketMessage(BaseModel):
    """Server to client frame"""
    event: WebSocketEventType
    data: Dict[str, Any] = {}


class WebSocketCommand(BaseModel):
    """Client to server frame: subscribe or ping"""
    command: str
    data: Dict[str, Any] = {}


class ChangeAction(str, Enum):
    """Patch instructions understood by the client view"""
    APPEND = "append"
    REPLACE = "replace"
    REMOVE = "remove"


class ChangeEvent(BaseModel):
    """
    Ephemeral patch describing one board mutation.

    ``target`` is a fragment identifier; ``fragment`` carries the rendered
    data for append/replace and is None for remove.
    """
    board_id: int
    action: ChangeAction
    target: str
    fragment: Optional[Dict[str, Any]] = None
