from fastapi import Request

from laneboard.services.broadcast_service import BoardBroadcaster


def get_broadcaster(request: Request) -> BoardBroadcaster:
    """Broadcaster bound to the application's stream registry"""
    return request.app.state.broadcaster
