from fastapi import APIRouter
from laneboard.api.v1.auth import router as auth_router
from laneboard.api.v1.boards import router as boards_router
from laneboard.api.v1.memberships import router as memberships_router
from laneboard.api.v1.swimlanes import router as swimlanes_router
from laneboard.api.v1.cards import router as cards_router
from laneboard.api.v1.labels import router as labels_router
from laneboard.api.v1.websockets import router as websocket_router

# Create main API router
api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(auth_router)
api_router.include_router(boards_router)
api_router.include_router(memberships_router)
api_router.include_router(swimlanes_router)
api_router.include_router(cards_router)
api_router.include_router(labels_router)
api_router.include_router(websocket_router)
