"""API router - aggregates all route modules."""

from fastapi import APIRouter

from app.routes.api import auth, lock, notebooks, notes, ws

api_router = APIRouter()

api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(notebooks.router, prefix="/notebooks", tags=["notebooks"])
api_router.include_router(notes.router, prefix="/notes", tags=["notes"])
api_router.include_router(lock.router, tags=["lock"])
api_router.include_router(ws.router, tags=["websocket"])
