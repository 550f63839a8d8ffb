"""API v1 router - aggregates all route modules."""

from fastapi import APIRouter

from app.routes.v1 import labels, texts, snapshot

api_router = APIRouter()

api_router.include_router(labels.router, prefix="/labels", tags=["labels"])
api_router.include_router(texts.router, prefix="/texts", tags=["texts"])
api_router.include_router(snapshot.router, prefix="/snapshot", tags=["snapshot"])
