"""API router configuration."""

from fastapi import APIRouter

from crm_assistant.api.endpoints import chat, health

# Main API router
api_router = APIRouter(prefix="/api")
api_router.include_router(chat.router)

# Health router at root level
health_router = health.router
