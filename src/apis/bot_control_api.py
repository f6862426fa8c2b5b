from fastapi import APIRouter

# Utils
from utils.log_utils import LogUtil

# Services
from services.bot_control_service import BotControlService

# Models
from models.request.bot_control_request import BotToggleRequest, ConversationModeRequest


def create_bot_control_api(
    log_util: LogUtil,
    bot_control_service: BotControlService
) -> APIRouter:
    """
    Create API router for pausing the bot globally or per conversation.
    """
    router = APIRouter(
        prefix="/bot",
        tags=["bot"],
    )

    @router.get("/status")
    async def get_bot_status():
        return {
            "bot_enabled": bot_control_service.is_enabled(),
            "states": bot_control_service.get_states()
        }

    @router.post("/toggle")
    async def toggle_bot(request: BotToggleRequest):
        return {
            "success": True,
            "bot_enabled": bot_control_service.set_enabled(request.enabled)
        }

    @router.post("/conversation/{user_id}/mode")
    async def set_conversation_mode(user_id: str, request: ConversationModeRequest):
        if request.mode == "manual":
            bot_control_service.enter_manual_mode(user_id)
        else:
            bot_control_service.exit_manual_mode(user_id)

        return {
            "success": True,
            "user_id": user_id,
            "mode": request.mode,
            "is_manual_mode": bot_control_service.is_manual_mode(user_id)
        }

    @router.post("/conversation/{user_id}/toggle")
    async def toggle_conversation(user_id: str, request: BotToggleRequest):
        if request.enabled:
            bot_control_service.enable_conversation(user_id)
        else:
            bot_control_service.disable_conversation(user_id)

        return {
            "success": True,
            "user_id": user_id,
            "enabled": request.enabled
        }

    return router
