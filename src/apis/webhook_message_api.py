from fastapi import APIRouter
from typing import Dict, Any

# Utils
from utils.log_utils import LogUtil

# Services
from services.conversation_service import ConversationService

# Models
from models.request.inbound_message_request import InboundMessageRequest
from models.response.inbound_message_response import InboundMessageResponse


def create_webhook_message_api(
    log_util: LogUtil,
    conversation_service: ConversationService
) -> APIRouter:
    """
    Create API router for inbound user messages forwarded by the channel service.
    """
    router = APIRouter(
        prefix="/webhook",
        tags=["webhook"],
    )

    @router.post("/message", response_model=InboundMessageResponse)
    async def process_webhook_message(request: InboundMessageRequest) -> InboundMessageResponse:
        """
        Process an inbound message: scripted reply and stage transition when a
        rule matches, generative reply otherwise.
        """
        try:
            result = await conversation_service.handle_inbound_message(
                user_id=request.user_id,
                text=request.text
            )
            return InboundMessageResponse(**result)

        except Exception as e:
            log_util.error(
                service_name="WebhookMessageAPI",
                message=f"Error processing webhook message for user {request.user_id}: {str(e)}"
            )

            # Return error response instead of raising exception
            # so the channel service does not retry the delivery
            return InboundMessageResponse(
                status="error",
                message="Error processing webhook message",
                error_details=str(e)
            )

    @router.get("/health")
    async def webhook_health_check() -> Dict[str, Any]:
        """Health check endpoint for webhook API"""
        return {
            "status": "healthy",
            "api": "webhook_message_api",
            "service": "outreach_flow_service"
        }

    return router
