from typing import Dict, Any
import httpx

# Utils
from utils.log_utils import LogUtil

# Exceptions
from exceptions.flow_exception import MessageDeliveryException


class MessageDeliveryService:
    """
    Client for the channel service that sends messages to users.
    Chunking, typing indicators and rate limits are handled by the channel service.
    """

    def __init__(
        self,
        log_util: LogUtil,
        delivery_api_url: str,
        timeout_seconds: float = 30.0
    ):
        self.log_util = log_util
        self.delivery_api_url = delivery_api_url
        self.timeout_seconds = timeout_seconds

    async def deliver(self, user_id: str, text: str) -> Dict[str, Any]:
        """
        Send text to a user through the channel service.

        Returns:
            The channel service response body

        Raises:
            MessageDeliveryException: non-2xx response, timeout or transport error
        """
        request_json = {"recipient_id": user_id, "text": text}
        self.log_util.info(
            service_name="MessageDeliveryService",
            message=f"[DELIVERY_API] Sending {len(text)} chars to {user_id} via {self.delivery_api_url}"
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    self.delivery_api_url,
                    json=request_json,
                    headers={"Content-Type": "application/json"}
                )
        except httpx.TimeoutException:
            self.log_util.error(
                service_name="MessageDeliveryService",
                message=f"Timeout delivering message to {user_id}"
            )
            raise MessageDeliveryException(message=f"Timeout delivering message to {user_id}")
        except httpx.HTTPError as e:
            self.log_util.error(
                service_name="MessageDeliveryService",
                message=f"Error delivering message to {user_id}: {str(e)}"
            )
            raise MessageDeliveryException(message=f"Error delivering message to {user_id}: {str(e)}")

        if not response.is_success:
            self.log_util.error(
                service_name="MessageDeliveryService",
                message=f"Delivery API returned error for {user_id}: {response.status_code} - {response.text}"
            )
            raise MessageDeliveryException(message=f"Delivery API error {response.status_code}: {response.text}")

        try:
            return response.json()
        except ValueError:
            return {"status": "success"}
