from typing import Optional
import httpx

# Utils
from utils.log_utils import LogUtil


FALLBACK_APOLOGY = "Sorry, I'm having trouble responding right now. Please try again in a moment."


class GenerativeReplyService:
    """
    Client for the generative reply service, used when no scripted action applies.
    Always returns text: any failure degrades to a fixed apology.
    """

    def __init__(
        self,
        log_util: LogUtil,
        generative_api_url: str,
        timeout_seconds: float = 30.0
    ):
        self.log_util = log_util
        self.generative_api_url = generative_api_url
        self.timeout_seconds = timeout_seconds

    async def generate_reply(self, user_id: str, text: str, display_name: Optional[str] = None) -> str:
        request_json = {"user_id": user_id, "text": text, "display_name": display_name}
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    self.generative_api_url,
                    json=request_json,
                    headers={"Content-Type": "application/json"}
                )
            if response.status_code != 200:
                self.log_util.error(
                    service_name="GenerativeReplyService",
                    message=f"Generative API returned error for {user_id}: {response.status_code} - {response.text}"
                )
                return FALLBACK_APOLOGY

            body = response.json()
            reply = body.get("reply") if isinstance(body, dict) else None
            if not reply:
                self.log_util.warning(
                    service_name="GenerativeReplyService",
                    message=f"Generative API returned an empty reply for {user_id}"
                )
                return FALLBACK_APOLOGY
            return reply

        except httpx.TimeoutException:
            self.log_util.error(
                service_name="GenerativeReplyService",
                message=f"Timeout calling generative API for {user_id}"
            )
            return FALLBACK_APOLOGY
        except (httpx.HTTPError, ValueError) as e:
            self.log_util.error(
                service_name="GenerativeReplyService",
                message=f"Error calling generative API for {user_id}: {str(e)}"
            )
            return FALLBACK_APOLOGY
