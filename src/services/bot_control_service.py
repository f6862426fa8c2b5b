from typing import Dict, List, Set

# Utils
from utils.log_utils import LogUtil


class BotControlService:
    """
    Process-wide switches deciding whether the bot answers a user.
    Everything starts enabled: global flag on, no disabled or manual conversations.
    """

    def __init__(self, log_util: LogUtil, enabled: bool = True):
        self.log_util = log_util
        self._enabled = enabled
        self._disabled_conversations: Set[str] = set()
        self._manual_mode_conversations: Set[str] = set()

    def should_respond(self, user_id: str) -> bool:
        if not self._enabled:
            return False
        if user_id in self._disabled_conversations:
            return False
        if user_id in self._manual_mode_conversations:
            return False
        return True

    def is_enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> bool:
        self._enabled = enabled
        self.log_util.info(
            service_name="BotControlService",
            message=f"Bot {'enabled' if enabled else 'disabled'} globally"
        )
        return self._enabled

    def disable_conversation(self, user_id: str):
        self._disabled_conversations.add(user_id)
        self.log_util.info(service_name="BotControlService", message=f"Bot disabled for {user_id}")

    def enable_conversation(self, user_id: str):
        """Re-enable a conversation, also taking it out of manual mode"""
        self._disabled_conversations.discard(user_id)
        self._manual_mode_conversations.discard(user_id)
        self.log_util.info(service_name="BotControlService", message=f"Bot enabled for {user_id}")

    def enter_manual_mode(self, user_id: str):
        self._manual_mode_conversations.add(user_id)
        self.log_util.info(service_name="BotControlService", message=f"Manual mode for {user_id}")

    def exit_manual_mode(self, user_id: str):
        self._manual_mode_conversations.discard(user_id)
        self.log_util.info(service_name="BotControlService", message=f"Auto mode for {user_id}")

    def is_manual_mode(self, user_id: str) -> bool:
        return user_id in self._manual_mode_conversations

    def is_conversation_disabled(self, user_id: str) -> bool:
        return user_id in self._disabled_conversations

    def get_states(self) -> Dict[str, List[str]]:
        return {
            "disabled": sorted(self._disabled_conversations),
            "manual": sorted(self._manual_mode_conversations),
        }
