from dotenv import load_dotenv
import os

# Utils
from utils.log_utils import LogUtil

"""
Utility class for environment variables
"""
class EnvironmentUtils:
    def __init__(self, log_util: LogUtil):

        # Load environment variables
        load_dotenv()

        # Initialize logger
        self.log_util = log_util

        # Environment variables
        self.env_variables = {
            "APP_ENV": os.getenv("APP_ENV", "production"),
            "HOST": os.getenv("HOST", "0.0.0.0"),
            "PORT": int(os.getenv("PORT", "8020")),
            "ORG_ID": os.getenv("ORG_ID", "OutreachFlow"),
            "LOKI_URL": os.getenv("LOKI_URL", ""),
            "FLOW_STORE_PATH": os.getenv("FLOW_STORE_PATH", "data/sales-flows.json"),
            "MESSAGE_DELIVERY_URL": os.getenv("MESSAGE_DELIVERY_URL", "http://localhost:8017/messenger/message/send"),
            "GENERATIVE_REPLY_URL": os.getenv("GENERATIVE_REPLY_URL", "http://localhost:8019/reply/generate"),
            "HTTP_TIMEOUT_SECONDS": float(os.getenv("HTTP_TIMEOUT_SECONDS", "30")),
            "FOLLOW_UP_CHECK_INTERVAL_SECONDS": int(os.getenv("FOLLOW_UP_CHECK_INTERVAL_SECONDS", "900")),
            "FOLLOW_UP_SCHEDULER_ENABLED": os.getenv("FOLLOW_UP_SCHEDULER_ENABLED", "true").lower() == "true",
            "FLOW_TWO_STEP_TRANSITIONS": os.getenv("FLOW_TWO_STEP_TRANSITIONS", "false").lower() == "true",
            "DEBUG": os.getenv("DEBUG", "false"),
        }

    def get_env_variable(self, variable_name: str) -> str | int | float | bool:
        if variable_name not in self.env_variables:
            self.log_util.error(service_name="EnvironmentUtils", message=f"Environment variable {variable_name} not found")
            raise ValueError(f"Environment variable {variable_name} not found")
        return self.env_variables[variable_name]
