"""
Script to run a single follow-up sweep against the flow snapshot.

Meant for cron-triggered deployments that run the API with
FOLLOW_UP_SCHEDULER_ENABLED=false. Do not run it while an API process with the
background scheduler is serving the same snapshot: both would own the flows.
"""

import asyncio
import sys
import os

# Add src directory to path to import modules
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
src_dir = os.path.join(project_root, 'src')
sys.path.insert(0, src_dir)
sys.path.insert(0, project_root)

from utils.log_utils import LogUtil
from utils.environment_utils import EnvironmentUtils
from database.json_file_storage import JsonFileStorage
from database.flow_store import FlowStore
from services.flow_lifecycle_service import FlowLifecycleService
from services.message_delivery_service import MessageDeliveryService
from services.follow_up_scheduler_service import FollowUpSchedulerService


async def run_follow_up_sweep() -> int:
    """
    Load the snapshot, send every due follow-up and persist the transitions.
    """
    # Initialize utilities
    log_util = LogUtil()
    environment_utils = EnvironmentUtils(log_util=log_util)

    # Initialize store
    storage = JsonFileStorage(
        log_util=log_util,
        file_path=environment_utils.get_env_variable("FLOW_STORE_PATH")
    )
    flow_store = FlowStore(log_util=log_util, storage=storage)
    loaded = await flow_store.load()

    scheduler = FollowUpSchedulerService(
        log_util=log_util,
        flow_store=flow_store,
        flow_lifecycle_service=FlowLifecycleService(log_util=log_util, flow_store=flow_store),
        message_delivery_service=MessageDeliveryService(
            log_util=log_util,
            delivery_api_url=environment_utils.get_env_variable("MESSAGE_DELIVERY_URL"),
            timeout_seconds=environment_utils.get_env_variable("HTTP_TIMEOUT_SECONDS")
        )
    )

    print("\n" + "="*60)
    print("Follow-up sweep")
    print("="*60)
    print(f"\nLoaded flows: {loaded}")

    attempted = await scheduler.run_sweep()

    print(f"Follow-ups attempted: {attempted}")
    log_util.info(
        service_name="RunFollowUpSweep",
        message=f"Cron sweep finished, {attempted} follow-up(s) attempted"
    )
    return attempted


if __name__ == "__main__":
    asyncio.run(run_follow_up_sweep())
