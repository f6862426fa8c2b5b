"""
Script to purge flows from the flow snapshot (operator maintenance).

Usage:
    python scripts/purge_flows.py --stage closed --older-than-days 30
    python scripts/purge_flows.py --user-id 6543210987654321 --dry-run

Stop the API before purging: the API keeps its own in-memory copy and would
write the purged flows back on its next transition.
"""

import argparse
import asyncio
import sys
import os
from datetime import datetime, timedelta
from typing import List, Optional

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
from models.flow_record import FlowRecord, FlowStage


def select_flows_to_purge(
    flows: List[FlowRecord],
    stage: Optional[FlowStage] = None,
    older_than_days: Optional[int] = None,
    user_ids: Optional[List[str]] = None,
    now: Optional[datetime] = None
) -> List[str]:
    """
    Pick the user ids matching every given filter.
    """
    now = now or datetime.utcnow()
    selected = []
    for flow in flows:
        if user_ids and flow.user_id not in user_ids:
            continue
        if stage is not None and flow.stage != stage:
            continue
        if older_than_days is not None and now - flow.updated_at < timedelta(days=older_than_days):
            continue
        selected.append(flow.user_id)
    return selected


async def purge_flows(args: argparse.Namespace) -> int:
    log_util = LogUtil()
    environment_utils = EnvironmentUtils(log_util=log_util)

    storage = JsonFileStorage(
        log_util=log_util,
        file_path=args.store_path or environment_utils.get_env_variable("FLOW_STORE_PATH")
    )
    flow_store = FlowStore(log_util=log_util, storage=storage)
    await flow_store.load()

    user_ids = select_flows_to_purge(
        flow_store.all(),
        stage=FlowStage(args.stage) if args.stage else None,
        older_than_days=args.older_than_days,
        user_ids=args.user_id
    )

    print("\n" + "="*60)
    print("Purge flows")
    print("="*60)
    print(f"\nMatched {len(user_ids)} flow(s)")
    for user_id in user_ids:
        print(f"  - {user_id}")

    if args.dry_run:
        print("\n[INFO] Dry run, nothing removed")
        return 0

    removed = await flow_store.purge(user_ids)
    print(f"\n[SUCCESS] Removed {removed} flow(s)")
    return removed


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Purge flows from the flow snapshot")
    parser.add_argument("--stage", choices=[stage.value for stage in FlowStage], help="Only flows in this stage")
    parser.add_argument("--older-than-days", type=int, help="Only flows idle for at least this many days")
    parser.add_argument("--user-id", action="append", help="Only these user ids (repeatable)")
    parser.add_argument("--store-path", help="Snapshot path, defaults to FLOW_STORE_PATH")
    parser.add_argument("--dry-run", action="store_true", help="List matches without removing them")
    args = parser.parse_args(argv)
    if not (args.stage or args.older_than_days is not None or args.user_id):
        parser.error("at least one of --stage, --older-than-days or --user-id is required")
    return args


if __name__ == "__main__":
    asyncio.run(purge_flows(parse_args()))
