import asyncio
from collections import defaultdict
from typing import Optional, List, Dict, Iterable

from pydantic import ValidationError

# Utils
from utils.log_utils import LogUtil

# Database
from database.json_file_storage import JsonFileStorage

# Exceptions
from exceptions.flow_exception import FlowStoreException

# Models
from models.flow_record import FlowRecord
from models.flow_snapshot import FlowSnapshot, SNAPSHOT_VERSION

"""
In-memory flow store with write-through persistence of the whole snapshot
"""
class FlowStore:
    def __init__(self, log_util: LogUtil, storage: JsonFileStorage):

        # Initialize logger
        self.log_util = log_util

        # Durable storage collaborator
        self.storage = storage

        # user_id -> FlowRecord, the source of truth for the process lifetime
        self._flows: Dict[str, FlowRecord] = {}

        # One lock per user id, held across read-modify-write sequences
        self._user_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

        # Serializes snapshot writes
        self._persist_lock = asyncio.Lock()

    async def load(self) -> int:
        """
        Load every flow from durable storage, replacing the in-memory set.
        A missing snapshot starts an empty store.

        Returns:
            Number of flows loaded

        Raises:
            FlowStoreException: the snapshot exists but is unreadable or malformed
        """
        document = await asyncio.to_thread(self.storage.load)
        if document is None:
            self._flows = {}
            return 0

        # Snapshots written before the version marker (including the Node service's
        # camelCase records) are a bare user_id -> flow mapping
        if "version" not in document:
            document = {"version": SNAPSHOT_VERSION, "flows": document}

        try:
            snapshot = FlowSnapshot.model_validate(document)
        except ValidationError as e:
            self.log_util.error(
                service_name="FlowStore",
                message=f"Flow snapshot failed validation: {str(e)}"
            )
            raise FlowStoreException(message=f"Malformed flow snapshot: {str(e)}")

        if snapshot.version > SNAPSHOT_VERSION:
            self.log_util.warning(
                service_name="FlowStore",
                message=f"Flow snapshot version {snapshot.version} is newer than supported version {SNAPSHOT_VERSION}"
            )

        self._flows = dict(snapshot.flows)
        self.log_util.info(
            service_name="FlowStore",
            message=f"Loaded {len(self._flows)} user flows"
        )
        return len(self._flows)

    def get(self, user_id: str) -> Optional[FlowRecord]:
        return self._flows.get(user_id)

    async def put(self, user_id: str, flow: FlowRecord) -> FlowRecord:
        """
        Upsert a flow and persist the store.
        The in-memory record is kept even when persisting fails.
        """
        self._flows[user_id] = flow
        await self.persist()
        return flow

    def all(self) -> List[FlowRecord]:
        return list(self._flows.values())

    def user_lock(self, user_id: str) -> asyncio.Lock:
        return self._user_locks[user_id]

    async def persist(self) -> None:
        """
        Write the full in-memory set to durable storage.

        Raises:
            FlowStoreException: the write failed; the next mutation retries it
        """
        async with self._persist_lock:
            snapshot = FlowSnapshot(flows=dict(self._flows))
            document = snapshot.model_dump(mode="json")
            await asyncio.to_thread(self.storage.save, document)

    async def purge(self, user_ids: Iterable[str]) -> int:
        """
        Remove flows out of band (operator maintenance only).

        Returns:
            Number of flows removed
        """
        removed = 0
        for user_id in user_ids:
            if self._flows.pop(user_id, None) is not None:
                self._user_locks.pop(user_id, None)
                removed += 1
        if removed:
            await self.persist()
            self.log_util.info(
                service_name="FlowStore",
                message=f"Purged {removed} user flows"
            )
        return removed
