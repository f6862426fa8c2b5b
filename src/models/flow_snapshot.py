from pydantic import BaseModel, Field
from typing import Dict

from models.flow_record import FlowRecord

SNAPSHOT_VERSION = 1


class FlowSnapshot(BaseModel):
    """
    Durable form of the flow store: every flow record keyed by user id.
    """
    version: int = SNAPSHOT_VERSION
    flows: Dict[str, FlowRecord] = Field(default_factory=dict)
