import json
import os
import tempfile
from pathlib import Path
from typing import Optional, Dict, Any

# Utils
from utils.log_utils import LogUtil

# Exceptions
from exceptions.flow_exception import FlowStoreException

"""
Durable storage for the flow snapshot: one JSON document on disk
"""
class JsonFileStorage:
    def __init__(self, log_util: LogUtil, file_path: str):
        self.log_util = log_util
        self.file_path = Path(file_path)

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Read the snapshot document.

        Returns:
            The parsed document, or None when the file does not exist yet

        Raises:
            FlowStoreException: the file exists but cannot be read or parsed
        """
        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            self.log_util.info(
                service_name="JsonFileStorage",
                message=f"No existing flows at {self.file_path}, starting fresh"
            )
            return None
        except json.JSONDecodeError as e:
            self.log_util.error(
                service_name="JsonFileStorage",
                message=f"Malformed flow snapshot {self.file_path}: {str(e)}"
            )
            raise FlowStoreException(message=f"Malformed flow snapshot: {str(e)}")
        except OSError as e:
            self.log_util.error(
                service_name="JsonFileStorage",
                message=f"Error reading flow snapshot {self.file_path}: {str(e)}"
            )
            raise FlowStoreException(message=f"Error reading flow snapshot: {str(e)}", status_code=503)

        if not isinstance(document, dict):
            raise FlowStoreException(message="Malformed flow snapshot: top-level value is not an object")
        return document

    def save(self, document: Dict[str, Any]) -> None:
        """
        Write the full snapshot document, replacing the previous file atomically.

        Raises:
            FlowStoreException: the document could not be written
        """
        tmp_path = None
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.file_path.parent, prefix=f".{self.file_path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, default=str)
            os.replace(tmp_path, self.file_path)
        except (OSError, TypeError, ValueError) as e:
            self.log_util.error(
                service_name="JsonFileStorage",
                message=f"Error saving flow snapshot {self.file_path}: {str(e)}"
            )
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise FlowStoreException(message=f"Error saving flow snapshot: {str(e)}", status_code=503)
