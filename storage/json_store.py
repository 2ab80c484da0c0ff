"""Flat JSON file storage for the event document."""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from storage.base import DocumentStore, empty_document

logger = logging.getLogger(__name__)


class JsonFileStore(DocumentStore):
    """Store the event document as a JSON file on local disk."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read(self) -> Dict[str, Any]:
        if not self.path.exists():
            logger.info(f"No data file at {self.path}, returning empty document")
            return empty_document()

        try:
            document = json.loads(self.path.read_text(encoding='utf-8'))
        except json.JSONDecodeError as e:
            logger.error(f"Data file {self.path} is not valid JSON: {e}")
            raise

        if not isinstance(document, dict):
            logger.warning(f"Data file {self.path} has unexpected shape, ignoring")
            return empty_document()
        return document

    def replace(self, document: Dict[str, Any]) -> None:
        """
        Atomically overwrite the data file.

        Args:
            document: Full document to store

        Raises:
            OSError: If the file cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as handle:
                json.dump(document, handle, indent=2)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error writing data file {self.path}: {e}")
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

        logger.info(
            f"Saved {len(document.get('events', []))} events to {self.path}"
        )
