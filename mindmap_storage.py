"""
Saved mind map storage.

Keeps every saved map in one JSON file as a list of records::

    {"id", "mindMap", "userInput", "createdAt", "updatedAt"}

Newest saves go to the front.  The whole file is rewritten on each change.
A store file that cannot be parsed is renamed to ``<path>.corrupt-<ms>``
and the store starts empty.
"""

import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when the store cannot be written or an import is invalid."""


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MindMapStorage:
    """JSON-file backed key-value store of saved mind maps."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> List[Dict[str, Any]]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as fh:
                data = json.load(fh)
        except OSError as e:
            logger.error("Error loading saved mind maps from %s: %s", self.path, e)
            return []
        except ValueError as e:
            self._set_aside(f'not valid JSON ({e})')
            return []
        if not isinstance(data, list):
            self._set_aside('top level is not a list')
            return []
        return data

    def _set_aside(self, reason: str) -> None:
        """Rename an unreadable store so the next write cannot clobber it."""
        backup = f'{self.path}.corrupt-{int(time.time() * 1000)}'
        try:
            os.replace(self.path, backup)
        except OSError as e:
            raise StorageError(
                f'Mind map store {self.path} is unreadable and could not be moved aside: {e}'
            ) from e
        logger.warning("Mind map store %s is %s; moved it to %s", self.path, reason, backup)

    def _write(self, records: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as fh:
                json.dump(records, fh, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error("Error writing saved mind maps to %s: %s", self.path, e)
            raise StorageError(f'Failed to write mind map store: {e}') from e

    @staticmethod
    def _generate_id() -> str:
        return f'{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}'

    def get_all(self) -> List[Dict[str, Any]]:
        return self._read()

    def get_by_id(self, map_id: str) -> Optional[Dict[str, Any]]:
        for record in self._read():
            if record.get('id') == map_id:
                return record
        return None

    def save(self, mind_map: Dict[str, Any], user_input: str) -> Dict[str, Any]:
        timestamp = _now_iso()
        record = {
            'id': self._generate_id(),
            'mindMap': mind_map,
            'userInput': user_input,
            'createdAt': timestamp,
            'updatedAt': timestamp,
        }
        records = self._read()
        records.insert(0, record)
        self._write(records)
        logger.info("Saved mind map %s", record['id'])
        return record

    def update(self, map_id: str, mind_map: Dict[str, Any], user_input: str) -> Optional[Dict[str, Any]]:
        records = self._read()
        for idx, record in enumerate(records):
            if record.get('id') == map_id:
                records[idx] = {
                    **record,
                    'mindMap': mind_map,
                    'userInput': user_input,
                    'updatedAt': _now_iso(),
                }
                self._write(records)
                return records[idx]
        return None

    def delete(self, map_id: str) -> bool:
        records = self._read()
        remaining = [r for r in records if r.get('id') != map_id]
        if len(remaining) == len(records):
            return False
        self._write(remaining)
        return True

    def delete_all(self) -> None:
        self._write([])

    def export_json(self) -> str:
        return json.dumps(self._read(), ensure_ascii=False, indent=2)

    def import_json(self, json_string: str) -> int:
        """
        Merge records from an export.

        Returns:
            Number of records added; ids already present are skipped
        """
        try:
            imported = json.loads(json_string)
        except (TypeError, ValueError) as e:
            raise StorageError('Failed to import mind maps. Invalid JSON format.') from e
        if not isinstance(imported, list):
            raise StorageError('Invalid format: expected an array')

        records = self._read()
        known_ids = {r.get('id') for r in records}
        added = 0
        for item in imported:
            if not isinstance(item, dict) or item.get('id') in known_ids:
                continue
            records.append(item)
            known_ids.add(item.get('id'))
            added += 1

        self._write(records)
        logger.info("Imported %d mind map(s)", added)
        return added

    def get_storage_info(self) -> Dict[str, Any]:
        records = self._read()
        size = os.path.getsize(self.path) if os.path.exists(self.path) else 0
        return {
            'count': len(records),
            'size_kb': round(size / 1024),
        }
