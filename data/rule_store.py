"""Record store for rules, keyed by rule id.

Backed by any mutable mapping: a plain dict in tests and scripts, a slot of
``st.session_state`` in the app. Records are plain dicts (see
``Rule.to_record``); callers always receive copies.
"""

import logging
import uuid
from typing import Dict, List, MutableMapping, Optional, Sequence

from models.errors import FieldError, RuleNotFoundError, RuleValidationError

log = logging.getLogger(__name__)


class RuleStore:
    def __init__(self, records: Optional[MutableMapping[str, dict]] = None):
        self._records = records if records is not None else {}

    def create(self, record: dict) -> str:
        rule_id = record.get("id") or str(uuid.uuid4())
        self._records[rule_id] = {**record, "id": rule_id}
        return rule_id

    def get_by_id(self, rule_id: str) -> Optional[dict]:
        record = self._records.get(rule_id)
        return dict(record) if record is not None else None

    def list_by_roster(self, roster_id: str) -> List[dict]:
        return [dict(r) for r in self._records.values() if r.get("roster_id") == roster_id]

    def update(self, rule_id: str, partial: dict):
        if rule_id not in self._records:
            raise RuleNotFoundError(rule_id)
        self._records[rule_id] = {**self._records[rule_id], **partial, "id": rule_id}

    def delete(self, rule_id: str):
        if self._records.pop(rule_id, None) is None:
            raise RuleNotFoundError(rule_id)

    def bulk_reorder(self, roster_id: str, records: Sequence[dict]):
        """Replace every given record in one step; nothing is written if any is invalid."""
        staged: Dict[str, dict] = {}
        for record in records:
            rule_id = record["id"]
            current = self._records.get(rule_id)
            if current is None:
                raise RuleNotFoundError(rule_id)
            if current.get("roster_id") != roster_id or record.get("roster_id", roster_id) != roster_id:
                raise RuleValidationError([FieldError(
                    "roster_id", f"Rule {rule_id} does not belong to roster {roster_id}",
                )])
            staged[rule_id] = {**current, **record}
        self._records.update(staged)
        log.debug("Reordered %d rules for roster %s", len(staged), roster_id)
