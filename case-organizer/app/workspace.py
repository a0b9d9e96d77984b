"""Session context for the Case Organizer.

``CaseWorkspace`` holds the active account, the current ``CaseState`` snapshot
and the persistence medium. Every intent from a surface (dashboard or API)
goes through it:

1. the matching pure function in ``app.records`` computes the next state,
2. if the state changed, the account's partition is written back.

Writes are best effort. A failed write is logged and the in-memory state is
kept, so the session carries on with what the user sees.
"""

from __future__ import annotations

import logging

from shared.kv_store import KeyValueStore, PersistenceError

from app import accounts, partitions, records
from app.ingest import to_content_ref
from app.models import Case
from app.records import EMPTY_STATE, CaseState
from app.search import SearchHit, search_cases, summarize_case

logger = logging.getLogger(__name__)


class CaseWorkspace:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.account_id: str | None = None
        self.state: CaseState = EMPTY_STATE
        self.search_query: str = ""

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> CaseWorkspace:
        """Rehydrate the previously active account, if any."""
        self.switch_account(partitions.load_active_account(self.store))
        return self

    def switch_account(self, account_id: str | None) -> None:
        """Show *account_id*'s partition (or nothing for None).

        The previous partition is left as it is in storage.
        """
        self.account_id = account_id or None
        self.search_query = ""
        if self.account_id is None:
            self.state = EMPTY_STATE
        else:
            self.state = records.enter_partition(partitions.load_cases(self.store, self.account_id))
        logger.info("Active account: %s (%d cases)", self.account_id, len(self.state.cases))

    def sign_up(self, username: str, password: str) -> bool:
        try:
            created = accounts.sign_up(self.store, username, password)
        except PersistenceError:
            logger.exception("Could not save the account registry")
            return False
        if not created:
            return False
        self._activate(username.strip())
        return True

    def login(self, username: str, password: str) -> bool:
        if not accounts.verify_login(self.store, username, password):
            logger.info("Rejected login for %r", username)
            return False
        self._activate(username.strip())
        return True

    def logout(self) -> None:
        try:
            partitions.clear_active_account(self.store)
        except PersistenceError:
            logger.exception("Could not clear the active account")
        self.switch_account(None)

    def _activate(self, account_id: str) -> None:
        try:
            partitions.save_active_account(self.store, account_id)
        except PersistenceError:
            logger.exception("Could not persist the active account")
        self.switch_account(account_id)

    # ── Derived views ────────────────────────────────────────────────────

    @property
    def cases(self) -> tuple[Case, ...]:
        return self.state.cases

    @property
    def current_case(self) -> Case | None:
        return records.current_case(self.state)

    def find_case(self, case_id: str) -> Case | None:
        return records.find_case(self.state, case_id)

    @property
    def search_results(self) -> list[SearchHit]:
        return search_cases(self.state.cases, self.search_query)

    def summary(self, case_id: str | None = None) -> str:
        case = self.current_case if case_id is None else self.find_case(case_id)
        return summarize_case(case)

    # ── Intents ──────────────────────────────────────────────────────────

    def _apply(self, operation, *args, **kwargs) -> bool:
        """Run a pure operation; persist and return True if the state changed."""
        if self.account_id is None:
            return False
        new_state = operation(self.state, *args, **kwargs)
        if new_state is self.state:
            return False
        cases_changed = new_state.cases is not self.state.cases
        self.state = new_state
        if cases_changed:
            self._persist()
        return True

    def _persist(self) -> None:
        try:
            partitions.save_cases(self.store, self.account_id, self.state.cases)
        except PersistenceError:
            logger.exception("Could not save cases for %s; keeping in-memory state", self.account_id)

    def set_search_query(self, query: str) -> list[SearchHit]:
        self.search_query = query or ""
        return self.search_results

    def select_case(self, case_id: str | None) -> bool:
        return self._apply(records.select_case, case_id)

    def create_case(self, title: str, description: str = "") -> Case | None:
        if self._apply(records.create_case, title, description):
            return self.state.cases[0]
        return None

    def update_case(self, case_id: str, title: str | None = None, description: str | None = None) -> bool:
        return self._apply(records.update_case, case_id, title=title, description=description)

    def delete_case(self, case_id: str) -> bool:
        return self._apply(records.delete_case, case_id)

    def add_document(self, case_id: str, name: str, file_bytes: bytes | None = None, filename: str = "") -> bool:
        content = to_content_ref(file_bytes, filename) if file_bytes is not None else None
        return self._apply(records.append_document, case_id, name, content)

    def add_evidence(
        self,
        case_id: str,
        name: str,
        file_bytes: bytes | None = None,
        filename: str = "",
        tags=(),
    ) -> bool:
        content = to_content_ref(file_bytes, filename) if file_bytes is not None else None
        return self._apply(records.append_evidence, case_id, name, content, tags)

    def add_timeline_event(self, case_id: str, title: str, date: str | None = None, description: str = "") -> bool:
        return self._apply(records.append_timeline_event, case_id, title, date=date, description=description)

    def add_foia_request(self, case_id: str, subject: str, description: str = "") -> bool:
        return self._apply(records.append_foia_request, case_id, subject, description)

    def add_witness(self, case_id: str, name: str, description: str = "") -> bool:
        return self._apply(records.append_witness, case_id, name, description)

    def add_task(self, case_id: str, title: str, status: str = "open") -> bool:
        return self._apply(records.append_task, case_id, title, status)

    def set_task_status(self, case_id: str, task_id: str, status: str) -> bool:
        return self._apply(records.set_task_status, case_id, task_id, status)

    def update_entity(self, case_id: str, kind: str, entity_id: str, **changes) -> bool:
        return self._apply(records.update_entity, case_id, kind, entity_id, **changes)

    def delete_entity(self, case_id: str, kind: str, entity_id: str) -> bool:
        return self._apply(records.delete_entity, case_id, kind, entity_id)

    def add_evidence_tag(self, case_id: str, evidence_id: str, tag: str) -> bool:
        return self._apply(records.add_evidence_tag, case_id, evidence_id, tag)

    def remove_evidence_tag(self, case_id: str, evidence_id: str, tag: str) -> bool:
        return self._apply(records.remove_evidence_tag, case_id, evidence_id, tag)
