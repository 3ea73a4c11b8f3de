"""Read-only policy status for external monitoring."""

from typing import Any

from .models import StatusSummary
from .policy_store import PolicyStore


class StatusReporter:
    def __init__(self, store: PolicyStore) -> None:
        self.store = store

    def get_status(self) -> StatusSummary:
        return self.store.status()

    def as_dict(self) -> dict[str, Any]:
        """camelCase mapping, as served to dashboards."""
        return self.get_status().model_dump(by_alias=True, mode="json")
