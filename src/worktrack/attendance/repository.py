from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_for_key(self, *, user_id: str, workspace_id: str, date: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def save(self, record: AttendanceRecord) -> None:
        """Insert, or overwrite the mutable fields of the record with the same key."""

        raise NotImplementedError

    def list_for_date(self, *, workspace_id: str, date: str) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_range(self, *, workspace_id: str, start_date: str, end_date: str) -> Sequence[AttendanceRecord]:
        """Records with ``start_date <= date <= end_date`` (YYYY-MM-DD strings)."""

        raise NotImplementedError

    def list_for_user(
        self,
        *,
        user_id: str,
        workspace_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> Sequence[AttendanceRecord]:
        """One user's records, newest date first; each bound applies only when given."""

        raise NotImplementedError
