from enum import Enum
from typing import List, Optional
from dataclasses import dataclass, field


class SyncStatus(str, Enum):
    OK = "ok"
    SKIPPED = "skipped"
    ERROR = "error"


@dataclass(frozen=True)
class ColumnDefinition:
    """One source column and the target declaration it maps to.

    Position in the owning list is the column's position in the SELECT
    and INSERT statements.
    """
    name: str
    source_type_code: Optional[int]
    source_length: Optional[int]
    source_precision: Optional[int]
    source_scale: Optional[int]
    source_sub_type: Optional[int]
    target_type: str


@dataclass(frozen=True)
class TableSyncResult:
    table_name: str
    row_count: int
    status: SyncStatus
    duration_ms: int
    error_message: Optional[str] = None


@dataclass
class RunSummary:
    pair_name: str
    tables_total: int = 0
    tables_ok: int = 0
    tables_skipped: int = 0
    tables_error: int = 0
    total_rows: int = 0
    errors: List[str] = field(default_factory=list)

    def add(self, result: TableSyncResult) -> None:
        self.tables_total += 1
        self.total_rows += result.row_count
        if result.status is SyncStatus.OK:
            self.tables_ok += 1
        elif result.status is SyncStatus.SKIPPED:
            self.tables_skipped += 1
        else:
            self.tables_error += 1
            self.errors.append(f"{result.table_name}: {result.error_message}")


@dataclass
class RunResult:
    summaries: List[RunSummary] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def total_tables(self) -> int:
        return sum(s.tables_total for s in self.summaries)

    @property
    def total_ok(self) -> int:
        return sum(s.tables_ok for s in self.summaries)

    @property
    def total_rows(self) -> int:
        return sum(s.total_rows for s in self.summaries)

    @property
    def message(self) -> str:
        return (
            f"Synced {self.total_ok}/{self.total_tables} tables ({self.total_rows} rows) "
            f"across {len(self.summaries)} databases"
        )

    def context(self) -> dict:
        return {
            "total_tables": self.total_tables,
            "total_ok": self.total_ok,
            "total_rows": self.total_rows,
            "errors": list(self.errors),
        }
