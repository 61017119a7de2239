from typing import List, Optional
from dataclasses import dataclass, field, replace

@dataclass(frozen=True)
class DatabaseConfig:
    type: str
    host: Optional[str]
    port: int
    username: Optional[str]
    password: Optional[str]
    database: Optional[str]
    charset: Optional[str] = None

    def with_database(self, database: str) -> "DatabaseConfig":
        return replace(self, database=database)

@dataclass(frozen=True)
class ConnectionPair:
    name: str
    source: DatabaseConfig
    target_database: str

@dataclass
class SyncConfig:
    target: DatabaseConfig
    pairs: List[ConnectionPair] = field(default_factory=list)
    max_batch_size: int = 1000
    # PostgreSQL allows 65535 bind parameters per statement
    max_parameters: int = 50000
    blob_timeout: float = 5.0
    metadata_table: str = "_sync_meta"
    verify_data: bool = True
    retry_times: int = 3
    retry_interval: int = 5
