"""
Value types passed between exporter pipeline stages.

Every record is a frozen dataclass: stages derive new values from the
previous stage's output and never mutate what they were handed.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator


class OperationMode(str, enum.Enum):
    """Direction of a migration run."""

    GET = "get"
    PUT = "put"


class RunState(str, enum.Enum):
    """Lifecycle states for a GET run."""

    IDLE = "idle"
    SCOPE_RESOLVED = "scope_resolved"
    ACCOUNTS_QUERIED = "accounts_queried"
    NORMALIZED = "normalized"
    SHAPED = "shaped"
    WRITTEN = "written"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class OrganizationalScope:
    """A directory subtree that bounds an account query.

    ``token`` is only meaningful within the catalog pass that produced it.
    """

    token: str
    distinguished_path: str

    def matches(self, candidate: str) -> bool:
        return self.distinguished_path.casefold() == candidate.strip().casefold()


@dataclass(frozen=True)
class ScopeCatalog:
    """Scopes discovered in one enumeration pass, in directory order."""

    scopes: tuple[OrganizationalScope, ...] = ()

    def __iter__(self) -> Iterator[OrganizationalScope]:
        return iter(self.scopes)

    def __len__(self) -> int:
        return len(self.scopes)

    def find_by_path(self, candidate: str) -> OrganizationalScope | None:
        for scope in self.scopes:
            if scope.matches(candidate):
                return scope
        return None

    def find_by_token(self, token: str) -> OrganizationalScope | None:
        wanted = token.strip()
        for scope in self.scopes:
            if scope.token == wanted:
                return scope
        return None


@dataclass(frozen=True)
class AccountRecord:
    """One queried account with its raw routing-address list."""

    account_id: str
    primary_email: str = ""
    display_alias: str = ""
    routing_addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class NormalizedAddressSet:
    account_id: str
    addresses: tuple[str, ...] = ()


@dataclass(frozen=True)
class AttributeRow:
    account_id: str
    primary_email: str
    display_alias: str

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.account_id, self.primary_email, self.display_alias)


@dataclass(frozen=True)
class ProxyRow:
    """A proxies-table row; ``fields`` is always exactly the run width long."""

    account_id: str
    fields: tuple[str, ...] = ()

    def as_tuple(self) -> tuple[str, ...]:
        return (self.account_id, *self.fields)

    @property
    def addresses(self) -> tuple[str, ...]:
        return tuple(value for value in self.fields if value)


@dataclass(frozen=True)
class ExportFileSet:
    """Naming context for the three files written by one run.

    Sequence suffixes are resolved when each file is written, not here.
    """

    directory: Path
    date_stamp: str
    attributes_prefix: str = "ExportedAttributes"
    proxies_prefix: str = "ExportedProxies"
    log_prefix: str = "ExportLog"


@dataclass(frozen=True)
class ExportRequest:
    """Validated configuration handed to the core by its callers."""

    operation_mode: OperationMode
    working_directory: Path
    search_scope: OrganizationalScope


@dataclass(frozen=True)
class RunLogRecord:
    timestamp: datetime
    stage: str
    message: str

    def render(self) -> str:
        return f"{self.timestamp.isoformat(timespec='seconds')} [{self.stage}] {self.message}"


@dataclass(frozen=True)
class RunLog:
    """Append-only sequence of run log records.

    ``append`` returns a new log; rendering happens once when the run ends.
    """

    records: tuple[RunLogRecord, ...] = field(default_factory=tuple)

    def append(self, stage: str, message: str, *, at: datetime) -> "RunLog":
        return RunLog(records=self.records + (RunLogRecord(timestamp=at, stage=stage, message=message),))

    def __len__(self) -> int:
        return len(self.records)

    def render(self) -> str:
        return "".join(f"{record.render()}\n" for record in self.records)
