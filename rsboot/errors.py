from __future__ import annotations
from enum import Enum
from typing import Any


class BootstrapErrorKind(str, Enum):
    STATUS_QUERY_FAILED = "status_query_failed"
    INITIATION_FAILED = "initiation_failed"
    ELECTION_TIMEOUT = "election_timeout"


class BootstrapError(Exception):
    def __init__(self, kind: BootstrapErrorKind, result: Any = None):
        self.kind = kind
        self.result = result
        super().__init__(f"{kind.value}: {result}")
