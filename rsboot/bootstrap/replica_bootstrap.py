from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional
import logging
import time

from tenacity import (
    RetryError,
    Retrying,
    retry_if_result,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from ..errors import BootstrapError, BootstrapErrorKind
from ..schemas.types import ReplicaSetConfig, ReplicaSetStatus, StatusQuery
from ..utils.time import ms_to_seconds

logger = logging.getLogger(__name__)

# replSetInitiate results by replica set id, shared by every runner in the process
_INITIATE_RESULTS: dict[str, dict] = {}


class ElectionState(str, Enum):
    ELECTING = "electing"
    PRIMARY = "primary"


@dataclass
class BootstrapResult:
    ok: bool
    initiated: bool = False
    polls: int = 0
    state: ElectionState = ElectionState.ELECTING
    status: Optional[ReplicaSetStatus] = None
    error: Optional[BootstrapError] = None


class ReplicaSetBootstrap:
    """Create a single-node replica set if none exists, then wait for primary.

    ``admin`` is anything with ``get_status() -> StatusQuery`` and
    ``initiate(ReplicaSetConfig) -> dict`` (see ``mongo_client.AdminConnection``).

    The initial delay is a fixed wait for the server to finish starting, not a
    readiness probe. ``max_poll_attempts=0`` waits for primary without bound.
    """

    def __init__(
        self,
        admin,
        config: ReplicaSetConfig,
        *,
        poll_interval_ms: int = 2000,
        initial_delay_ms: int = 5000,
        max_poll_attempts: int = 0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._admin = admin
        self._config = config
        self._poll_interval_ms = poll_interval_ms
        self._initial_delay_ms = initial_delay_ms
        self._max_poll_attempts = max_poll_attempts
        self._sleep = sleep
        self._polls = 0

    @property
    def _initiate_result(self) -> Optional[dict]:
        return _INITIATE_RESULTS.get(self._config.id)

    @property
    def initiated(self) -> bool:
        return self._initiate_result is not None

    def run(self) -> BootstrapResult:
        logger.info(
            "replica set bootstrap started",
            extra={"stage": "bootstrap", "replica_set": self._config.id},
        )
        self._polls = 0
        if self._initiate_result is None:
            self._sleep(ms_to_seconds(self._initial_delay_ms))
            existing = self._admin.get_status()
            if existing.succeeded:
                logger.info(
                    "replica set already exists, skipping initiate",
                    extra={
                        "stage": "check",
                        "ok": existing.status.ok,
                        "my_state": existing.status.my_state,
                    },
                )
                return self._done(existing.status, initiated=False)

            logger.info(
                "replica set not found, initiating",
                extra={"stage": "check", "error": str(existing.error)},
            )
            _INITIATE_RESULTS[self._config.id] = self._admin.initiate(self._config)
            logger.info(
                "replSetInitiate returned",
                extra={"stage": "initiate", "result": self._initiate_result},
            )
        elif not _initiate_ok(self._initiate_result):
            logger.info(
                "replSetInitiate already attempted in this process, not retrying",
                extra={"stage": "initiate"},
            )

        if not _initiate_ok(self._initiate_result):
            logger.error(
                "replica set initiation failed",
                extra={"stage": "initiate", "result": self._initiate_result},
            )
            return BootstrapResult(
                ok=False,
                initiated=True,
                error=BootstrapError(
                    BootstrapErrorKind.INITIATION_FAILED, self._initiate_result
                ),
            )
        return self._wait_for_primary(initiated=True)

    def _wait_for_primary(self, *, initiated: bool) -> BootstrapResult:
        logger.info("waiting for primary", extra={"stage": "elect"})
        if self._max_poll_attempts > 0:
            stop = stop_after_attempt(self._max_poll_attempts)
        else:
            stop = stop_never
        retrying = Retrying(
            stop=stop,
            wait=wait_fixed(ms_to_seconds(self._poll_interval_ms)),
            retry=retry_if_result(lambda q: not q.is_primary),
            sleep=self._sleep,
        )
        try:
            query = retrying(self._poll_once)
        except RetryError as err:
            last = err.last_attempt.result()
            logger.error(
                "gave up waiting for primary",
                extra={
                    "stage": "elect",
                    "polls": self._polls,
                    "my_state": last.status.my_state if last.status else None,
                },
            )
            return BootstrapResult(
                ok=False,
                initiated=initiated,
                polls=self._polls,
                status=last.status,
                error=BootstrapError(BootstrapErrorKind.ELECTION_TIMEOUT, last.status),
            )
        return self._done(query.status, initiated=initiated)

    def _poll_once(self) -> StatusQuery:
        self._polls += 1
        query = self._admin.get_status()
        if not query.succeeded:
            logger.info(
                "status query failed, retrying",
                extra={
                    "stage": "elect",
                    "poll": self._polls,
                    "kind": BootstrapErrorKind.STATUS_QUERY_FAILED.value,
                    "error": str(query.error),
                },
            )
        elif not query.is_primary:
            logger.info(
                "not primary yet",
                extra={"stage": "elect", "poll": self._polls, "my_state": query.status.my_state},
            )
        return query

    def _done(self, status: ReplicaSetStatus, *, initiated: bool) -> BootstrapResult:
        # application users are provisioned elsewhere
        logger.info(
            "replica set bootstrap complete",
            extra={
                "stage": "bootstrap",
                "polls": self._polls,
                "initiated": initiated,
                "my_state": status.my_state,
            },
        )
        return BootstrapResult(
            ok=True,
            initiated=initiated,
            polls=self._polls,
            state=ElectionState.PRIMARY if status.is_primary else ElectionState.ELECTING,
            status=status,
        )


def _initiate_ok(result: Optional[dict]) -> bool:
    return bool(result) and result.get("ok") == 1


def bootstrap_replica_set(admin, settings, **overrides) -> BootstrapResult:
    """Build a runner from ``Settings`` (keyword overrides win) and run it once.

    Runners share the initiate record, so repeated calls in one process never
    send ``replSetInitiate`` twice for the same replica set.
    """
    timing = settings.timing.model_dump()
    timing.update({k: v for k, v in overrides.items() if v is not None and k in timing})
    runner = ReplicaSetBootstrap(
        admin,
        settings.replica_set.to_config(),
        sleep=overrides.get("sleep") or time.sleep,
        **timing,
    )
    return runner.run()


def clear_initiate_results():
    _INITIATE_RESULTS.clear()
