from __future__ import annotations
import logging

from pymongo import MongoClient
from pymongo.errors import OperationFailure, PyMongoError

from .config_loader import Settings
from .schemas.types import ReplicaSetConfig, ReplicaSetStatus, StatusQuery

logger = logging.getLogger(__name__)


def get_client(s: Settings, host: str | None = None) -> MongoClient:
    # directConnection: a node with no replica set config cannot be discovered
    kwargs = {
        "directConnection": True,
        "serverSelectionTimeoutMS": s.mongo.server_selection_timeout_ms,
    }
    if host:
        return MongoClient(host=host, **kwargs)
    return MongoClient(s.mongo.uri, **kwargs)


class AdminConnection:
    """Administrative commands against the ``admin`` database of one node."""

    def __init__(self, client):
        self._admin = client.admin

    def get_status(self) -> StatusQuery:
        try:
            doc = self._admin.command("replSetGetStatus")
        except PyMongoError as exc:
            return StatusQuery(error=exc)
        return StatusQuery(status=ReplicaSetStatus.model_validate(doc))

    def initiate(self, config: ReplicaSetConfig) -> dict:
        try:
            return dict(self._admin.command("replSetInitiate", config.to_document()))
        except OperationFailure as exc:
            return dict(exc.details or {"ok": 0, "errmsg": str(exc)})
        except PyMongoError as exc:
            logger.warning(
                "replSetInitiate did not reach the server",
                extra={"stage": "initiate"},
                exc_info=True,
            )
            return {"ok": 0, "errmsg": str(exc)}
