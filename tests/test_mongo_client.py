from pathlib import Path
import sys

from pymongo.errors import NetworkTimeout, OperationFailure

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rsboot.config_loader import Settings
from rsboot.mongo_client import AdminConnection, get_client
from rsboot.schemas.types import ReplicaSetConfig


class FakeAdminDb:
    def __init__(self, responses):
        self._responses = responses
        self.commands = []

    def command(self, name, *args):
        self.commands.append((name, *args))
        resp = self._responses[name]
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeClient:
    def __init__(self, responses):
        self.admin = FakeAdminDb(responses)


CONFIG = ReplicaSetConfig.model_validate(
    {"_id": "rs0", "version": 1, "members": [{"_id": 0, "host": "db:27017", "priority": 1}]}
)


def test_get_status_parses_response():
    client = FakeClient({"replSetGetStatus": {"ok": 1.0, "myState": 1, "set": "rs0", "members": []}})

    query = AdminConnection(client).get_status()

    assert query.succeeded
    assert query.is_primary
    assert query.status.set_name == "rs0"
    assert client.admin.commands == [("replSetGetStatus",)]


def test_get_status_returns_error_value():
    err = OperationFailure("no replset config has been received", code=94)
    query = AdminConnection(FakeClient({"replSetGetStatus": err})).get_status()

    assert not query.succeeded
    assert not query.is_primary
    assert query.error is err


def test_initiate_sends_config_document():
    client = FakeClient({"replSetInitiate": {"ok": 1.0}})

    result = AdminConnection(client).initiate(CONFIG)

    assert result == {"ok": 1.0}
    assert client.admin.commands == [
        (
            "replSetInitiate",
            {"_id": "rs0", "version": 1, "members": [{"_id": 0, "host": "db:27017", "priority": 1}]},
        )
    ]


def test_initiate_returns_server_failure_details():
    details = {"ok": 0.0, "errmsg": "already initialized", "code": 23}
    err = OperationFailure("already initialized", code=23, details=details)

    result = AdminConnection(FakeClient({"replSetInitiate": err})).initiate(CONFIG)

    assert result == details


def test_initiate_network_error_is_not_ok():
    result = AdminConnection(FakeClient({"replSetInitiate": NetworkTimeout("timed out")})).initiate(CONFIG)

    assert result["ok"] == 0
    assert "timed out" in result["errmsg"]


def test_get_client_uses_direct_connection():
    s = Settings(mongo={"uri": "mongodb://example:27017", "server_selection_timeout_ms": 1234})

    client = get_client(s, host="other:27018")
    try:
        assert client.options.direct_connection is True
        assert client.options.server_selection_timeout == 1.234
        assert ("other", 27018) in client.topology_description.server_descriptions()
    finally:
        client.close()
