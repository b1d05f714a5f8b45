from __future__ import annotations
from pathlib import Path
import logging
import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field
import yaml

from .schemas.types import ReplicaSetConfig, ReplicaSetMember

logger = logging.getLogger(__name__)

DEFAULT_MEMBER_HOST = "ainoval-mongo:27017"


def _default_members() -> list[ReplicaSetMember]:
    return [ReplicaSetMember(id=0, host=DEFAULT_MEMBER_HOST, priority=1)]


class MongoConfig(BaseModel):
    uri: str = Field(default="mongodb://localhost:27017/?directConnection=true")
    server_selection_timeout_ms: int = Field(default=5000, ge=0)


class ReplicaSetSettings(BaseModel):
    id: str = Field(default="rs0")
    version: int = Field(default=1, ge=1)
    members: list[ReplicaSetMember] = Field(default_factory=_default_members)

    def to_config(self) -> ReplicaSetConfig:
        return ReplicaSetConfig(id=self.id, version=self.version, members=self.members)


class TimingConfig(BaseModel):
    initial_delay_ms: int = Field(default=5000, ge=0)
    poll_interval_ms: int = Field(default=2000, ge=0)
    # 0 polls until primary with no bound
    max_poll_attempts: int = Field(default=0, ge=0)


class Settings(BaseModel):
    mongo: MongoConfig = Field(default_factory=MongoConfig)
    replica_set: ReplicaSetSettings = Field(default_factory=ReplicaSetSettings)
    timing: TimingConfig = Field(default_factory=TimingConfig)


def _load_yaml(path: str | os.PathLike) -> dict:
    p = Path(path)
    if not p.exists():
        logger.error(f"Config file {p} does not exist")
        return {}
    with p.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _override_member_host(replica_set: dict, host: str) -> dict:
    members = replica_set.get("members") or [
        m.model_dump(by_alias=True) for m in _default_members()
    ]
    if len(members) != 1:
        raise ValueError("RS_MEMBER_HOST only applies to a single-member replica set")
    return {**replica_set, "members": [{**members[0], "host": host}]}


def load_settings(config_path: str = "config.yaml") -> Settings:
    load_dotenv(override=False)

    data = _load_yaml(config_path)

    mongo = dict(data.get("mongo") or {})
    if os.getenv("MONGODB_URI"):
        mongo["uri"] = os.environ["MONGODB_URI"]

    replica_set = dict(data.get("replica_set") or {})
    if os.getenv("RS_NAME"):
        replica_set["id"] = os.environ["RS_NAME"]
    if os.getenv("RS_MEMBER_HOST"):
        replica_set = _override_member_host(replica_set, os.environ["RS_MEMBER_HOST"])

    merged = {
        **data,
        "mongo": mongo,
        "replica_set": replica_set,
        "timing": data.get("timing") or {},
    }
    return Settings(**merged)
