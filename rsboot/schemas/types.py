from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

PRIMARY_STATE = 1


class ReplicaSetMember(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(alias="_id")
    host: str
    priority: Union[int, float] = Field(default=1)


class ReplicaSetConfig(BaseModel):
    """Document handed to ``replSetInitiate``; built once and never mutated."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    version: int = Field(default=1)
    members: List[ReplicaSetMember]

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


class ReplicaSetStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ok: int
    my_state: Optional[int] = Field(default=None, alias="myState")
    set_name: Optional[str] = Field(default=None, alias="set")

    @property
    def is_primary(self) -> bool:
        return self.ok == 1 and self.my_state == PRIMARY_STATE


@dataclass
class StatusQuery:
    """Outcome of one status query: either a status or the error it raised."""

    status: Optional[ReplicaSetStatus] = None
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.status is not None and self.error is None

    @property
    def is_primary(self) -> bool:
        return self.succeeded and self.status.is_primary
