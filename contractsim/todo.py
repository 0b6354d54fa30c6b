"""To-do list contract: an owner keeps a list of prioritised entries."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar

from contractsim.chain import (
    Deps,
    Env,
    InvalidAddressError,
    Item,
    Map,
    MessageInfo,
    Response,
    set_contract_version,
    to_binary,
)

CONTRACT_NAME = "crates.io:cw-to-do-list"
CONTRACT_VERSION = "0.1.0"

MAX_LIMIT = 30
DEFAULT_LIMIT = 10


class ContractError(Exception):
    """Base error of the to-do list contract."""


class Unauthorized(ContractError):
    def __init__(self) -> None:
        super().__init__("Unauthorized")


class CustomError(ContractError):
    def __init__(self, val: str) -> None:
        super().__init__(f'Custom Error val: "{val}"')
        self.val = val


class Status(enum.Enum):
    TODO = "ToDo"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    CANCELLED = "Cancelled"


class Priority(enum.Enum):
    NONE = "None"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class Config:
    owner: str


@dataclass
class Entry:
    id: int
    description: str
    status: Status
    priority: Priority


CONFIG = Item("config")
ENTRY_SEQ = Item("entry_seq")
LIST = Map("list")


@dataclass
class InstantiateMsg:
    owner: str | None = None


@dataclass
class NewEntry:
    description: str
    priority: Priority | None = None
    _wire_name: ClassVar[str] = "new_entry"


@dataclass
class UpdateEntry:
    id: int
    description: str | None = None
    status: Status | None = None
    priority: Priority | None = None
    _wire_name: ClassVar[str] = "update_entry"


@dataclass
class DeleteEntry:
    id: int
    _wire_name: ClassVar[str] = "delete_entry"


@dataclass
class QueryEntry:
    id: int
    _wire_name: ClassVar[str] = "query_entry"


@dataclass
class QueryList:
    start_after: int | None = None
    limit: int | None = None
    _wire_name: ClassVar[str] = "query_list"


@dataclass
class EntryResponse:
    id: int
    description: str
    status: Status
    priority: Priority


@dataclass
class ListResponse:
    entries: list[Entry] = field(default_factory=list)


def instantiate(deps: Deps, env: Env, info: MessageInfo, msg: InstantiateMsg) -> Response:
    """Store the owner: the given address if it is valid, the sender otherwise."""
    set_contract_version(deps.storage, CONTRACT_NAME, CONTRACT_VERSION)

    owner = info.sender
    if msg.owner is not None:
        try:
            owner = deps.api.addr_validate(msg.owner)
        except InvalidAddressError:
            owner = info.sender

    CONFIG.save(deps.storage, Config(owner=owner))
    ENTRY_SEQ.save(deps.storage, 0)

    return (
        Response()
        .add_attribute("method", "instantiate")
        .add_attribute("owner", owner)
    )


def execute(deps: Deps, env: Env, info: MessageInfo, msg) -> Response:
    match msg:
        case NewEntry(description=description, priority=priority):
            return execute_create_new_entry(deps, info, description, priority)
        case UpdateEntry(id=entry_id, description=description, status=status, priority=priority):
            return execute_update_entry(deps, info, entry_id, description, status, priority)
        case DeleteEntry(id=entry_id):
            return execute_delete_entry(deps, info, entry_id)
    raise TypeError(f"unsupported execute message: {msg!r}")


def _require_owner(deps: Deps, info: MessageInfo) -> None:
    config: Config = CONFIG.load(deps.storage)
    if info.sender != config.owner:
        raise Unauthorized()


def execute_create_new_entry(
    deps: Deps, info: MessageInfo, description: str, priority: Priority | None
) -> Response:
    _require_owner(deps, info)
    entry_id = ENTRY_SEQ.update(deps.storage, lambda current: current + 1)
    entry = Entry(
        id=entry_id,
        description=description,
        priority=priority if priority is not None else Priority.NONE,
        status=Status.TODO,
    )
    LIST.save(deps.storage, entry_id, entry)
    return (
        Response()
        .add_attribute("method", "execute_create_new_entry")
        .add_attribute("new_entry_id", entry_id)
    )


def execute_update_entry(
    deps: Deps,
    info: MessageInfo,
    id: int,
    description: str | None,
    status: Status | None,
    priority: Priority | None,
) -> Response:
    _require_owner(deps, info)
    entry: Entry = LIST.load(deps.storage, id)
    updated = Entry(
        id=id,
        description=description if description is not None else entry.description,
        status=status if status is not None else entry.status,
        priority=priority if priority is not None else entry.priority,
    )
    LIST.save(deps.storage, id, updated)
    return (
        Response()
        .add_attribute("method", "execute_update_entry")
        .add_attribute("updated_entry_id", id)
    )


def execute_delete_entry(deps: Deps, info: MessageInfo, id: int) -> Response:
    _require_owner(deps, info)
    LIST.remove(deps.storage, id)
    return (
        Response()
        .add_attribute("method", "execute_delete_entry")
        .add_attribute("deleted_entry_id", id)
    )


def query(deps: Deps, env: Env, msg) -> bytes:
    match msg:
        case QueryEntry(id=entry_id):
            return to_binary(query_entry(deps, entry_id))
        case QueryList(start_after=start_after, limit=limit):
            return to_binary(query_list(deps, start_after, limit))
    raise TypeError(f"unsupported query message: {msg!r}")


def query_entry(deps: Deps, id: int) -> EntryResponse:
    entry: Entry = LIST.load(deps.storage, id)
    return EntryResponse(
        id=entry.id,
        description=entry.description,
        status=entry.status,
        priority=entry.priority,
    )


def query_list(deps: Deps, start_after: int | None, limit: int | None) -> ListResponse:
    """Entries in ascending id order after ``start_after``, at most ``MAX_LIMIT``."""
    count = min(DEFAULT_LIMIT if limit is None else limit, MAX_LIMIT)
    return ListResponse(
        entries=[entry for _, entry in LIST.range(deps.storage, start_after, count)]
    )