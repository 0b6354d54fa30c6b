"""In-memory execution environment for contracts: coins, blocks, storage and responses."""

from __future__ import annotations

import base64
import copy
import dataclasses
import enum
import json
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterator

MOCK_CONTRACT_ADDR = "cosmos2contract"
_MOCK_HEIGHT = 12_345
_MOCK_TIME_NANOS = 1_571_797_419_879_305_533
_MOCK_CHAIN_ID = "cosmos-testnet-14002"

_ADDR_MIN_LEN = 3
_ADDR_MAX_LEN = 54

_CONTRACT_INFO_KEY = "contract_info"


class StdError(Exception):
    """Base error raised by the environment itself."""


class NotFoundError(StdError):
    """A value was requested from storage that is not there."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind


class StdOverflowError(StdError):
    """Checked integer arithmetic overflowed."""

    def __init__(self, operation: str = "add", left: int = 0, right: int = 0) -> None:
        super().__init__(f"Cannot {operation} with {left} and {right}")
        self.operation = operation
        self.left = left
        self.right = right


class InvalidAddressError(StdError):
    """An address failed validation."""

    def __init__(self, addr: str, reason: str) -> None:
        super().__init__(f"Invalid address {addr!r}: {reason}")
        self.addr = addr
        self.reason = reason


@dataclass(frozen=True)
class Coin:
    """An amount of a single denomination."""

    amount: int
    denom: str


def coin(amount: int, denom: str) -> Coin:
    """Build a single coin."""
    return Coin(int(amount), denom)


def coins(amount: int, denom: str) -> list[Coin]:
    """Build a one-element list of coins."""
    return [coin(amount, denom)]


@dataclass
class BlockInfo:
    height: int
    time: int  # nanoseconds since the Unix epoch
    chain_id: str


@dataclass
class ContractInfo:
    address: str


@dataclass
class Env:
    block: BlockInfo
    contract: ContractInfo


@dataclass
class MessageInfo:
    sender: str
    funds: list[Coin] = field(default_factory=list)


@dataclass(frozen=True)
class AtHeight:
    """Expires once the block height reaches ``height``."""

    height: int
    _wire_name: ClassVar[str] = "at_height"
    _wire_newtype: ClassVar[bool] = True

    def is_expired(self, block: BlockInfo) -> bool:
        return block.height >= self.height


@dataclass(frozen=True)
class AtTime:
    """Expires once the block time (nanoseconds) reaches ``time``."""

    time: int
    _wire_name: ClassVar[str] = "at_time"
    _wire_newtype: ClassVar[bool] = True

    def is_expired(self, block: BlockInfo) -> bool:
        return block.time >= self.time


@dataclass(frozen=True)
class Never:
    """Never expires."""

    _wire_name: ClassVar[str] = "never"

    def is_expired(self, block: BlockInfo) -> bool:
        """Check that ``block`` is a block; no block is ever past this expiration."""
        if not isinstance(block, BlockInfo):
            raise TypeError(f"expected BlockInfo, got {type(block).__name__}")
        return False


Expiration = AtHeight | AtTime | Never


def mock_env() -> Env:
    """An environment with a fixed block and contract address."""
    return Env(
        block=BlockInfo(height=_MOCK_HEIGHT, time=_MOCK_TIME_NANOS, chain_id=_MOCK_CHAIN_ID),
        contract=ContractInfo(address=MOCK_CONTRACT_ADDR),
    )


def mock_info(sender: str, funds: list[Coin] | tuple[Coin, ...] = ()) -> MessageInfo:
    """Message info for ``sender`` carrying ``funds``."""
    return MessageInfo(sender=sender, funds=list(funds))


@dataclass(frozen=True)
class BankSend:
    """Transfer of native coins to an address."""

    to_address: str
    amount: tuple[Coin, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", tuple(self.amount))


@dataclass(frozen=True)
class WasmExecute:
    """Call of another contract with a serialized message."""

    contract_addr: str
    msg: bytes
    funds: tuple[Coin, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "funds", tuple(self.funds))


@dataclass
class Response:
    """Messages to dispatch and attributes to emit after an execution."""

    messages: list[Any] = field(default_factory=list)
    attributes: list[tuple[str, str]] = field(default_factory=list)

    def add_attribute(self, key: str, value: Any) -> Response:
        self.attributes.append((key, str(value)))
        return self

    def add_attributes(self, attrs) -> Response:
        for key, value in attrs:
            self.add_attribute(key, value)
        return self

    def add_message(self, msg: Any) -> Response:
        self.messages.append(msg)
        return self

    def add_messages(self, msgs) -> Response:
        self.messages.extend(msgs)
        return self


class MockApi:
    """Address validation with the rules of the test environment."""

    def addr_validate(self, addr: str) -> str:
        if len(addr) < _ADDR_MIN_LEN:
            raise InvalidAddressError(addr, "address too short")
        if len(addr) > _ADDR_MAX_LEN:
            raise InvalidAddressError(addr, "address too long")
        if addr != addr.lower():
            raise InvalidAddressError(addr, "address not normalized")
        return addr


class MockQuerier:
    """Bank balances held per address."""

    def __init__(self) -> None:
        self._balances: dict[str, list[Coin]] = {}

    def update_balance(self, addr: str, balance) -> list[Coin]:
        """Replace the balance of ``addr``; returns the previous one."""
        previous = self._balances.get(addr, [])
        self._balances[addr] = list(balance)
        return previous

    def query_all_balances(self, addr: str) -> list[Coin]:
        return list(self._balances.get(addr, []))


@dataclass
class Deps:
    storage: dict = field(default_factory=dict)
    api: MockApi = field(default_factory=MockApi)
    querier: MockQuerier = field(default_factory=MockQuerier)


def mock_dependencies() -> Deps:
    """Fresh, empty storage with mock api and querier."""
    return Deps()


class Item:
    """A single value stored under a namespace."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace

    def load(self, storage: dict) -> Any:
        try:
            return copy.deepcopy(storage[self.namespace])
        except KeyError:
            raise NotFoundError(self.namespace) from None

    def may_load(self, storage: dict) -> Any:
        if self.namespace not in storage:
            return None
        return copy.deepcopy(storage[self.namespace])

    def save(self, storage: dict, value: Any) -> None:
        storage[self.namespace] = copy.deepcopy(value)

    def update(self, storage: dict, action: Callable[[Any], Any]) -> Any:
        """Load, transform with ``action`` and save; returns the new value."""
        value = action(self.load(storage))
        self.save(storage, value)
        return value


class Map:
    """Values stored under ordered keys within a namespace."""

    def __init__(self, namespace: str) -> None:
        self.namespace = namespace

    def _slot(self, key: Any) -> tuple[str, Any]:
        return (self.namespace, key)

    def load(self, storage: dict, key: Any) -> Any:
        try:
            return copy.deepcopy(storage[self._slot(key)])
        except KeyError:
            raise NotFoundError(f"{self.namespace}[{key!r}]") from None

    def may_load(self, storage: dict, key: Any) -> Any:
        slot = self._slot(key)
        if slot not in storage:
            return None
        return copy.deepcopy(storage[slot])

    def save(self, storage: dict, key: Any, value: Any) -> None:
        storage[self._slot(key)] = copy.deepcopy(value)

    def update(self, storage: dict, key: Any, action: Callable[[Any], Any]) -> Any:
        """Pass the current value (or None) to ``action`` and save its result."""
        value = action(self.may_load(storage, key))
        self.save(storage, key, value)
        return value

    def remove(self, storage: dict, key: Any) -> None:
        storage.pop(self._slot(key), None)

    def _keys(self, storage: dict) -> list[Any]:
        return sorted(
            slot[1]
            for slot in storage
            if isinstance(slot, tuple) and len(slot) == 2 and slot[0] == self.namespace
        )

    def range(
        self, storage: dict, start_after: Any = None, limit: int | None = None
    ) -> Iterator[tuple[Any, Any]]:
        """Yield ``(key, value)`` in ascending key order, after ``start_after``."""
        keys = self._keys(storage)
        if start_after is not None:
            keys = [key for key in keys if key > start_after]
        if limit is not None:
            keys = keys[:limit]
        for key in keys:
            yield key, copy.deepcopy(storage[self._slot(key)])

    def prefix_range(self, storage: dict, prefix: Any) -> Iterator[tuple[Any, Any]]:
        """Yield ``(rest, value)`` for composite keys starting with ``prefix``."""
        for key in self._keys(storage):
            if isinstance(key, tuple) and key and key[0] == prefix:
                rest = key[1] if len(key) == 2 else key[1:]
                yield rest, copy.deepcopy(storage[self._slot(key)])


def set_contract_version(storage: dict, name: str, version: str) -> None:
    """Record the contract name and version."""
    storage[_CONTRACT_INFO_KEY] = {"contract": name, "version": version}


def get_contract_version(storage: dict) -> dict[str, str]:
    """Return the recorded contract name and version."""
    try:
        return dict(storage[_CONTRACT_INFO_KEY])
    except KeyError:
        raise NotFoundError(_CONTRACT_INFO_KEY) from None


def _to_wire(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = dataclasses.fields(value)
        tag = getattr(type(value), "_wire_name", None)
        if tag and getattr(type(value), "_wire_newtype", False) and len(fields) == 1:
            return {tag: _to_wire(getattr(value, fields[0].name))}
        body = {f.name: _to_wire(getattr(value, f.name)) for f in fields}
        return {tag: body} if tag else body
    if isinstance(value, enum.Enum):
        return _to_wire(value.value)
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, dict):
        return {str(k): _to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(v) for v in value]
    return value


def to_binary(value: Any) -> bytes:
    """Serialize a value to JSON bytes."""
    return json.dumps(_to_wire(value), separators=(",", ":")).encode("utf-8")


def from_binary(data: bytes | str) -> Any:
    """Parse JSON bytes into plain Python values."""
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise StdError(f"Error parsing binary: {exc}") from exc