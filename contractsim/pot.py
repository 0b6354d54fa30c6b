"""Pot contract: collects cw20 tokens per pot and releases them once a threshold is met."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from contractsim.chain import (
    Deps,
    Env,
    InvalidAddressError,
    Item,
    Map,
    MessageInfo,
    Response,
    StdError,
    StdOverflowError,
    WasmExecute,
    from_binary,
    set_contract_version,
    to_binary,
)

CONTRACT_NAME = "crates.io:cw20-example"
CONTRACT_VERSION = "0.1.0"

_UINT64_MAX = 2**64 - 1


class ContractError(Exception):
    """Base error of the pot contract."""


class Unauthorized(ContractError):
    def __init__(self) -> None:
        super().__init__("Unauthorized")


@dataclass
class Config:
    owner: str
    cw20_addr: str


@dataclass
class Pot:
    """Tokens collected for ``target_addr`` until ``threshold`` is reached."""

    target_addr: str
    threshold: int
    collected: int = 0


CONFIG = Item("config")
POT_SEQ = Item("pot_seq")
POTS = Map("pot")


@dataclass
class InstantiateMsg:
    """``cw20_addr`` is the only token contract allowed to send to pots."""

    cw20_addr: str
    admin: str | None = None


@dataclass
class CreatePot:
    target_addr: str
    threshold: int
    _wire_name: ClassVar[str] = "create_pot"


@dataclass
class Cw20ReceiveMsg:
    """Notification from a cw20 token contract that tokens were sent here."""

    sender: str
    amount: int
    msg: bytes


@dataclass
class Receive:
    msg: Cw20ReceiveMsg
    _wire_name: ClassVar[str] = "receive"
    _wire_newtype: ClassVar[bool] = True


@dataclass
class Send:
    """Inner message of a cw20 send: add the tokens to pot ``id``."""

    id: int
    _wire_name: ClassVar[str] = "send"


@dataclass
class GetPot:
    id: int
    _wire_name: ClassVar[str] = "get_pot"


@dataclass
class PotResponse:
    target_addr: str
    threshold: int
    collected: int


@dataclass
class Cw20Transfer:
    """Transfer message understood by a cw20 token contract."""

    recipient: str
    amount: int
    _wire_name: ClassVar[str] = "transfer"


def save_pot(deps: Deps, pot: Pot) -> int:
    """Store ``pot`` under the next sequence id and return that id."""
    current = POT_SEQ.load(deps.storage)
    if current + 1 > _UINT64_MAX:
        raise StdOverflowError("add", current, 1)
    pot_id = current + 1
    POT_SEQ.save(deps.storage, pot_id)
    POTS.save(deps.storage, pot_id, pot)
    return pot_id


def instantiate(deps: Deps, env: Env, info: MessageInfo, msg: InstantiateMsg) -> Response:
    """Store the owner (valid admin or the sender) and the allowed cw20 address."""
    set_contract_version(deps.storage, CONTRACT_NAME, CONTRACT_VERSION)

    owner = info.sender
    if msg.admin is not None:
        try:
            owner = deps.api.addr_validate(msg.admin)
        except InvalidAddressError:
            owner = info.sender

    config = Config(owner=owner, cw20_addr=deps.api.addr_validate(msg.cw20_addr))
    CONFIG.save(deps.storage, config)
    POT_SEQ.save(deps.storage, 0)

    return (
        Response()
        .add_attribute("method", "instantiate")
        .add_attribute("owner", owner)
        .add_attribute("cw20_addr", msg.cw20_addr)
    )


def execute(deps: Deps, env: Env, info: MessageInfo, msg) -> Response:
    match msg:
        case CreatePot(target_addr=target_addr, threshold=threshold):
            return execute_create_pot(deps, info, target_addr, threshold)
        case Receive(msg=wrapped):
            return execute_receive(deps, info, wrapped)
    raise TypeError(f"unsupported execute message: {msg!r}")


def execute_create_pot(deps: Deps, info: MessageInfo, target_addr: str, threshold: int) -> Response:
    config: Config = CONFIG.load(deps.storage)
    if config.owner != info.sender:
        raise Unauthorized()
    pot = Pot(
        target_addr=deps.api.addr_validate(target_addr),
        threshold=threshold,
        collected=0,
    )
    save_pot(deps, pot)
    return (
        Response()
        .add_attribute("action", "execute_create_pot")
        .add_attribute("target_addr", target_addr)
        .add_attribute("threshold_amount", threshold)
    )


def _parse_receive_msg(data: bytes) -> Send:
    match from_binary(data):
        case {"send": {"id": pot_id}}:
            try:
                return Send(id=int(pot_id))
            except (TypeError, ValueError) as exc:
                raise StdError(f"Error parsing pot id: {pot_id!r}") from exc
    raise StdError("Error parsing receive message: unknown variant")


def execute_receive(deps: Deps, info: MessageInfo, wrapped: Cw20ReceiveMsg) -> Response:
    config: Config = CONFIG.load(deps.storage)
    if config.cw20_addr != info.sender:
        raise Unauthorized()
    match _parse_receive_msg(wrapped.msg):
        case Send(id=pot_id):
            return receive_send(deps, pot_id, wrapped.amount, info.sender)
    raise TypeError("unsupported receive message")


def receive_send(deps: Deps, pot_id: int, amount: int, cw20_addr: str) -> Response:
    """Add ``amount`` to the pot; transfer everything collected once the threshold is met."""
    pot: Pot = POTS.load(deps.storage, pot_id)
    pot.collected += amount
    POTS.save(deps.storage, pot_id, pot)

    response = (
        Response()
        .add_attribute("action", "receive_send")
        .add_attribute("pot_id", pot_id)
        .add_attribute("collected", pot.collected)
        .add_attribute("threshold", pot.threshold)
    )
    if pot.collected >= pot.threshold:
        transfer = Cw20Transfer(recipient=pot.target_addr, amount=pot.collected)
        response.add_message(
            WasmExecute(contract_addr=cw20_addr, msg=to_binary(transfer), funds=())
        )
    return response


def query(deps: Deps, env: Env, msg) -> bytes:
    match msg:
        case GetPot(id=pot_id):
            return to_binary(query_pot(deps, pot_id))
    raise TypeError(f"unsupported query message: {msg!r}")


def query_pot(deps: Deps, id: int) -> PotResponse:
    pot: Pot = POTS.load(deps.storage, id)
    return PotResponse(
        target_addr=pot.target_addr,
        collected=pot.collected,
        threshold=pot.threshold,
    )