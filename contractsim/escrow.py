"""Escrow contract: an arbiter releases funds to a recipient, or they are refunded after expiry."""

from __future__ import annotations

from dataclasses import dataclass

from contractsim.chain import (
    BankSend,
    Coin,
    Deps,
    Env,
    Expiration,
    Item,
    MessageInfo,
    Response,
    set_contract_version,
    to_binary,
)

CONTRACT_NAME = "crates.io:cw20-merkle-airdrop"
CONTRACT_VERSION = "0.1.0"
CONFIG_KEY = "config"


class ContractError(Exception):
    """Base error of the escrow contract."""


class Unauthorized(ContractError):
    def __init__(self) -> None:
        super().__init__("Unauthorized")


class Expired(ContractError):
    def __init__(self, expiration: Expiration) -> None:
        super().__init__(f"Escrow expired (expiration: {expiration!r})")
        self.expiration = expiration


class NotExpired(ContractError):
    def __init__(self) -> None:
        super().__init__("Escrow not expired")


@dataclass
class Config:
    arbiter: str
    recipient: str
    source: str
    expiration: Expiration | None = None


CONFIG = Item(CONFIG_KEY)


@dataclass
class InstantiateMsg:
    arbiter: str
    recipient: str
    expiration: Expiration | None = None


@dataclass
class Approve:
    """Release ``quantity``, or the whole balance when it is None."""

    quantity: list[Coin] | None = None
    _wire_name = "approve"


@dataclass
class Refund:
    _wire_name = "refund"


@dataclass
class ArbiterQuery:
    _wire_name = "arbiter"


@dataclass
class ArbiterResponse:
    arbiter: str


def instantiate(deps: Deps, env: Env, info: MessageInfo, msg: InstantiateMsg) -> Response:
    config = Config(
        arbiter=deps.api.addr_validate(msg.arbiter),
        recipient=deps.api.addr_validate(msg.recipient),
        source=info.sender,
        expiration=msg.expiration,
    )
    set_contract_version(deps.storage, CONTRACT_NAME, CONTRACT_VERSION)
    if msg.expiration is not None and msg.expiration.is_expired(env.block):
        raise Expired(msg.expiration)
    CONFIG.save(deps.storage, config)
    return Response()


def execute(deps: Deps, env: Env, info: MessageInfo, msg) -> Response:
    match msg:
        case Approve(quantity=quantity):
            return _execute_approve(deps, env, info, quantity)
        case Refund():
            return _execute_refund(deps, env, info)
    raise TypeError(f"unsupported execute message: {msg!r}")


def _execute_approve(
    deps: Deps, env: Env, info: MessageInfo, quantity: list[Coin] | None
) -> Response:
    config: Config = CONFIG.load(deps.storage)
    if info.sender != config.arbiter:
        raise Unauthorized()
    if config.expiration is not None and config.expiration.is_expired(env.block):
        raise Expired(config.expiration)
    if quantity is None:
        amount = deps.querier.query_all_balances(env.contract.address)
    else:
        amount = list(quantity)
    return _send_tokens(config.recipient, amount, "approve")


def _execute_refund(deps: Deps, env: Env, info: MessageInfo) -> Response:
    config: Config = CONFIG.load(deps.storage)
    # anyone may refund once the escrow has expired
    if config.expiration is None or not config.expiration.is_expired(env.block):
        raise NotExpired()
    balance = deps.querier.query_all_balances(env.contract.address)
    return _send_tokens(config.source, balance, "refund")


def _send_tokens(to_address: str, amount: list[Coin], action: str) -> Response:
    return (
        Response()
        .add_message(BankSend(to_address=to_address, amount=amount))
        .add_attribute("action", action)
        .add_attribute("to", to_address)
    )


def query(deps: Deps, env: Env, msg) -> bytes:
    match msg:
        case ArbiterQuery():
            return to_binary(query_arbiter(deps))
    raise TypeError(f"unsupported query message: {msg!r}")


def query_arbiter(deps: Deps) -> ArbiterResponse:
    config: Config = CONFIG.load(deps.storage)
    return ArbiterResponse(arbiter=config.arbiter)