"""Quadratic funding: errors, matching algorithm, messages and stored state."""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import ClassVar

from contractsim.chain import Coin, Env, Expiration, Item, Map, Never


class ContractError(Exception):
    """Base error of the quadratic funding contract."""


class Unauthorized(ContractError):
    def __init__(self) -> None:
        super().__init__("Unauthorized")


class ProposalNotFound(ContractError):
    def __init__(self) -> None:
        super().__init__("Proposal not found")


class ProposalPeriodExpired(ContractError):
    def __init__(self) -> None:
        super().__init__("Proposal period expired")


class VotingPeriodExpired(ContractError):
    def __init__(self) -> None:
        super().__init__("Voting period expired")


class VotingPeriodNotExpired(ContractError):
    def __init__(self) -> None:
        super().__init__("Voting period not expired")


class WrongCoinSent(ContractError):
    def __init__(self) -> None:
        super().__init__("Wrong coin sent")


class WrongFundCoin(ContractError):
    def __init__(self, expected: str, got: str) -> None:
        super().__init__(f"Wrong fund coin (expected: {expected}, got: {got})")
        self.expected = expected
        self.got = got


class AddressAlreadyVotedProject(ContractError):
    def __init__(self) -> None:
        super().__init__("Address already voted project")


class CLRConstrainRequired(ContractError):
    def __init__(self) -> None:
        super().__init__("CLR algorithm requires a budget constrain")


@dataclass(frozen=True)
class QuadraticFundingAlgorithm:
    """Capital constrained liberal radicalism, the only supported algorithm."""

    parameter: str = ""
    _wire_name: ClassVar[str] = "capital_constrained_liberal_radicalism"


@dataclass
class RawGrant:
    addr: str
    funds: list[int]
    collected_vote_funds: int


@dataclass
class CalculatedGrant:
    addr: str
    grant: int
    collected_vote_funds: int


def _matched_sums(grants: Iterable[RawGrant]) -> list[CalculatedGrant]:
    """Square of the sum of the integer square roots of each grant's funds."""
    matched = []
    for grant in grants:
        sum_sqrts = sum(math.isqrt(v) for v in grant.funds)
        matched.append(
            CalculatedGrant(
                addr=grant.addr,
                grant=sum_sqrts * sum_sqrts,
                collected_vote_funds=grant.collected_vote_funds,
            )
        )
    return matched


def _constrain_by_budget(grants: list[CalculatedGrant], budget: int) -> list[CalculatedGrant]:
    raw_total = sum(g.grant for g in grants)
    return [
        CalculatedGrant(
            addr=g.addr,
            grant=(g.grant * budget) // raw_total,
            collected_vote_funds=g.collected_vote_funds,
        )
        for g in grants
    ]


def calculate_clr(
    grants: Iterable[RawGrant], budget: int | None
) -> tuple[list[CalculatedGrant], int]:
    """Distribute ``budget`` over grants; returns the grants and the leftover."""
    if budget is None:
        raise CLRConstrainRequired()
    constrained = _constrain_by_budget(_matched_sums(grants), budget)
    leftover = budget - sum(c.grant for c in constrained)
    return constrained, leftover


def extract_budget_coin(sent_funds: Sequence[Coin], denom: str) -> Coin:
    """Return the single coin sent, checking that its denomination is ``denom``."""
    if len(sent_funds) != 1:
        raise WrongCoinSent()
    (sent,) = sent_funds
    if sent.denom != denom:
        raise WrongFundCoin(expected=denom, got=sent.denom)
    return sent


@dataclass
class InitMsg:
    admin: str
    leftover_addr: str
    create_proposal_whitelist: list[str] | None = None
    vote_proposal_whitelist: list[str] | None = None
    voting_period: Expiration = field(default_factory=Never)
    proposal_period: Expiration = field(default_factory=Never)
    budget_denom: str = ""
    algorithm: QuadraticFundingAlgorithm = field(default_factory=QuadraticFundingAlgorithm)

    def validate(self, env: Env) -> None:
        """Raise if the proposal or voting period has already expired."""
        if self.proposal_period.is_expired(env.block):
            raise ProposalPeriodExpired()
        if self.voting_period.is_expired(env.block):
            raise VotingPeriodExpired()


@dataclass
class CreateProposal:
    title: str
    description: str
    metadata: bytes | None
    fund_address: str
    _wire_name: ClassVar[str] = "create_proposal"


@dataclass
class VoteProposal:
    proposal_id: int
    _wire_name: ClassVar[str] = "vote_proposal"


@dataclass
class TriggerDistribution:
    _wire_name: ClassVar[str] = "trigger_distribution"


@dataclass
class ProposalByID:
    id: int
    _wire_name: ClassVar[str] = "proposal_by_i_d"


@dataclass
class AllProposals:
    _wire_name: ClassVar[str] = "all_proposals"


@dataclass
class Proposal:
    id: int = 0
    title: str = ""
    description: str = ""
    metadata: bytes | None = None
    fund_address: str = ""
    collected_funds: int = 0


@dataclass
class AllProposalsResponse:
    proposals: list[Proposal] = field(default_factory=list)


@dataclass
class Config:
    admin: str
    leftover_addr: str
    create_proposal_whitelist: list[str] | None
    vote_proposal_whitelist: list[str] | None
    voting_period: Expiration
    proposal_period: Expiration
    budget: Coin
    algorithm: QuadraticFundingAlgorithm


@dataclass
class Vote:
    proposal_id: int
    voter: str
    fund: Coin


CONFIG = Item("config")
PROPOSALS = Map("proposal")
PROPOSAL_SEQ = Item("proposal_seq")
VOTES = Map("votes")