"""Quadratic funding contract: proposals collect votes and a budget is matched quadratically."""

from __future__ import annotations

from contractsim.chain import (
    BankSend,
    Deps,
    Env,
    MessageInfo,
    Response,
    coin,
    to_binary,
)
from contractsim.funding_model import (
    CONFIG,
    PROPOSAL_SEQ,
    PROPOSALS,
    VOTES,
    AddressAlreadyVotedProject,
    AllProposals,
    AllProposalsResponse,
    Config,
    CreateProposal,
    InitMsg,
    Proposal,
    ProposalByID,
    ProposalNotFound,
    ProposalPeriodExpired,
    QuadraticFundingAlgorithm,
    RawGrant,
    TriggerDistribution,
    Unauthorized,
    Vote,
    VoteProposal,
    VotingPeriodExpired,
    VotingPeriodNotExpired,
    calculate_clr,
    extract_budget_coin,
)


def _validated_whitelist(deps: Deps, whitelist: list[str] | None) -> list[str] | None:
    if whitelist is None:
        return None
    return [deps.api.addr_validate(addr) for addr in whitelist]


def init(deps: Deps, env: Env, info: MessageInfo, msg: InitMsg) -> Response:
    """Validate the instantiation message and store the configuration."""
    msg.validate(env)
    budget = extract_budget_coin(info.funds, msg.budget_denom)
    config = Config(
        admin=msg.admin,
        leftover_addr=msg.leftover_addr,
        create_proposal_whitelist=_validated_whitelist(deps, msg.create_proposal_whitelist),
        vote_proposal_whitelist=_validated_whitelist(deps, msg.vote_proposal_whitelist),
        voting_period=msg.voting_period,
        proposal_period=msg.proposal_period,
        budget=budget,
        algorithm=msg.algorithm,
    )
    CONFIG.save(deps.storage, config)
    PROPOSAL_SEQ.save(deps.storage, 0)
    return Response()


def execute(deps: Deps, env: Env, info: MessageInfo, msg) -> Response:
    match msg:
        case CreateProposal(
            title=title, description=description, metadata=metadata, fund_address=fund_address
        ):
            return execute_create_proposal(
                deps, env, info, title, description, metadata, fund_address
            )
        case VoteProposal(proposal_id=proposal_id):
            return execute_vote_proposal(deps, env, info, proposal_id)
        case TriggerDistribution():
            return execute_trigger_distribution(deps, env, info)
    raise TypeError(f"unsupported execute message: {msg!r}")


def execute_create_proposal(
    deps: Deps,
    env: Env,
    info: MessageInfo,
    title: str,
    description: str,
    metadata: bytes | None,
    fund_address: str,
) -> Response:
    config: Config = CONFIG.load(deps.storage)
    whitelist = config.create_proposal_whitelist
    if whitelist is not None and info.sender not in whitelist:
        raise Unauthorized()
    if config.proposal_period.is_expired(env.block):
        raise ProposalPeriodExpired()
    deps.api.addr_validate(fund_address)

    proposal_id = PROPOSAL_SEQ.load(deps.storage) + 1
    PROPOSAL_SEQ.save(deps.storage, proposal_id)
    proposal = Proposal(
        id=proposal_id,
        title=title,
        description=description,
        metadata=metadata,
        fund_address=fund_address,
    )
    PROPOSALS.save(deps.storage, proposal_id, proposal)

    return Response().add_attributes(
        [
            ("action", "create_proposal"),
            ("title", title),
            ("proposal_id", proposal_id),
        ]
    )


def execute_vote_proposal(
    deps: Deps, env: Env, info: MessageInfo, proposal_id: int
) -> Response:
    config: Config = CONFIG.load(deps.storage)
    whitelist = config.vote_proposal_whitelist
    if whitelist is not None and info.sender not in whitelist:
        raise Unauthorized()
    if config.voting_period.is_expired(env.block):
        raise VotingPeriodExpired()

    fund = extract_budget_coin(info.funds, config.budget.denom)

    proposal: Proposal | None = PROPOSALS.may_load(deps.storage, proposal_id)
    if proposal is None:
        raise ProposalNotFound()

    vote_key = (proposal_id, info.sender)
    if VOTES.may_load(deps.storage, vote_key) is not None:
        raise AddressAlreadyVotedProject()

    proposal.collected_funds += fund.amount
    PROPOSALS.save(deps.storage, proposal_id, proposal)

    vote = Vote(proposal_id=proposal_id, voter=info.sender, fund=fund)
    VOTES.save(deps.storage, vote_key, vote)

    return Response().add_attributes(
        [
            ("action", "vote_proposal"),
            ("proposal_key", proposal_id),
            ("voter", vote.voter),
            ("collected_fund", proposal.collected_funds),
        ]
    )


def execute_trigger_distribution(deps: Deps, env: Env, info: MessageInfo) -> Response:
    config: Config = CONFIG.load(deps.storage)
    if info.sender != config.admin:
        raise Unauthorized()
    if not config.voting_period.is_expired(env.block):
        raise VotingPeriodNotExpired()

    grants = [
        RawGrant(
            addr=proposal.fund_address,
            funds=[vote.fund.amount for _, vote in VOTES.prefix_range(deps.storage, proposal.id)],
            collected_vote_funds=proposal.collected_funds,
        )
        for _, proposal in PROPOSALS.range(deps.storage)
    ]

    match config.algorithm:
        case QuadraticFundingAlgorithm():
            distributed, leftover = calculate_clr(grants, config.budget.amount)
        case _:
            raise TypeError(f"unsupported algorithm: {config.algorithm!r}")

    denom = config.budget.denom
    messages = [
        BankSend(
            to_address=grant.addr,
            amount=[coin(grant.grant + grant.collected_vote_funds, denom)],
        )
        for grant in distributed
    ]
    messages.append(BankSend(to_address=config.leftover_addr, amount=[coin(leftover, denom)]))

    return (
        Response()
        .add_messages(messages)
        .add_attribute("action", "trigger_distribution")
    )


def query(deps: Deps, env: Env, msg) -> bytes:
    match msg:
        case ProposalByID(id=proposal_id):
            return to_binary(query_proposal_id(deps, proposal_id))
        case AllProposals():
            return to_binary(query_all_proposals(deps))
    raise TypeError(f"unsupported query message: {msg!r}")


def query_proposal_id(deps: Deps, id: int) -> Proposal:
    return PROPOSALS.load(deps.storage, id)


def query_all_proposals(deps: Deps) -> AllProposalsResponse:
    return AllProposalsResponse(
        proposals=[proposal for _, proposal in PROPOSALS.range(deps.storage)]
    )