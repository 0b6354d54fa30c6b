import pytest

from contractsim.chain import AtHeight, Never, coin, from_binary, mock_env, mock_info, to_binary
from contractsim.funding_model import (
    AllProposals,
    CalculatedGrant,
    CLRConstrainRequired,
    InitMsg,
    Proposal,
    ProposalByID,
    ProposalPeriodExpired,
    QuadraticFundingAlgorithm,
    RawGrant,
    TriggerDistribution,
    VoteProposal,
    VotingPeriodExpired,
    WrongCoinSent,
    WrongFundCoin,
    calculate_clr,
    extract_budget_coin,
)


def _grants(votes_by_addr):
    return [
        RawGrant(addr=addr, funds=list(votes), collected_vote_funds=sum(votes))
        for addr, votes in votes_by_addr
    ]


def test_clr_1():
    grants = _grants(
        [
            ("proposal1", [7200]),
            ("proposal2", [12345]),
            ("proposal3", [4456]),
            ("proposal4", [60000]),
        ]
    )
    distributed, leftover = calculate_clr(grants, 1000000)
    assert distributed == [
        CalculatedGrant("proposal1", 84737, 7200),
        CalculatedGrant("proposal2", 147966, 12345),
        CalculatedGrant("proposal3", 52312, 4456),
        CalculatedGrant("proposal4", 714983, 60000),
    ]
    assert leftover == 2


def test_clr_2():
    votes = [
        ("proposal1", [1200, 44999, 33]),
        ("proposal2", [30000, 58999]),
        ("proposal3", [230000, 100]),
        ("proposal4", [100000, 5]),
    ]
    distributed, leftover = calculate_clr(_grants(votes), 550000)
    assert distributed == [
        CalculatedGrant("proposal1", 60212, sum(votes[0][1])),
        CalculatedGrant("proposal2", 164602, sum(votes[1][1])),
        CalculatedGrant("proposal3", 228537, sum(votes[2][1])),
        CalculatedGrant("proposal4", 96648, sum(votes[3][1])),
    ]
    assert leftover == 1


@pytest.mark.parametrize("budget", [1, 999, 550000, 10**12])
def test_clr_distributes_whole_budget(budget):
    grants = _grants([("a", [4, 9]), ("b", [16]), ("c", [1, 1, 1])])
    distributed, leftover = calculate_clr(grants, budget)
    assert sum(g.grant for g in distributed) + leftover == budget
    assert leftover >= 0
    assert [g.addr for g in distributed] == ["a", "b", "c"]


def test_clr_without_budget_is_rejected():
    with pytest.raises(CLRConstrainRequired):
        calculate_clr(_grants([("a", [4])]), None)


def test_clr_with_no_grants_leaves_budget():
    assert calculate_clr([], 500) == ([], 500)


def test_extract_funding_coin():
    denom = "denom"
    info = mock_info("creator", [coin(4, denom)])
    assert extract_budget_coin(info.funds, denom) == coin(4, denom)

    info = mock_info("creator", [coin(4, denom), coin(4, "test")])
    with pytest.raises(WrongCoinSent):
        extract_budget_coin(info.funds, denom)


def test_extract_funding_coin_empty():
    with pytest.raises(WrongCoinSent):
        extract_budget_coin([], "denom")


def test_extract_funding_coin_wrong_denom():
    with pytest.raises(WrongFundCoin) as excinfo:
        extract_budget_coin([coin(4, "test")], "denom")
    assert excinfo.value.expected == "denom"
    assert excinfo.value.got == "test"
    assert str(excinfo.value) == "Wrong fund coin (expected: denom, got: test)"


def _base_init_msg():
    return InitMsg(
        admin="",
        leftover_addr="",
        create_proposal_whitelist=None,
        vote_proposal_whitelist=None,
        voting_period=Never(),
        proposal_period=Never(),
        budget_denom="",
        algorithm=QuadraticFundingAlgorithm(parameter=""),
    )


def test_validate_init_msg():
    env = mock_env()
    env.block.height = 30

    msg1 = _base_init_msg()
    msg1.voting_period = AtHeight(15)
    with pytest.raises(VotingPeriodExpired):
        msg1.validate(env)

    msg2 = _base_init_msg()
    msg2.proposal_period = AtHeight(15)
    with pytest.raises(ProposalPeriodExpired):
        msg2.validate(env)

    assert _base_init_msg().validate(env) is None


def test_validate_checks_proposal_period_first():
    env = mock_env()
    env.block.height = 30
    msg = _base_init_msg()
    msg.voting_period = AtHeight(15)
    msg.proposal_period = AtHeight(15)
    with pytest.raises(ProposalPeriodExpired):
        msg.validate(env)


def test_init_msg_defaults_never_expire():
    msg = InitMsg(admin="admin", leftover_addr="addr")
    assert msg.voting_period == Never()
    assert msg.proposal_period == Never()


def test_message_wire_format():
    assert to_binary(TriggerDistribution()) == b'{"trigger_distribution":{}}'
    assert from_binary(to_binary(VoteProposal(proposal_id=3))) == {
        "vote_proposal": {"proposal_id": 3}
    }
    assert from_binary(to_binary(ProposalByID(id=1))) == {"proposal_by_i_d": {"id": 1}}
    assert from_binary(to_binary(AllProposals())) == {"all_proposals": {}}


def test_proposal_defaults_and_wire():
    proposal = Proposal(id=1, title="title", description="desc")
    assert proposal.collected_funds == 0
    decoded = from_binary(to_binary(proposal))
    assert decoded["id"] == 1
    assert decoded["title"] == "title"
    assert decoded["metadata"] is None
    assert decoded["fund_address"] == ""
    assert from_binary(to_binary(QuadraticFundingAlgorithm(parameter=""))) == {
        "capital_constrained_liberal_radicalism": {"parameter": ""}
    }