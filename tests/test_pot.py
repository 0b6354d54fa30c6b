import pytest

from contractsim.chain import (
    MOCK_CONTRACT_ADDR,
    InvalidAddressError,
    NotFoundError,
    StdError,
    StdOverflowError,
    WasmExecute,
    from_binary,
    get_contract_version,
    mock_dependencies,
    mock_env,
    mock_info,
    to_binary,
)
from contractsim.pot import (
    CONFIG,
    POT_SEQ,
    Config,
    CreatePot,
    Cw20ReceiveMsg,
    Cw20Transfer,
    GetPot,
    InstantiateMsg,
    Pot,
    PotResponse,
    Receive,
    Send,
    Unauthorized,
    execute,
    instantiate,
    query,
    query_pot,
    save_pot,
)


def _setup(cw20_addr="cw20"):
    deps = mock_dependencies()
    info = mock_info("creator", [])
    instantiate(deps, mock_env(), info, InstantiateMsg(admin=None, cw20_addr=cw20_addr))
    return deps, info


def _receive(amount, pot_id=1):
    return Receive(
        Cw20ReceiveMsg(sender="cw20", amount=amount, msg=to_binary(Send(id=pot_id)))
    )


def test_create_pot():
    deps, info = _setup(MOCK_CONTRACT_ADDR)
    res = execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    assert len(res.messages) == 0

    pot = from_binary(query(deps, mock_env(), GetPot(id=1)))
    assert pot == {"target_addr": "some", "threshold": 100, "collected": 0}


def test_receive_send():
    deps, info = _setup()
    res = execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    assert len(res.messages) == 0

    cw20_info = mock_info("cw20", [])
    execute(deps, mock_env(), cw20_info, _receive(55))
    assert query_pot(deps, 1) == PotResponse(target_addr="some", threshold=100, collected=55)

    res = execute(deps, mock_env(), cw20_info, _receive(55))
    assert res.messages[0] == WasmExecute(
        contract_addr="cw20",
        msg=to_binary(Cw20Transfer(recipient="some", amount=110)),
        funds=(),
    )
    assert query_pot(deps, 1) == PotResponse(target_addr="some", threshold=100, collected=110)


def test_instantiate_stores_config_and_version():
    deps, _ = _setup()
    assert CONFIG.load(deps.storage) == Config(owner="creator", cw20_addr="cw20")
    assert POT_SEQ.load(deps.storage) == 0
    assert get_contract_version(deps.storage)["contract"] == "crates.io:cw20-example"


def test_instantiate_with_admin_and_invalid_admin():
    deps = mock_dependencies()
    instantiate(deps, mock_env(), mock_info("creator"), InstantiateMsg(cw20_addr="cw20", admin="boss"))
    assert CONFIG.load(deps.storage).owner == "boss"

    deps = mock_dependencies()
    instantiate(deps, mock_env(), mock_info("creator"), InstantiateMsg(cw20_addr="cw20", admin="X"))
    assert CONFIG.load(deps.storage).owner == "creator"


def test_instantiate_rejects_invalid_cw20_address():
    deps = mock_dependencies()
    with pytest.raises(InvalidAddressError):
        instantiate(deps, mock_env(), mock_info("creator"), InstantiateMsg(cw20_addr="CW20"))


def test_instantiate_attributes():
    deps = mock_dependencies()
    res = instantiate(deps, mock_env(), mock_info("creator"), InstantiateMsg(cw20_addr="cw20"))
    assert res.attributes == [("method", "instantiate"), ("owner", "creator"), ("cw20_addr", "cw20")]


def test_create_pot_requires_owner():
    deps, _ = _setup()
    with pytest.raises(Unauthorized):
        execute(deps, mock_env(), mock_info("intruder"), CreatePot(target_addr="some", threshold=1))


def test_create_pot_attributes_and_sequence():
    deps, info = _setup()
    res = execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    assert res.attributes == [
        ("action", "execute_create_pot"),
        ("target_addr", "some"),
        ("threshold_amount", "100"),
    ]
    execute(deps, mock_env(), info, CreatePot(target_addr="other", threshold=5))
    assert POT_SEQ.load(deps.storage) == 2
    assert query_pot(deps, 2).target_addr == "other"


def test_receive_requires_cw20_sender():
    deps, info = _setup()
    execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    with pytest.raises(Unauthorized):
        execute(deps, mock_env(), mock_info("creator"), _receive(10))


def test_receive_unknown_pot():
    deps, _ = _setup()
    with pytest.raises(NotFoundError):
        execute(deps, mock_env(), mock_info("cw20"), _receive(10, pot_id=7))


def test_receive_malformed_message():
    deps, info = _setup()
    execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    bad = Receive(Cw20ReceiveMsg(sender="cw20", amount=1, msg=b'{"other":{}}'))
    with pytest.raises(StdError):
        execute(deps, mock_env(), mock_info("cw20"), bad)


def test_threshold_exactly_met_triggers_transfer():
    deps, info = _setup()
    execute(deps, mock_env(), info, CreatePot(target_addr="some", threshold=100))
    res = execute(deps, mock_env(), mock_info("cw20"), _receive(100))
    assert res.messages == [
        WasmExecute(
            contract_addr="cw20",
            msg=to_binary(Cw20Transfer(recipient="some", amount=100)),
        )
    ]


def test_save_pot_overflow():
    deps, _ = _setup()
    POT_SEQ.save(deps.storage, 2**64 - 1)
    with pytest.raises(StdOverflowError):
        save_pot(deps, Pot(target_addr="some", threshold=1))


def test_save_pot_returns_new_id():
    deps, _ = _setup()
    assert save_pot(deps, Pot(target_addr="some", threshold=1)) == 1
    assert save_pot(deps, Pot(target_addr="some", threshold=1)) == 2
    assert POT_SEQ.load(deps.storage) == 2