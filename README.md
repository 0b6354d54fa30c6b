# contractsim

An in-memory simulation of four small on-chain contracts, together with the
block environment, storage, bank balances and messages they need. The contract
logic can be run and tested in plain Python.

## Contracts

- `contractsim.escrow`: an arbiter releases held funds to a recipient with
  `Approve` (a given `quantity`, or the contract's whole balance when it is
  `None`). Once the escrow has expired, anyone can send `Refund` to return the
  balance to the address that instantiated it. `ArbiterQuery` returns the
  arbiter.
- `contractsim.funding`: quadratic funding. `init` stores the configuration
  and the budget coin sent with it. `CreateProposal` and `VoteProposal` add
  proposals and funded votes. Whitelists, expiry periods and one vote per
  address per proposal are enforced. After the voting period the admin sends
  `TriggerDistribution`, which pays each proposal its matched grant plus its
  collected votes, and the leftover to `leftover_addr`. Messages, state,
  errors and the matching algorithm live in `contractsim.funding_model`:
  `calculate_clr(grants, budget)` implements capital-constrained liberal
  radicalism with integer arithmetic, and `extract_budget_coin` checks sent
  funds.
- `contractsim.todo`: an owner-only to-do list. It offers `NewEntry`,
  `UpdateEntry` and `DeleteEntry`, with `Status` and `Priority` enums. Entries
  are read with `QueryEntry` and paged with `QueryList`, which returns
  10 entries by default and at most 30.
- `contractsim.pot`: pots that collect cw20 token transfers (`Receive`
  wrapping a `Cw20ReceiveMsg` whose inner message is a serialized `Send`). A
  pot releases everything collected to its target with a `Cw20Transfer`
  inside a `WasmExecute` once its threshold is reached.

Each contract module has `instantiate` (or `init`), `execute` and `query`
functions. `query` returns JSON bytes made with `to_binary`. Each module also
raises its own `ContractError` subclasses, for example `escrow.Unauthorized`,
`escrow.Expired` or `funding_model.AddressAlreadyVotedProject`.

## Runtime

`contractsim.chain` provides the shared pieces:

- `mock_dependencies()` returns a `Deps` with a dict `storage`, a `MockApi`
  and a `MockQuerier`. `mock_env()` returns a fixed `Env` whose contract
  address is `cosmos2contract`. `mock_info(sender, funds)` returns a
  `MessageInfo`.
- `Coin`, `coin(amount, denom)` and `coins(amount, denom)`.
- Expirations `AtHeight`, `AtTime` (nanoseconds) and `Never`, each with
  `is_expired(block)`.
- `Response`, with chainable `add_attribute`, `add_attributes`,
  `add_message` and `add_messages`. Its messages are `BankSend` and
  `WasmExecute`.
- `MockApi.addr_validate` accepts lower-case addresses of 3 to 54 characters.
  `MockQuerier.update_balance` and `query_all_balances` hold bank balances.
- Typed storage: `Item` (`load`, `may_load`, `save`, `update`) and `Map`
  (the same, plus `remove`, ordered `range(storage, start_after, limit)` and
  `prefix_range` for composite keys).
- `set_contract_version`, `get_contract_version`, `to_binary` and
  `from_binary`.
- Errors: `StdError`, and its subclasses `NotFoundError`, `StdOverflowError`
  and `InvalidAddressError`.

## Example

```python
from contractsim.chain import AtHeight, coins, mock_dependencies, mock_env, mock_info
from contractsim import escrow

deps = mock_dependencies()
env = mock_env()
env.block.height = 876

escrow.instantiate(
    deps, env, mock_info("creator", coins(1000, "earth")),
    escrow.InstantiateMsg(arbiter="verifies", recipient="benefits",
                          expiration=AtHeight(1000)),
)
deps.querier.update_balance(env.contract.address, coins(1000, "earth"))

res = escrow.execute(deps, env, mock_info("verifies", []), escrow.Approve())
print(res.messages)  # one BankSend of 1000 earth to "benefits"
```

## What it does not do

Everything runs in one process against a Python dict. The package does not
connect to a chain, does not dispatch the messages a `Response` carries, and
does not persist storage. It has no command-line tool and does not export
JSON schemas for its messages.

## Install

```
pip install .
```

## Tests

```
pip install .[test]
pytest
```