import json
from pathlib import Path
from typing import Optional

import pytest
from tonsdk.boc import Cell
from tonsdk.utils import Address

from tonchestra.config import TonchestraConfig


WALLET_ADDRESS = "-1:" + "ab" * 32


def make_cell(value: int, bits: int = 32) -> Cell:
    cell = Cell()
    cell.bits.write_uint(value, bits)
    return cell


def make_code_hex(value: int = 1) -> str:
    """Hex BOC of a small cell standing in for compiled contract code."""
    return make_cell(value).to_boc(False).hex()


class Descriptor:
    """Deploy descriptor with fixed init data and optional init message."""

    def __init__(self, data_value: int = 7, message_value: Optional[int] = None):
        self.data_value = data_value
        self.message_value = message_value
        self.init_data_calls = 0
        self.init_message_calls = 0

    def init_data(self):
        self.init_data_calls += 1
        return make_cell(self.data_value)

    def init_message(self):
        self.init_message_calls += 1
        if self.message_value is None:
            return None
        return make_cell(self.message_value)


class FakeClock:
    """Clock whose sleep advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeWallet:
    """Wallet that encodes transfers as 'seqno|destination|amount'."""

    def __init__(self, address: str = WALLET_ADDRESS):
        self._address = Address(address)
        self.transfers: list[dict] = []

    @property
    def address(self) -> Address:
        return self._address

    def create_deploy_transfer(self, seqno, destination, amount, state_init, body=None) -> bytes:
        self.transfers.append({
            "seqno": seqno,
            "destination": destination.to_string(False),
            "amount": amount,
            "state_init": state_init,
            "body": body,
        })
        return f"{seqno}|{destination.to_string(False)}|{amount}".encode()


class FakeChainClient:
    """
    In-memory chain.

    A sent transfer is applied after `confirm_after` seqno polls of the
    wallet: the wallet seqno advances, the balance drops by the amount,
    and the target becomes active (unless deploy_on_confirm is False).
    confirm_after=None means the transfer is never applied.
    """

    def __init__(
        self,
        wallet_address: str = WALLET_ADDRESS,
        balance: int = 1_000_000_000,
        seqno: int = 5,
        deployed: tuple = (),
        confirm_after: Optional[int] = 1,
        deploy_on_confirm: bool = True,
    ):
        self.wallet_address = Address(wallet_address).to_string(False)
        self.balances = {self.wallet_address: balance}
        self.seqnos = {self.wallet_address: seqno}
        self.deployed = set(deployed)
        self.confirm_after = confirm_after
        self.deploy_on_confirm = deploy_on_confirm
        self.sent: list[bytes] = []
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[str, Exception] = {}
        self._pending: Optional[dict] = None

    def _maybe_fail(self, method: str) -> None:
        if method in self.fail:
            raise self.fail[method]

    def get_balance(self, address: str) -> int:
        self.calls.append(("get_balance", address))
        self._maybe_fail("get_balance")
        return self.balances.get(address, 0)

    def is_contract_deployed(self, address: str) -> bool:
        self.calls.append(("is_contract_deployed", address))
        self._maybe_fail("is_contract_deployed")
        return address in self.deployed

    def get_seqno(self, address: str) -> int:
        self.calls.append(("get_seqno", address))
        self._maybe_fail("get_seqno")
        if self._pending is not None and address == self.wallet_address:
            self._pending["polls"] -= 1
            if self._pending["polls"] <= 0:
                self._apply(self._pending)
                self._pending = None
        return self.seqnos.get(address, 0)

    def send_boc(self, boc: bytes) -> None:
        self.calls.append(("send_boc", ""))
        self._maybe_fail("send_boc")
        self.sent.append(boc)
        seqno, destination, amount = boc.decode().split("|")
        if self.confirm_after is not None:
            self._pending = {
                "polls": self.confirm_after,
                "destination": destination,
                "amount": int(amount),
            }

    def _apply(self, pending: dict) -> None:
        self.seqnos[self.wallet_address] += 1
        self.balances[self.wallet_address] -= pending["amount"]
        self.balances[pending["destination"]] = pending["amount"]
        if self.deploy_on_confirm:
            self.deployed.add(pending["destination"])

    def count(self, method: str) -> int:
        return sum(1 for m, _ in self.calls if m == method)


DESCRIPTOR_SOURCE = '''
from tonsdk.boc import Cell


def init_data():
    cell = Cell()
    cell.bits.write_uint({data_value}, 32)
    return cell


def init_message():
    return None
'''


def write_unit(
    build_dir: Path,
    name: str,
    data_value: int = 7,
    code_value: int = 1,
    source: Optional[str] = None,
    compiled: bool = True,
) -> Path:
    """Write <name>.deploy.py and <name>.compiled.json into build_dir."""
    build_dir.mkdir(parents=True, exist_ok=True)
    descriptor = build_dir / f"{name}.deploy.py"
    descriptor.write_text(source if source is not None else DESCRIPTOR_SOURCE.format(data_value=data_value))
    if compiled:
        (build_dir / f"{name}.compiled.json").write_text(json.dumps({"hex": make_code_hex(code_value)}))
    return descriptor


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wallet():
    return FakeWallet()


@pytest.fixture
def chain():
    return FakeChainClient()


@pytest.fixture
def test_config(tmp_path):
    return TonchestraConfig(
        workchain=-1,
        build_dir=str(tmp_path / "build"),
        funding_amount=20_000_000,
        min_wallet_balance=200_000_000,
        poll_interval=2.0,
        poll_attempts=10,
        requests_per_second=100.0,
    )
