"""
AddressResolver - deterministic deployment addresses.

The address of a contract is fixed by (workchain, code, data) before it is
deployed. Derivation is delegated to tonsdk's Contract.create_state_init;
the resolver only makes sure the triple it hands over is exactly what will
be deployed.
"""

import logging
from dataclasses import dataclass

from tonsdk.boc import Cell
from tonsdk.contract import Contract
from tonsdk.utils import Address

from tonchestra.errors import AddressDerivationError
from tonchestra.schemas import DeployableUnit

logger = logging.getLogger(__name__)


class _StateInitContract(Contract):
    """Contract whose code and data cells are given up front."""

    def create_data_cell(self) -> Cell:
        return self.options["data"]


@dataclass(frozen=True)
class ResolvedUnit:
    """
    A unit with its derived address and the cells that produced it.

    Attributes:
        unit: The deployable unit
        address: Derived contract address
        code: Parsed code cell
        data: Init data cell
        state_init: StateInit cell to attach to the funding message
    """
    unit: DeployableUnit
    address: Address
    code: Cell
    data: Cell
    state_init: Cell

    @property
    def raw_address(self) -> str:
        return self.address.to_string(False)


def format_address(address: Address, testnet: bool = False) -> str:
    """User-friendly, url-safe, bounceable form of an address."""
    return address.to_string(True, True, True, testnet)


class AddressResolver:
    """
    Derives deployment addresses for units in one workchain.

    Usage:
        resolver = AddressResolver(workchain=-1)
        resolved = resolver.resolve(unit)
        resolved.address
    """

    def __init__(self, workchain: int):
        self._workchain = workchain

    @property
    def workchain(self) -> int:
        return self._workchain

    def derive(self, code: Cell, data: Cell) -> tuple[Address, Cell]:
        """
        Derive the address and StateInit for a code/data pair.

        Returns:
            (address, state_init)
        """
        contract = _StateInitContract(code=code, data=data, wc=self._workchain)
        state = contract.create_state_init()
        return state["address"], state["state_init"]

    def resolve(self, unit: DeployableUnit) -> ResolvedUnit:
        """
        Parse a unit's code, build its init data and derive its address.

        Raises:
            AddressDerivationError: On malformed code, a failing init data
                builder, or a builder that does not return a cell
        """
        try:
            code = Cell.one_from_boc(unit.compiled_code)
        except Exception as e:
            raise AddressDerivationError(unit.name, f"malformed compiled code: {e}") from e

        try:
            data = unit.build_init_data()
        except Exception as e:
            raise AddressDerivationError(unit.name, f"init_data() failed: {e}") from e
        if not isinstance(data, Cell):
            raise AddressDerivationError(
                unit.name, f"init_data() must return a Cell, got {type(data).__name__}"
            )

        try:
            address, state_init = self.derive(code, data)
        except Exception as e:
            raise AddressDerivationError(unit.name, f"address derivation failed: {e}") from e

        logger.info(f"Calculated address for {unit.name}: {address.to_string(False)}")
        return ResolvedUnit(
            unit=unit,
            address=address,
            code=code,
            data=data,
            state_init=state_init,
        )
