"""
DeployableUnit schema - one contract ready to be deployed.

A unit pairs the compiled code of a contract with the generators of its
initial storage (init data) and its optional first message (init message).
Descriptors are typed: anything exposing init_data() and init_message()
satisfies DeployDescriptor.
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol, runtime_checkable


@runtime_checkable
class DeployDescriptor(Protocol):
    """
    Capability interface of a deploy descriptor.

    Both methods take no arguments and return a cell (or None for an absent
    init message). Either may be a coroutine function.
    """

    def init_data(self) -> Any:
        ...

    def init_message(self) -> Any:
        ...


def _settle(value: Any) -> Any:
    """Run an awaitable builder result to completion."""
    if inspect.isawaitable(value):
        async def _await():
            return await value
        return asyncio.run(_await())
    return value


@dataclass(frozen=True)
class DeployableUnit:
    """
    A deployable contract unit.

    Attributes:
        name: Unit base name (e.g. "jetton-minter" for jetton-minter.deploy.py)
        compiled_code: Hex-encoded code BOC as produced by the build
        init_data_builder: Zero-argument callable producing the init data cell
        init_message_builder: Zero-argument callable producing the optional
            init message cell
        source: Where the unit was loaded from (descriptor path), if known
    """
    name: str
    compiled_code: str
    init_data_builder: Callable[[], Any]
    init_message_builder: Callable[[], Any]
    source: Optional[str] = None

    def build_init_data(self) -> Any:
        return _settle(self.init_data_builder())

    def build_init_message(self) -> Any:
        return _settle(self.init_message_builder())

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "compiled_code_size": len(self.compiled_code) // 2,
        }
        if self.source is not None:
            result["source"] = self.source
        return result
