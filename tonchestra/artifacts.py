"""
ArtifactSet - discover deployable units from build output.

Loaders turn build output into DeployableUnits:
- FileArtifactLoader: scans a build directory for <name>.deploy.py
  descriptors and pairs each with <name>.compiled.json
- StaticArtifactLoader: explicit registration of (name, code, descriptor)

A broken descriptor or a missing compiled artifact fails the whole run
(ArtifactError) before any network call is made.

Example build directory:
    build/
        jetton-minter.deploy.py       # init_data(), init_message()
        jetton-minter.compiled.json   # {"hex": "b5ee9c72..."}
"""

import importlib.util
import json
import logging
import re
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterator, Optional

from tonchestra.errors import ArtifactError
from tonchestra.schemas import DeployDescriptor, DeployableUnit

logger = logging.getLogger(__name__)

DESCRIPTOR_SUFFIX = ".deploy.py"
COMPILED_SUFFIX = ".compiled.json"
REQUIRED_EXPORTS = ("init_data", "init_message")


def _require_exports(descriptor: Any, origin: str) -> None:
    """Fail with ArtifactError unless descriptor exposes both builders."""
    for export in REQUIRED_EXPORTS:
        if not callable(getattr(descriptor, export, None)):
            raise ArtifactError(f"'{origin}' does not have '{export}()' function")


def unit_name_for(descriptor_path: Path) -> str:
    """Base name of a descriptor: build/foo.deploy.py -> foo."""
    name = descriptor_path.name
    if name.endswith(DESCRIPTOR_SUFFIX):
        return name[: -len(DESCRIPTOR_SUFFIX)]
    return descriptor_path.stem.split(".")[0]


class ArtifactLoader(ABC):
    """Produces the deployable units of a run, in discovery order."""

    @abstractmethod
    def load(self) -> list[DeployableUnit]:
        """
        Load all units.

        Raises:
            ArtifactError: If any unit is missing an export or its code
        """
        pass


class FileArtifactLoader(ArtifactLoader):
    """
    Loads units from descriptor modules in a build directory.

    Each descriptor is imported as module tonchestra_descriptor_<name>.
    """

    def __init__(self, build_dir: Path | str, pattern: str = "*" + DESCRIPTOR_SUFFIX):
        self._build_dir = Path(build_dir)
        self._pattern = pattern

    @property
    def build_dir(self) -> Path:
        return self._build_dir

    def descriptor_paths(self) -> list[Path]:
        """Matching descriptor files, sorted by name."""
        if not self._build_dir.is_dir():
            raise ArtifactError(f"Build directory not found: {self._build_dir}, did you build?")
        return sorted(p for p in self._build_dir.glob(self._pattern) if p.is_file())

    def load(self) -> list[DeployableUnit]:
        units = []
        for path in self.descriptor_paths():
            logger.info(f"Found root contract '{path}'")
            units.append(self._load_unit(path))
        return units

    def _load_unit(self, path: Path) -> DeployableUnit:
        name = unit_name_for(path)
        module = self._import_descriptor(path, name)
        _require_exports(module, str(path))
        code = read_compiled_code(self._build_dir / f"{name}{COMPILED_SUFFIX}")
        return DeployableUnit(
            name=name,
            compiled_code=code,
            init_data_builder=module.init_data,
            init_message_builder=module.init_message,
            source=str(path),
        )

    def _import_descriptor(self, path: Path, name: str) -> Any:
        module_name = "tonchestra_descriptor_" + re.sub(r"\W", "_", name)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ArtifactError(f"Cannot import descriptor '{path}'")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise ArtifactError(f"Failed to import descriptor '{path}': {e}") from e
        return module


def read_compiled_code(path: Path) -> str:
    """
    Read the hex code BOC from a compiled artifact.

    Raises:
        ArtifactError: If the file is missing, not JSON, or has no "hex" string
    """
    if not path.exists():
        raise ArtifactError(f"'{path}' not found, did you build?")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ArtifactError(f"'{path}' is not a valid compiled artifact: {e}") from e
    code = data.get("hex") if isinstance(data, dict) else None
    if not isinstance(code, str) or not code:
        raise ArtifactError(f"'{path}' has no 'hex' code field")
    return code


class StaticArtifactLoader(ArtifactLoader):
    """
    Loads units from explicit registrations.

    Usage:
        loader = StaticArtifactLoader()
        loader.register("counter", code_hex, CounterDescriptor())
        units = loader.load()
    """

    def __init__(self, registrations: Optional[list[tuple[str, str, DeployDescriptor]]] = None):
        self._registrations: list[tuple[str, str, DeployDescriptor]] = []
        for name, code, descriptor in registrations or []:
            self.register(name, code, descriptor)

    def register(self, name: str, compiled_code: str, descriptor: DeployDescriptor) -> None:
        if any(existing == name for existing, _, _ in self._registrations):
            raise ArtifactError(f"Unit '{name}' is already registered")
        self._registrations.append((name, compiled_code, descriptor))

    def load(self) -> list[DeployableUnit]:
        units = []
        for name, code, descriptor in self._registrations:
            _require_exports(descriptor, name)
            if not code:
                raise ArtifactError(f"Unit '{name}' has no compiled code, did you build?")
            units.append(
                DeployableUnit(
                    name=name,
                    compiled_code=code,
                    init_data_builder=descriptor.init_data,
                    init_message_builder=descriptor.init_message,
                )
            )
        return units


class ArtifactSet:
    """
    The deployable units of a run.

    Units are loaded once on first access and kept in discovery order.
    """

    def __init__(self, loader: ArtifactLoader):
        self._loader = loader
        self._units: Optional[list[DeployableUnit]] = None

    @property
    def units(self) -> list[DeployableUnit]:
        if self._units is None:
            self._units = self._loader.load()
        return list(self._units)

    def names(self) -> list[str]:
        return [unit.name for unit in self.units]

    def __iter__(self) -> Iterator[DeployableUnit]:
        return iter(self.units)

    def __len__(self) -> int:
        return len(self.units)
