"""
Tests for artifact discovery.

Tests cover:
- FileArtifactLoader pairing descriptors with compiled code
- Fatal errors for missing exports and missing compiled artifacts
- StaticArtifactLoader registration
- ArtifactSet caching and ordering
"""

import json

import pytest
from tonsdk.boc import Cell

from tonchestra.artifacts import (
    ArtifactSet,
    FileArtifactLoader,
    StaticArtifactLoader,
    read_compiled_code,
    unit_name_for,
)
from tonchestra.errors import ArtifactError, FatalError

from .conftest import Descriptor, make_code_hex, write_unit


NO_INIT_DATA = '''
def init_message():
    return None
'''

ASYNC_DESCRIPTOR = '''
from tonsdk.boc import Cell


async def init_data():
    cell = Cell()
    cell.bits.write_uint(42, 32)
    return cell


async def init_message():
    return None
'''

DATACLASS_DESCRIPTOR = '''
from dataclasses import dataclass

from tonsdk.boc import Cell


@dataclass
class Owner:
    value: int


def init_data():
    cell = Cell()
    cell.bits.write_uint(Owner(3).value, 32)
    return cell


def init_message():
    return None
'''


class TestUnitNameFor:
    def test_strips_descriptor_suffix(self, tmp_path):
        assert unit_name_for(tmp_path / "jetton-minter.deploy.py") == "jetton-minter"

    def test_other_suffix(self, tmp_path):
        assert unit_name_for(tmp_path / "wallet.deploy.ts") == "wallet"


class TestFileArtifactLoader:
    def test_loads_units_sorted(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "zeta", data_value=1)
        write_unit(build, "alpha", data_value=2)

        units = FileArtifactLoader(build).load()
        assert [u.name for u in units] == ["alpha", "zeta"]
        assert units[0].compiled_code == make_code_hex()
        assert units[0].source.endswith("alpha.deploy.py")

    def test_builders_produce_cells(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "counter", data_value=9)

        unit = FileArtifactLoader(build).load()[0]
        assert isinstance(unit.build_init_data(), Cell)
        assert unit.build_init_message() is None

    def test_ignores_non_descriptors(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "counter")
        (build / "notes.txt").write_text("hello")

        units = FileArtifactLoader(build).load()
        assert [u.name for u in units] == ["counter"]

    def test_async_descriptor(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "async-unit", source=ASYNC_DESCRIPTOR)

        unit = FileArtifactLoader(build).load()[0]
        assert isinstance(unit.build_init_data(), Cell)
        assert unit.build_init_message() is None

    def test_descriptor_with_dataclass(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "owned", source=DATACLASS_DESCRIPTOR)

        unit = FileArtifactLoader(build).load()[0]
        assert isinstance(unit.build_init_data(), Cell)

    def test_missing_export_is_fatal(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "broken", source=NO_INIT_DATA)

        with pytest.raises(ArtifactError, match="does not have 'init_data\\(\\)' function") as exc_info:
            FileArtifactLoader(build).load()
        assert "broken.deploy.py" in str(exc_info.value)
        assert isinstance(exc_info.value, FatalError)

    def test_missing_compiled_artifact(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "uncompiled", compiled=False)

        with pytest.raises(ArtifactError, match="uncompiled.compiled.json' not found, did you build"):
            FileArtifactLoader(build).load()

    def test_descriptor_import_error(self, tmp_path):
        build = tmp_path / "build"
        write_unit(build, "syntax", source="def init_data(:\n")

        with pytest.raises(ArtifactError, match="Failed to import descriptor"):
            FileArtifactLoader(build).load()

    def test_missing_build_dir(self, tmp_path):
        with pytest.raises(ArtifactError, match="Build directory not found"):
            FileArtifactLoader(tmp_path / "nope").load()

    def test_empty_build_dir(self, tmp_path):
        build = tmp_path / "build"
        build.mkdir()
        assert FileArtifactLoader(build).load() == []


class TestReadCompiledCode:
    def test_reads_hex(self, tmp_path):
        path = tmp_path / "a.compiled.json"
        path.write_text(json.dumps({"hex": "b5ee9c72"}))
        assert read_compiled_code(path) == "b5ee9c72"

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "a.compiled.json"
        path.write_text("{not json")
        with pytest.raises(ArtifactError, match="not a valid compiled artifact"):
            read_compiled_code(path)

    def test_missing_hex(self, tmp_path):
        path = tmp_path / "a.compiled.json"
        path.write_text(json.dumps({"code": "b5ee"}))
        with pytest.raises(ArtifactError, match="no 'hex' code field"):
            read_compiled_code(path)


class TestStaticArtifactLoader:
    def test_registration_order(self):
        loader = StaticArtifactLoader()
        loader.register("b", make_code_hex(1), Descriptor())
        loader.register("a", make_code_hex(2), Descriptor())
        assert [u.name for u in loader.load()] == ["b", "a"]

    def test_constructor_registrations(self):
        loader = StaticArtifactLoader([("one", make_code_hex(), Descriptor())])
        assert [u.name for u in loader.load()] == ["one"]

    def test_duplicate_name(self):
        loader = StaticArtifactLoader()
        loader.register("a", make_code_hex(), Descriptor())
        with pytest.raises(ArtifactError, match="already registered"):
            loader.register("a", make_code_hex(), Descriptor())

    def test_missing_export(self):
        class HalfDescriptor:
            def init_data(self):
                return None

        loader = StaticArtifactLoader([("half", make_code_hex(), HalfDescriptor())])
        with pytest.raises(ArtifactError, match="'half' does not have 'init_message\\(\\)' function"):
            loader.load()

    def test_missing_code(self):
        loader = StaticArtifactLoader([("empty", "", Descriptor())])
        with pytest.raises(ArtifactError, match="no compiled code"):
            loader.load()


class TestArtifactSet:
    def test_loads_once(self):
        class CountingLoader(StaticArtifactLoader):
            loads = 0

            def load(self):
                CountingLoader.loads += 1
                return super().load()

        artifacts = ArtifactSet(CountingLoader([("a", make_code_hex(), Descriptor())]))
        assert artifacts.names() == ["a"]
        assert len(artifacts) == 1
        assert [u.name for u in artifacts] == ["a"]
        assert CountingLoader.loads == 1

    def test_units_is_a_copy(self):
        artifacts = ArtifactSet(StaticArtifactLoader([("a", make_code_hex(), Descriptor())]))
        artifacts.units.clear()
        assert len(artifacts) == 1

    def test_loading_is_lazy(self, tmp_path):
        artifacts = ArtifactSet(FileArtifactLoader(tmp_path / "missing"))
        with pytest.raises(ArtifactError):
            artifacts.units
