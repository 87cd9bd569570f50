"""Tests for mod metadata, discovery and load order."""

import zipfile

import orjson
import pytest

from factorio_prototypes.mods import (
    DependencyType,
    ModDependency,
    ModDependencyError,
    ModInfo,
    check_dependencies,
    discover_mods,
    natural_key,
    newest_versions,
    parse_version,
    read_mod_list,
    sort_load_order,
)


def mod(name, *dependencies, version="1.0.0"):
    return ModInfo.from_dict({"name": name, "version": version, "dependencies": list(dependencies)})


def names(mods):
    return [info.name for info in mods]


def write_mod(root, name, **info):
    mod_dir = root / f"{name}_1.0.0" if info.pop("versioned_dir", False) else root / name
    mod_dir.mkdir(parents=True)
    (mod_dir / "info.json").write_bytes(orjson.dumps({"name": name, "version": "1.0.0", **info}))
    return mod_dir


def write_zip(root, name, version="1.0.0", files=None, **info):
    archive_path = root / f"{name}_{version}.zip"
    top = f"{name}_{version}"
    with zipfile.ZipFile(archive_path, "w") as archive:
        archive.writestr(f"{top}/info.json", orjson.dumps({"name": name, "version": version, **info}))
        for member, content in (files or {}).items():
            archive.writestr(f"{top}/{member}", content)
    return archive_path


class TestVersions:
    def test_parse(self) -> None:
        assert parse_version("1.1.104") == (1, 1, 104)
        assert parse_version("2.0") == (2, 0, 0)

    @pytest.mark.parametrize("text", ["1", "1.2.3.4", "1.x.0", ""])
    def test_invalid(self, text) -> None:
        with pytest.raises(ModDependencyError):
            parse_version(text)


class TestModDependency:
    """Test dependency string parsing."""

    @pytest.mark.parametrize(
        "text, name, dependency_type, operator, version",
        [
            ("base", "base", DependencyType.REQUIRED, None, None),
            ("base >= 1.1", "base", DependencyType.REQUIRED, ">=", (1, 1, 0)),
            ("? space-age>2.0.7", "space-age", DependencyType.OPTIONAL, ">", (2, 0, 7)),
            ("(?) quality", "quality", DependencyType.HIDDEN_OPTIONAL, None, None),
            ("!bobs-mod", "bobs-mod", DependencyType.INCOMPATIBLE, None, None),
            ("~ flib = 0.12.0", "flib", DependencyType.NO_LOAD_ORDER, "=", (0, 12, 0)),
        ],
    )
    def test_parse(self, text, name, dependency_type, operator, version) -> None:
        dependency = ModDependency.parse(text)
        assert dependency.name == name
        assert dependency.dependency_type is dependency_type
        assert dependency.operator == operator
        assert dependency.version == version

    @pytest.mark.parametrize("text", ["", ">= 1.0", "base >=", "base >= one"])
    def test_invalid(self, text) -> None:
        with pytest.raises(ModDependencyError):
            ModDependency.parse(text)

    def test_version_check(self) -> None:
        dependency = ModDependency.parse("base >= 1.1")
        assert dependency.is_satisfied_by((1, 1, 0))
        assert dependency.is_satisfied_by((2, 0, 0))
        assert not dependency.is_satisfied_by((1, 0, 9))
        assert ModDependency.parse("base").is_satisfied_by((0, 0, 1))

    def test_str(self) -> None:
        assert str(ModDependency.parse("?  space-age >=2.0")) == "? space-age >= 2.0.0"
        assert str(ModDependency.parse("base")) == "base"

    def test_load_order_relevance(self) -> None:
        assert DependencyType.OPTIONAL.affects_load_order
        assert not DependencyType.NO_LOAD_ORDER.affects_load_order
        assert not DependencyType.INCOMPATIBLE.affects_load_order


class TestModInfo:
    """Test info.json handling."""

    def test_defaults_to_base_dependency(self) -> None:
        info = ModInfo.from_dict({"name": "my-mod", "version": "0.1.0"})
        assert [str(d) for d in info.dependencies] == ["base"]
        assert info.title == "my-mod"
        assert info.depends_on("base")

    def test_base_has_no_implicit_dependency(self) -> None:
        assert ModInfo.from_dict({"name": "base", "version": "2.0.0"}).dependencies == []

    def test_core_has_no_implicit_dependency(self) -> None:
        assert ModInfo.from_dict({"name": "core", "version": "2.0.0"}).dependencies == []

    def test_load_archive(self, tmp_path) -> None:
        archive_path = write_zip(tmp_path, "packed", "1.2.0", files={"graphics/icon.png": b"png"})
        info = ModInfo.load_archive(archive_path)
        assert info.name == "packed"
        assert info.version == (1, 2, 0)
        assert info.path == archive_path
        assert info.archive_root == "packed_1.2.0"
        assert info.is_packed
        root = info.files_root()
        assert (root / "graphics" / "icon.png").is_file()
        assert (root / "graphics" / "icon.png").read_bytes() == b"png"
        assert not (root / "graphics" / "missing.png").is_file()

    def test_load_archive_without_info(self, tmp_path) -> None:
        archive_path = tmp_path / "empty_1.0.0.zip"
        with zipfile.ZipFile(archive_path, "w") as archive:
            archive.writestr("empty_1.0.0/deep/info.json", b"{}")
        with pytest.raises(ModDependencyError, match="no top-level info.json"):
            ModInfo.load_archive(archive_path)

    def test_load_archive_not_a_zip(self, tmp_path) -> None:
        archive_path = tmp_path / "broken_1.0.0.zip"
        archive_path.write_bytes(b"PK")
        with pytest.raises(ModDependencyError, match="Cannot read"):
            ModInfo.load_archive(archive_path)

    def test_directory_files_root(self, tmp_path) -> None:
        mod_dir = write_mod(tmp_path, "my-mod")
        info = ModInfo.load(mod_dir)
        assert not info.is_packed
        assert info.files_root() == mod_dir

    def test_files_root_needs_location(self) -> None:
        with pytest.raises(ModDependencyError):
            mod("my-mod").files_root()

    @pytest.mark.parametrize(
        "data",
        [
            {"version": "1.0.0"},
            {"name": "x"},
            {"name": "x", "version": "1.0.0", "dependencies": "base"},
            {"name": "x", "version": "1.0.0", "dependencies": [3]},
        ],
    )
    def test_invalid(self, data) -> None:
        with pytest.raises(ModDependencyError):
            ModInfo.from_dict(data)

    def test_load_directory(self, tmp_path) -> None:
        mod_dir = write_mod(tmp_path, "my-mod", title="My Mod", author="someone", dependencies=["base >= 1.1"])
        info = ModInfo.load(mod_dir)
        assert info.name == "my-mod"
        assert info.version_string == "1.0.0"
        assert info.title == "My Mod"
        assert info.author == "someone"
        assert info.path == mod_dir

    def test_load_bad_json(self, tmp_path) -> None:
        (tmp_path / "info.json").write_text("{")
        with pytest.raises(ModDependencyError, match="Cannot read"):
            ModInfo.load(tmp_path)


class TestLoadOrder:
    """Test dependency checks and topological ordering."""

    def test_base_first_then_natural_order(self) -> None:
        mods = [mod("mod10"), mod("Mod2"), mod("base"), mod("alpha")]
        assert names(sort_load_order(mods)) == ["base", "alpha", "Mod2", "mod10"]

    def test_core_before_base(self) -> None:
        mods = [mod("alpha"), mod("base"), mod("core")]
        assert names(sort_load_order(mods)) == ["core", "base", "alpha"]

    def test_dependencies_load_first(self) -> None:
        mods = [
            mod("aaa-addon", "base", "zzz-library"),
            mod("zzz-library"),
            mod("base"),
        ]
        assert names(sort_load_order(mods)) == ["base", "zzz-library", "aaa-addon"]

    def test_optional_dependency_orders_when_present(self) -> None:
        mods = [mod("a-tweaks", "base", "? z-overhaul"), mod("z-overhaul"), mod("base")]
        assert names(sort_load_order(mods)) == ["base", "z-overhaul", "a-tweaks"]

    def test_optional_dependency_absent(self) -> None:
        mods = [mod("a-tweaks", "base", "? z-overhaul"), mod("base")]
        assert names(sort_load_order(mods)) == ["base", "a-tweaks"]

    def test_no_load_order_dependency(self) -> None:
        mods = [mod("a-mod", "base", "~ z-mod"), mod("z-mod"), mod("base")]
        assert names(sort_load_order(mods)) == ["base", "a-mod", "z-mod"]

    def test_missing_required(self) -> None:
        with pytest.raises(ModDependencyError, match="requires missing mod 'lib'"):
            sort_load_order([mod("base"), mod("user", "base", "lib")])

    def test_incompatible(self) -> None:
        with pytest.raises(ModDependencyError, match="incompatible"):
            check_dependencies([mod("base"), mod("a", "!b"), mod("b")])

    def test_version_requirement(self) -> None:
        mods = [mod("base", version="1.0.0"), mod("new-mod", "base >= 1.1")]
        with pytest.raises(ModDependencyError, match="found version 1.0.0"):
            sort_load_order(mods)

    def test_cycle(self) -> None:
        mods = [mod("base"), mod("a", "b"), mod("b", "a")]
        with pytest.raises(ModDependencyError, match="cycle between mods: a, b"):
            sort_load_order(mods)

    def test_duplicate(self) -> None:
        with pytest.raises(ModDependencyError):
            sort_load_order([mod("base"), mod("base")])

    def test_natural_key(self) -> None:
        assert sorted(["mod10", "mod2", "Mod1"], key=natural_key) == ["Mod1", "mod2", "mod10"]


class TestDiscovery:
    """Test finding mods on disk."""

    def test_discover(self, tmp_path) -> None:
        write_mod(tmp_path, "base", dependencies=[])
        write_mod(tmp_path, "my-mod", versioned_dir=True)
        (tmp_path / "not-a-mod").mkdir()
        (tmp_path / "packed_1.0.0.zip").write_bytes(b"PK")
        broken = tmp_path / "broken"
        broken.mkdir()
        (broken / "info.json").write_text("[]")

        found = discover_mods(tmp_path)
        assert names(found) == ["base", "my-mod"]
        assert found[1].path == tmp_path / "my-mod_1.0.0"

    def test_discover_packed(self, tmp_path) -> None:
        write_mod(tmp_path, "base", dependencies=[])
        archive_path = write_zip(tmp_path, "packed")
        found = discover_mods(tmp_path)
        assert names(found) == ["base", "packed"]
        assert found[1].path == archive_path
        assert found[1].is_packed

    def test_newest_version_wins(self, tmp_path) -> None:
        write_mod(tmp_path, "my-mod", version="1.0.0", versioned_dir=True)
        newer = write_zip(tmp_path, "my-mod", "1.1.0")
        write_zip(tmp_path, "my-mod", "0.9.0")
        found = discover_mods(tmp_path)
        assert len(found) == 1
        assert found[0].version == (1, 1, 0)
        assert found[0].path == newer

    def test_directory_wins_version_tie(self, tmp_path) -> None:
        write_zip(tmp_path, "my-mod", "1.0.0")
        mod_dir = write_mod(tmp_path, "my-mod")
        found = discover_mods(tmp_path)
        assert len(found) == 1
        assert found[0].path == mod_dir

    def test_newest_versions_keeps_first_seen_order(self) -> None:
        mods = [mod("b", version="1.0.0"), mod("a"), mod("b", version="2.0.0")]
        chosen = newest_versions(mods)
        assert names(chosen) == ["b", "a"]
        assert chosen[0].version == (2, 0, 0)

    def test_missing_directory(self, tmp_path) -> None:
        assert discover_mods(tmp_path / "nope") == []

    def test_read_mod_list(self, tmp_path) -> None:
        path = tmp_path / "mod-list.json"
        path.write_bytes(orjson.dumps({
            "mods": [
                {"name": "base", "enabled": True},
                {"name": "off", "enabled": False},
                {"name": "implicit"},
            ]
        }))
        assert read_mod_list(path) == ["base", "implicit"]

    @pytest.mark.parametrize("content", ["{", "[]", '{"mods": [1]}'])
    def test_read_bad_mod_list(self, tmp_path, content) -> None:
        path = tmp_path / "mod-list.json"
        path.write_text(content)
        with pytest.raises(ModDependencyError):
            read_mod_list(path)
