from collections.abc import Callable

import pytest

from modlink import TemplateCompiler
from modlink.errors import ModuleNotFound, NoSatisfyingVersion, RangeInvalid
from modlink.lockfile import LockNode, VersionIndex, max_satisfying

INSTALLED = frozenset({"1.0.0", "1.2.0", "1.10.0", "2.0.0", "2.0.0-beta.1"})


def test_build_collects_every_version_of_repeated_names(lock: LockNode) -> None:
    index = VersionIndex.build(lock)

    assert index.get("baz") == {"2.0.0", "2.1.0"}
    assert index.get("foo") == {"0.2.0"}
    assert "bar" in index
    assert "missing" not in index
    assert list(index) == ["bar", "baz", "foo", "lib", "neuron"]


def test_empty_index_has_no_packages() -> None:
    index = VersionIndex()
    assert len(index) == 0
    with pytest.raises(ModuleNotFound):
        index.resolve("foo", "*")


def test_build_tolerates_cyclic_nodes() -> None:
    dependencies: dict[str, LockNode] = {}
    node = LockNode(name="a", version="1.0.0", dependencies=dependencies)
    dependencies["a"] = node

    assert VersionIndex.build(node).versions == {"a": frozenset({"1.0.0"})}


def test_compiler_memoizes_version_index(
    make_compiler: Callable[..., TemplateCompiler],
) -> None:
    compiler = make_compiler()
    assert compiler.versions is compiler.versions


@pytest.mark.parametrize(
    ("range_or_tag", "expected"),
    [
        ("^1.0.0", "1.10.0"),
        ("~1.2.0", "1.2.0"),
        ("1.x", "1.10.0"),
        (">=1.0.0 <1.5.0", "1.2.0"),
        ("1.0.0", "1.0.0"),
        ("*", "2.0.0"),
        ("latest", "2.0.0"),
        ("", "2.0.0"),
        (None, "2.0.0"),
    ],
)
def test_resolve_picks_highest_satisfying_version(
    range_or_tag: str | None, expected: str
) -> None:
    index = VersionIndex(versions={"mod": INSTALLED})

    resolved = index.resolve("mod", range_or_tag)

    assert resolved == expected
    assert resolved in index.get("mod")


def test_resolve_unknown_module() -> None:
    index = VersionIndex(versions={"mod": INSTALLED})
    with pytest.raises(ModuleNotFound) as excinfo:
        index.resolve("other", "^1.0.0")
    assert excinfo.value.context["module"] == "other"


def test_resolve_invalid_range_is_distinct_from_no_match() -> None:
    index = VersionIndex(versions={"mod": INSTALLED})
    with pytest.raises(RangeInvalid):
        index.resolve("mod", "not-a-range")
    with pytest.raises(NoSatisfyingVersion) as excinfo:
        index.resolve("mod", "^3.0.0")
    assert excinfo.value.context["module"] == "mod@^3.0.0"


def test_custom_wildcard_tag() -> None:
    index = VersionIndex(versions={"mod": INSTALLED})
    assert index.resolve("mod", "stable", wildcard_tags=("*", "stable")) == "2.0.0"


def test_max_satisfying_skips_unparseable_versions() -> None:
    assert max_satisfying(["1.0", "1.0.0", "garbage"], None) == "1.0.0"
    assert max_satisfying(["2.0.0-beta.1"], None) is None
