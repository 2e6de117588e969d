from collections.abc import Callable
from pathlib import Path

import pytest
from jinja2 import UndefinedError

from modlink import CompilerOptions, PackageInfo, TemplateCompiler
from modlink.errors import (
    LockfileError,
    MissingRequiredOption,
    ModuleNotFound,
    RangeInvalid,
)
from modlink.lockfile import lock_from_mapping

MakeCompiler = Callable[..., TemplateCompiler]

BOOTSTRAP_MARKER = "neuron.config("


def test_bootstrap_is_emitted_once_per_render(make_compiler: MakeCompiler) -> None:
    template = make_compiler().compile("{{ facade() }}|{{ facade('bar') }}")

    first = template.render()
    second = template.render()

    assert first.count(BOOTSTRAP_MARKER) == 1
    assert first.index(BOOTSTRAP_MARKER) < first.index("facade({entry:\"foo@0.2.0\"})")
    assert first.endswith('<script>facade({entry:"bar@1.0.0"});</script>')
    assert second == first


def test_template_without_facade_has_no_bootstrap(make_compiler: MakeCompiler) -> None:
    rendered = make_compiler().compile("<a href=\"{{ modfile('bar') }}\">").render()
    assert rendered == '<a href="../../../bar/1.0.0/bar.js">'


def test_compilers_do_not_share_state(make_compiler: MakeCompiler) -> None:
    plain = make_compiler()
    hosted = make_compiler(hosts=("a1.cdn.com",))
    plain.register("greet", lambda title=None: "hi")

    assert plain.compile("{{ modfile('bar') }}").render() == "../../../bar/1.0.0/bar.js"
    assert hosted.compile("{{ modfile('bar') }}").render() == "//a1.cdn.com/mod/bar/1.0.0/bar.js"
    assert plain.compile("{{ greet() }}").render() == "hi"
    with pytest.raises(UndefinedError):
        hosted.compile("{{ greet() }}").render()


def test_compile_file_reads_configured_template(make_compiler: MakeCompiler) -> None:
    rendered = make_compiler().compile_file().render()

    assert rendered.count(BOOTSTRAP_MARKER) == 1
    assert rendered.endswith('<script>facade({entry:"foo@0.2.0"});</script>\n')


def test_context_variables_and_helpers(make_compiler: MakeCompiler) -> None:
    template = make_compiler().compile("{{ title }} {{ static(css) }} v{{ version() }}")

    assert template.render({"title": "Home"}, css="./a.css") == "Home ./a.css v0.2.0"
    assert template(title="Again", css="./b.css") == "Again ./b.css v0.2.0"


def test_helpers_shadow_context_values(make_compiler: MakeCompiler) -> None:
    template = make_compiler().compile("{{ version() }}")
    assert template.render(version="not a function") == "0.2.0"


def test_register_custom_directive(make_compiler: MakeCompiler) -> None:
    compiler = make_compiler()
    compiler.register("shout", lambda title=None: (title or "").upper())

    assert compiler.compile("{{ shout('hello') }}").render() == "HELLO"
    with pytest.raises(MissingRequiredOption):
        compiler.register("", lambda title=None: "")


def test_directive_error_carries_context(make_compiler: MakeCompiler) -> None:
    compiler = make_compiler()
    template = compiler.compile("{{ facade('bar@not-a-range') }}")

    with pytest.raises(RangeInvalid) as excinfo:
        template.render()

    assert excinfo.value.context["directive"] == "facade"
    assert excinfo.value.context["argument"] == "bar@not-a-range"
    assert "directive: facade" in str(excinfo.value)
    failures = compiler.logger.records_at_level("error")
    assert failures[0]["operation"] == "directive_failed"
    assert failures[0]["directive"] == "facade"


def test_missing_module_aborts_render(make_compiler: MakeCompiler) -> None:
    with pytest.raises(ModuleNotFound) as excinfo:
        make_compiler().compile("{{ modfile('nope') }}").render()
    assert excinfo.value.context["directive"] == "modfile"


@pytest.mark.parametrize("missing", ["pkg", "lock", "cwd", "path", "mod_root"])
def test_missing_required_option(
    project: Path, pkg: PackageInfo, missing: str
) -> None:
    values = {
        "pkg": pkg,
        "lock": lock_from_mapping({"name": "foo", "version": "0.2.0"}),
        "cwd": project,
        "path": "views/index.html",
        "mod_root": "/mod",
    }
    values[missing] = None

    with pytest.raises(MissingRequiredOption) as excinfo:
        TemplateCompiler(options=CompilerOptions(**values), environ={})
    assert str(excinfo.value).startswith(f"`options.{missing}` must be specified.")


def test_for_project_reads_project_files(project: Path) -> None:
    compiler = TemplateCompiler.for_project(
        project, path="views/index.html", mod_root="/mod", environ={}, hosts=("a1.cdn.com",)
    )

    assert compiler.layout.pkg == PackageInfo(name="foo", version="0.2.0")
    assert compiler.versions.get("baz") == frozenset({"2.0.0", "2.1.0"})
    assert compiler.compile("{{ modfile('lib') }}").render() == (
        "//a1.cdn.com/mod/lib/1.0.0/lib.js"
    )


def test_for_project_without_lock(tmp_path: Path) -> None:
    (tmp_path / "cortex.json").write_text('{"name": "foo", "version": "0.2.0"}', encoding="utf-8")
    with pytest.raises(LockfileError):
        TemplateCompiler.for_project(tmp_path, path="index.html", mod_root="/mod")


def test_unindexed_engine_is_flagged(project: Path, pkg: PackageInfo) -> None:
    lock = lock_from_mapping(
        {
            "name": "foo",
            "version": "0.2.0",
            "dependencies": {"neuron": {"version": "4.2.1"}},
            "engines": {"neuron": {"version": "5.0.0"}},
        }
    )
    compiler = TemplateCompiler(
        options=CompilerOptions(
            pkg=pkg, lock=lock, cwd=project, path="views/index.html", mod_root="/mod"
        ),
        environ={},
    )

    warnings = compiler.logger.records_at_level("warning")
    assert [record["operation"] for record in warnings] == ["engine_version_unindexed"]
    assert warnings[0]["package"] == "neuron@5.0.0"


def test_hashing_follows_environment(
    make_compiler: MakeCompiler, project: Path, write_manifest: Callable[..., Path]
) -> None:
    write_manifest(project / "neurons", "bar", "1.0.0", {"bar.js": "beef"})
    source = "{{ modfile('bar') }}"

    hashed = make_compiler(
        hosts=("a1.cdn.com",), facades=("bar",), environ={"MODLINK_ENABLE_HASH": "1"}
    )
    plain = make_compiler(hosts=("a1.cdn.com",), facades=("bar",))
    forced_off = make_compiler(
        hosts=("a1.cdn.com",),
        facades=("bar",),
        enable_hash=False,
        environ={"MODLINK_ENABLE_HASH": "1"},
    )

    assert hashed.compile(source).render() == "//a1.cdn.com/mod/bar/1.0.0/bar_beef.js"
    assert plain.compile(source).render() == "//a1.cdn.com/mod/bar/1.0.0/bar.js"
    assert forced_off.compile(source).render() == "//a1.cdn.com/mod/bar/1.0.0/bar.js"


def test_dest_environment_variable_moves_built_root(
    make_compiler: MakeCompiler, project: Path, write_manifest: Callable[..., Path]
) -> None:
    write_manifest(project / "dist", "bar", "1.0.0", {"bar.js": "beef"})
    compiler = make_compiler(
        facades=("bar",), environ={"MODLINK_ENABLE_HASH": "1", "MODLINK_DEST": "dist"}
    )
    assert compiler.manifest == {"bar@1.0.0": {"bar.js": "beef"}}


def test_version_index_is_built_once(make_compiler: MakeCompiler) -> None:
    compiler = make_compiler()
    assert compiler.versions is compiler.versions
    built = [r for r in compiler.logger.records if r["operation"] == "version_index_built"]
    assert len(built) == 1
