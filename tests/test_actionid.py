from collections.abc import Callable
from pathlib import Path

import cbor2

from gobuild.actionid import action_id, action_payload
from gobuild.models import Action, BuildMode, Context, Package


def test_action_id_is_stable_sha256(ctx: Context, make_action: Callable[..., Action]) -> None:
    action = make_action(go_files=("a.go",))

    first = action_id(ctx, BuildMode(), "gc", action)
    second = action_id(ctx, BuildMode(), "gc", action)

    assert first == second
    assert len(first) == 64
    int(first, 16)


def test_action_id_ignores_object_directory(
    ctx: Context,
    make_action: Callable[..., Action],
    tmp_path: Path,
) -> None:
    action = make_action(go_files=("a.go",))
    moved = Action(package=action.package, objdir=str(tmp_path / "other" / "b042") + "/")

    assert action_id(ctx, BuildMode(), "gc", action) == action_id(ctx, BuildMode(), "gc", moved)


def test_action_id_tracks_inputs_that_reach_the_output(
    ctx: Context,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(go_files=("a.go",))
    base = action_id(ctx, BuildMode(), "gc", action)

    with_file = make_action(go_files=("a.go", "b.go"))
    other_arch = Context(goroot=ctx.goroot, goos="linux", goarch="arm64")

    assert action_id(ctx, BuildMode(), "gccgo", action) != base
    assert action_id(ctx, BuildMode(trimpath=False), "gc", action) != base
    assert action_id(ctx, BuildMode(), "gc", with_file) != base
    assert action_id(other_arch, BuildMode(), "gc", action) != base


def test_action_payload_is_canonical_cbor_encodable(
    ctx: Context,
    make_action: Callable[..., Action],
) -> None:
    action = make_action(go_files=("a.go",), importcfg="/work/importcfg")
    mode = BuildMode(overlay={"/b": "/ob", "/a": "/oa"})

    payload = action_payload(ctx, mode, "gc", action)

    assert payload["importcfg"] is True
    assert payload["package"]["rewritten_dir"] == "example.com/hello@v1.0.0"
    assert "objdir" not in payload
    assert cbor2.loads(cbor2.dumps(payload, canonical=True)) == payload


def test_standard_package_identity_uses_import_path(ctx: Context, tmp_path: Path) -> None:
    package = Package(dir=str(tmp_path), import_path="fmt", name="fmt", standard=True, go_files=("print.go",))
    action = Action(package=package, objdir=str(tmp_path / "b001") + "/")

    payload = action_payload(ctx, BuildMode(), "gc", action)

    assert payload["package"]["rewritten_dir"] == "fmt"
