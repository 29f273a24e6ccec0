"""Extract functions from the rustdoc JSON model of a Cargo project."""

import json
import logging
import subprocess
from pathlib import Path
from typing import Any

from fuzz_target_finder.errors import ExtractionError
from fuzz_target_finder.models import FunctionItem, Visibility
from fuzz_target_finder.type_shape import (
    BorrowedSlice,
    FunctionSignatureShape,
    Other,
    Primitive,
    TypeShape,
    bounds_shape,
    path_shape,
)

logger = logging.getLogger(__name__)

# Target kinds documented with `cargo rustdoc --lib`
LIBRARY_KINDS = frozenset(
    {"lib", "rlib", "dylib", "cdylib", "staticlib", "proc-macro"}
)

VISIBILITIES = {
    "public": Visibility.PUBLIC,
    "crate": Visibility.CRATE,
    "default": Visibility.DEFAULT,
}


def extract_functions(
    path: Path,
    toolchain: str | None = "nightly",
    timeout: float | None = None,
) -> list[FunctionItem]:
    """Build the rustdoc JSON for a project and extract its functions.

    Args:
        path: The project root containing Cargo.toml
        toolchain: Rustup toolchain to build with (JSON output needs nightly)
        timeout: Seconds to wait for each cargo invocation, None to wait forever

    Returns:
        FunctionItems ordered by source position

    Raises:
        ExtractionError: If the project cannot be built or the output read
    """
    crate = build_rustdoc(path, toolchain=toolchain, timeout=timeout)
    return [function_item(item) for item in sort_by_position(functions(crate))]


def build_rustdoc(
    path: Path,
    toolchain: str | None = "nightly",
    timeout: float | None = None,
) -> dict[str, Any]:
    """Build the rustdoc JSON for the project rooted at `path`.

    Private items are documented too, so every function is visible.
    """
    manifest_path = Path(path) / "Cargo.toml"
    if not manifest_path.is_file():
        raise ExtractionError(f"No Cargo.toml found in {path}", phase="build")

    metadata = json.loads(
        _run_cargo(
            [
                "metadata",
                "--format-version",
                "1",
                "--no-deps",
                "--manifest-path",
                str(manifest_path),
            ],
            toolchain=None,
            timeout=timeout,
        )
    )
    target_args, crate_name = _select_target(metadata, manifest_path)
    json_path = Path(metadata["target_directory"]) / "doc" / f"{crate_name}.json"

    logger.info(f"Building rustdoc JSON for {crate_name}")
    _run_cargo(
        [
            "rustdoc",
            "--manifest-path",
            str(manifest_path),
            *target_args,
            "--",
            "-Z",
            "unstable-options",
            "--output-format",
            "json",
            "--document-private-items",
        ],
        toolchain=toolchain,
        timeout=timeout,
    )
    logger.info(f"Rustdoc build completed at {json_path}")
    return load_rustdoc_json(json_path)


def _run_cargo(args: list[str], toolchain: str | None, timeout: float | None) -> str:
    cmd = ["cargo"]
    if toolchain:
        cmd.append(f"+{toolchain}")
    cmd.extend(args)

    logger.debug(f"Running {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError as e:
        raise ExtractionError("cargo was not found on PATH", phase="build") from e
    except subprocess.TimeoutExpired as e:
        raise ExtractionError(
            f"cargo {args[0]} timed out after {timeout} seconds", phase="build"
        ) from e

    if result.returncode != 0:
        stderr = result.stderr.strip()
        raise ExtractionError(
            f"cargo {args[0]} failed with exit code {result.returncode}: {stderr}",
            phase="build",
        )
    return result.stdout


def _select_target(
    metadata: dict[str, Any], manifest_path: Path
) -> tuple[list[str], str]:
    """Pick the package target to document.

    Returns:
        The cargo target selection arguments and the crate name of the target
    """
    manifest = str(manifest_path.resolve())
    packages = metadata.get("packages", [])
    package = next((p for p in packages if p.get("manifest_path") == manifest), None)
    if package is None and len(packages) == 1:
        package = packages[0]
    if package is None:
        raise ExtractionError(
            f"{manifest_path} does not describe a single package", phase="build"
        )

    targets = package.get("targets", [])
    for target in targets:
        if LIBRARY_KINDS.intersection(target.get("kind", [])):
            return ["--lib"], target["name"].replace("-", "_")
    for target in targets:
        if "bin" in target.get("kind", []):
            return ["--bin", target["name"]], target["name"].replace("-", "_")
    raise ExtractionError(
        f"Package {package.get('name')} has no library or binary target",
        phase="build",
    )


def load_rustdoc_json(path: Path) -> dict[str, Any]:
    """Read a rustdoc JSON file produced by an earlier build."""
    try:
        crate = json.loads(Path(path).read_text())
    except (OSError, json.JSONDecodeError) as e:
        raise ExtractionError(f"Could not read rustdoc JSON {path}: {e}") from e
    if not isinstance(crate, dict) or not isinstance(crate.get("index"), dict):
        raise ExtractionError(f"{path} is not a rustdoc JSON crate")
    logger.debug(f"Loaded rustdoc JSON format {crate.get('format_version')}")
    return crate


def functions(crate: dict[str, Any]) -> list[dict[str, Any]]:
    """Return all function items of `crate`."""
    return [item for item in crate["index"].values() if _is_function(item)]


def _is_function(item: dict[str, Any]) -> bool:
    inner = item.get("inner")
    return isinstance(inner, dict) and "function" in inner


def sort_by_position(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Order items by source position; items without a span go last.

    The index is keyed by item id, so its order says nothing about the source.
    """
    located = [item for item in items if item.get("span")]
    unlocated = [item for item in items if not item.get("span")]
    located.sort(
        key=lambda item: (item["span"]["filename"], *item["span"]["begin"])
    )
    return located + unlocated


def function_item(item: dict[str, Any]) -> FunctionItem:
    """Convert a rustdoc function item into a FunctionItem."""
    function = item["inner"]["function"]
    signature = function.get("sig") or function.get("decl") or {}
    span = item.get("span")

    impl_params = _synthetic_params(function.get("generics"))

    return FunctionItem(
        name=item.get("name"),
        visibility=_visibility(item.get("visibility")),
        parameters=[
            (name, type_shape(ty, impl_params))
            for name, ty in signature.get("inputs", [])
        ],
        file_path=span["filename"] if span else None,
        line=span["begin"][0] if span else None,
    )


def _visibility(value: Any) -> Visibility:
    if isinstance(value, str):
        return VISIBILITIES.get(value, Visibility.RESTRICTED)
    # {"restricted": {"parent": ..., "path": ...}}
    return Visibility.RESTRICTED


def _synthetic_params(generics: Any) -> dict[str, list[Any]]:
    """Bounds of the generic parameters rustdoc synthesizes for `impl Trait`.

    An argument written `f: impl Fn(u8)` is documented as a generic named
    "impl Fn(u8)" whose bounds carry the trait.
    """
    params: dict[str, list[Any]] = {}
    if not isinstance(generics, dict):
        return params
    for param in generics.get("params", []):
        kind = param.get("kind")
        type_param = kind.get("type") if isinstance(kind, dict) else None
        if isinstance(type_param, dict) and type_param.get("is_synthetic"):
            params[param.get("name")] = type_param.get("bounds") or []
    return params


def type_shape(ty: Any, impl_params: dict[str, list[Any]] | None = None) -> TypeShape:
    """Map a rustdoc JSON type onto its TypeShape.

    Args:
        ty: The type, as found in the rustdoc JSON
        impl_params: Synthetic `impl Trait` parameters of the enclosing function
    """
    # Unit variants such as "infer" are serialized as bare strings
    if not isinstance(ty, dict) or len(ty) != 1:
        return Other()
    ((kind, value),) = ty.items()

    if kind == "primitive":
        return Primitive(value)

    if kind == "resolved_path":
        return _resolved_path_shape(value, impl_params)

    if kind == "borrowed_ref":
        referent = value.get("type")
        if isinstance(referent, dict) and "slice" in referent:
            return BorrowedSlice(type_shape(referent["slice"], impl_params))
        return Other()

    if kind == "function_pointer":
        signature = value.get("sig") or value.get("decl") or {}
        return FunctionSignatureShape(
            tuple(type_shape(t, impl_params) for _, t in signature.get("inputs", []))
        )

    if kind == "impl_trait":
        return _trait_bounds_shape(value, impl_params)

    if kind == "generic" and impl_params and value in impl_params:
        return _trait_bounds_shape(impl_params[value], impl_params)

    if kind == "dyn_trait":
        return bounds_shape(
            [
                _resolved_path_shape(t["trait"], impl_params)
                for t in value.get("traits", [])
            ]
        )

    return Other()


def _trait_bounds_shape(
    bounds: list[Any], impl_params: dict[str, list[Any]] | None
) -> TypeShape:
    # Lifetime ("outlives") and use<..> bounds are not traits
    return bounds_shape(
        [
            _resolved_path_shape(bound["trait_bound"]["trait"], impl_params)
            for bound in bounds
            if isinstance(bound, dict) and "trait_bound" in bound
        ]
    )


def _resolved_path_shape(
    path: dict[str, Any], impl_params: dict[str, list[Any]] | None = None
) -> TypeShape:
    # Format versions before 37 call the path "name"
    name = path.get("path") or path.get("name") or ""
    args = path.get("args")

    if isinstance(args, dict) and "parenthesized" in args:
        inputs = args["parenthesized"].get("inputs", [])
        return FunctionSignatureShape(tuple(type_shape(t, impl_params) for t in inputs))

    arguments: list[TypeShape] = []
    if isinstance(args, dict) and "angle_bracketed" in args:
        arguments = [
            type_shape(arg["type"], impl_params)
            for arg in args["angle_bracketed"].get("args", [])
            if isinstance(arg, dict) and "type" in arg
        ]
    return path_shape(name, arguments)
