"""Extract functions from Rust source files with tree-sitter."""

import logging
from pathlib import Path
from typing import Iterator

import tree_sitter_rust
from tree_sitter import Language, Node, Parser

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

RUST_LANGUAGE = Language(tree_sitter_rust.language())

FUNCTION_NODES = ("function_item", "function_signature_item")

# Generic arguments that are not types
NON_TYPE_ARGUMENTS = frozenset(
    {
        "lifetime",
        "type_binding",
        "block",
        "integer_literal",
        "float_literal",
        "boolean_literal",
        "char_literal",
        "string_literal",
        "raw_string_literal",
        "negative_literal",
        "line_comment",
        "block_comment",
    }
)

# Directories never searched for sources
SKIPPED_DIRS = frozenset({"target"})

# Files that are the root module of a crate
CRATE_ROOTS = frozenset({"lib.rs", "main.rs"})


def extract_functions(path: Path) -> list[FunctionItem]:
    """Extract every function declared in a Rust file or directory tree.

    In a Cargo project only the library sources under `src/` are read, or the
    binary sources when there is no library. Build scripts, integration tests,
    benches and examples are not part of the documented crate.

    Args:
        path: A `.rs` file, or a directory searched recursively for them

    Returns:
        FunctionItems in file order, then declaration order

    Raises:
        ExtractionError: If the path is missing, unreadable, or has syntax errors
    """
    path = Path(path)
    if path.is_file():
        # A lone file is compiled as a crate root
        return parse_file(path, display_path=str(path))
    if not path.is_dir():
        raise ExtractionError(f"No such file or directory: {path}")

    if (path / "Cargo.toml").is_file():
        files = _crate_files(path)
    else:
        files = list(_rust_files(path))

    items: list[FunctionItem] = []
    for file_path in files:
        relative = file_path.relative_to(path)
        items.extend(
            parse_file(
                file_path,
                display_path=relative.as_posix(),
                module_depth=file_module_depth(relative),
            )
        )
    logger.info(f"Found {len(items)} functions in {len(files)} files under {path}")
    return items


def _crate_files(root: Path) -> list[Path]:
    src = root / "src"
    if not src.is_dir():
        return []
    files = list(_rust_files(src))
    if (src / "lib.rs").is_file():
        # Binaries are separate crates; only the library is documented
        files = [
            f
            for f in files
            if f != src / "main.rs" and (src / "bin") not in f.parents
        ]
    return files


def _rust_files(root: Path) -> Iterator[Path]:
    for file_path in sorted(root.rglob("*.rs")):
        relative_dirs = file_path.relative_to(root).parts[:-1]
        if any(d in SKIPPED_DIRS or d.startswith(".") for d in relative_dirs):
            continue
        yield file_path


def file_module_depth(relative: Path) -> int:
    """How deep below its crate root the module defined by a source file sits.

    `relative` is the file's path from the searched directory, e.g.
    `src/lib.rs` is 0, `src/parser.rs` and `src/parser/mod.rs` are 1,
    and `src/parser/header.rs` is 2. Each binary under `src/bin/` is a crate
    root of its own.
    """
    parts = list(relative.parts)
    if parts and parts[0] == "src":
        parts = parts[1:]
    if parts and parts[0] == "bin":
        # src/bin/tool.rs, or src/bin/tool/main.rs and its modules
        parts = parts[1:]
        if len(parts) == 1:
            return 0
        parts = parts[1:]
    if len(parts) == 1 and parts[0] in CRATE_ROOTS:
        return 0
    if parts and parts[-1] == "mod.rs":
        return len(parts) - 1
    return len(parts)


def parse_file(
    path: Path, display_path: str | None = None, module_depth: int = 0
) -> list[FunctionItem]:
    """Parse one Rust source file.

    Args:
        path: The file to read
        display_path: Path reported in the items, defaults to `path`
        module_depth: Nesting of the file's module below the crate root

    Returns:
        FunctionItems in declaration order
    """
    logger.debug(f"Parsing {path}")
    try:
        content = path.read_bytes()
    except OSError as e:
        raise ExtractionError(f"Could not read {path}: {e}") from e
    return parse_source(content, display_path or str(path), module_depth=module_depth)


def parse_source(
    content: str | bytes, file_path: str, module_depth: int = 0
) -> list[FunctionItem]:
    """Parse Rust source text and extract its functions.

    Args:
        content: The source text
        file_path: Path recorded as the location of every item
        module_depth: Nesting of the source's module below the crate root

    Returns:
        FunctionItems in declaration order

    Raises:
        ExtractionError: If the source contains syntax errors
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    tree = Parser(RUST_LANGUAGE).parse(content)
    if tree.root_node.has_error:
        error_node = _first_error(tree.root_node)
        line = error_node.start_point[0] + 1 if error_node else "?"
        raise ExtractionError(f"Syntax error in {file_path} at line {line}")

    items = list(
        _visit(tree.root_node, file_path, inherited=False, depth=module_depth)
    )
    logger.debug(f"Parsed {len(items)} functions from {file_path}")
    return items


def _first_error(node: Node) -> Node | None:
    if node.type == "ERROR" or node.is_missing:
        return node
    for child in node.children:
        if child.has_error:
            found = _first_error(child)
            if found is not None:
                return found
    return None


def _visit(
    node: Node, file_path: str, inherited: bool, depth: int
) -> Iterator[FunctionItem]:
    """Walk item containers, yielding functions without entering their bodies.

    `inherited` is set inside traits and trait impls, where items carry no
    visibility of their own. `depth` counts modules below the crate root.
    """
    for child in node.named_children:
        if _is_cfg_test(child):
            logger.debug(f"Skipping test-only item at {file_path}:{_line(child)}")
            continue
        if child.type in FUNCTION_NODES:
            yield _function_item(child, file_path, inherited, depth)
        elif child.type == "mod_item":
            body = child.child_by_field_name("body")
            if body is not None:
                yield from _visit(body, file_path, inherited=False, depth=depth + 1)
        elif child.type == "impl_item":
            body = child.child_by_field_name("body")
            if body is not None:
                is_trait_impl = child.child_by_field_name("trait") is not None
                yield from _visit(body, file_path, is_trait_impl, depth)
        elif child.type == "trait_item":
            body = child.child_by_field_name("body")
            if body is not None:
                yield from _visit(body, file_path, inherited=True, depth=depth)
        elif child.type == "foreign_mod_item":
            body = child.child_by_field_name("body")
            if body is not None:
                yield from _visit(body, file_path, inherited=False, depth=depth)


def _is_cfg_test(node: Node) -> bool:
    sibling = node.prev_named_sibling
    while sibling is not None and sibling.type in (
        "attribute_item",
        "line_comment",
        "block_comment",
    ):
        if sibling.type == "attribute_item":
            if "cfg(test)" in "".join(_text(sibling).split()):
                return True
        sibling = sibling.prev_named_sibling
    return False


def _function_item(
    node: Node, file_path: str, inherited: bool, depth: int
) -> FunctionItem:
    name_node = node.child_by_field_name("name")
    name = _text(name_node) if name_node is not None else None

    parameters: list[tuple[str, TypeShape]] = []
    params_node = node.child_by_field_name("parameters")
    if params_node is not None:
        for param in params_node.named_children:
            if param.type == "parameter":
                pattern = param.child_by_field_name("pattern")
                type_node = param.child_by_field_name("type")
                parameters.append(
                    (
                        _text(pattern) if pattern is not None else "_",
                        type_shape(type_node) if type_node is not None else Other(),
                    )
                )
            elif param.type == "self_parameter":
                parameters.append(("self", Other()))

    visibility = Visibility.DEFAULT if inherited else _visibility(node, depth)
    line = _line(node)
    logger.debug(f"Found {visibility.value} function {name} at {file_path}:{line}")
    return FunctionItem(
        name=name,
        visibility=visibility,
        parameters=parameters,
        file_path=file_path,
        line=line,
    )


def _visibility(node: Node, depth: int) -> Visibility:
    """Map a visibility modifier onto the visibility rustdoc reports.

    An item visible exactly in the crate root is reported as CRATE, so private
    items of the root module and `pub(super)` items one module down are CRATE.
    """
    modifier = next(
        (c for c in node.named_children if c.type == "visibility_modifier"), None
    )
    text = "".join(_text(modifier).split()) if modifier is not None else "pub(self)"

    if text == "pub":
        return Visibility.PUBLIC
    if text in ("pub(crate)", "crate", "pub(incrate)"):
        return Visibility.CRATE
    if text in ("pub(self)", "pub(inself)"):
        scope = depth
    elif text in ("pub(super)", "pub(insuper)"):
        scope = depth - 1
    else:
        # pub(in path)
        return Visibility.RESTRICTED
    return Visibility.CRATE if scope <= 0 else Visibility.RESTRICTED


def type_shape(node: Node) -> TypeShape:
    """Map a tree-sitter type node onto its TypeShape."""
    kind = node.type

    if kind == "primitive_type":
        return Primitive(_text(node))

    if kind in ("type_identifier", "scoped_type_identifier"):
        return path_shape(_text(node))

    if kind == "generic_type":
        path = node.child_by_field_name("type")
        arguments = node.child_by_field_name("type_arguments")
        return path_shape(
            _text(path) if path is not None else "",
            _argument_shapes(arguments) if arguments is not None else [],
        )

    if kind == "reference_type":
        referent = node.child_by_field_name("type")
        if (
            referent is not None
            and referent.type == "array_type"
            and referent.child_by_field_name("length") is None
        ):
            element = referent.child_by_field_name("element")
            return BorrowedSlice(type_shape(element) if element else Other())
        return Other()

    if kind == "function_type":
        params = node.child_by_field_name("parameters")
        return FunctionSignatureShape(
            tuple(_parameter_shapes(params)) if params is not None else ()
        )

    if kind in ("abstract_type", "dynamic_type"):
        bound = node.child_by_field_name("trait")
        if bound is None:
            return Other()
        return bounds_shape([type_shape(b) for b in _flatten_bounds(bound)])

    if kind == "higher_ranked_trait_bound":
        bound = node.child_by_field_name("type")
        return type_shape(bound) if bound is not None else Other()

    if kind == "bounded_type":
        return bounds_shape([type_shape(b) for b in _flatten_bounds(node)])

    return Other()


def _argument_shapes(arguments: Node) -> list[TypeShape]:
    return [
        type_shape(arg)
        for arg in arguments.named_children
        if arg.type not in NON_TYPE_ARGUMENTS
    ]


def _parameter_shapes(params: Node) -> list[TypeShape]:
    shapes = []
    for param in params.named_children:
        if param.type == "parameter":
            type_node = param.child_by_field_name("type")
            shapes.append(type_shape(type_node) if type_node else Other())
        elif param.type not in ("attribute_item", "line_comment", "block_comment"):
            shapes.append(type_shape(param))
    return shapes


def _flatten_bounds(node: Node) -> list[Node]:
    """Split `A + B + 'a` into its trait bounds, dropping lifetimes."""
    if node.type == "bounded_type":
        bounds = []
        for child in node.named_children:
            bounds.extend(_flatten_bounds(child))
        return bounds
    if node.type == "lifetime":
        return []
    return [node]


def _text(node: Node) -> str:
    return node.text.decode("utf-8", errors="replace")


def _line(node: Node) -> int:
    return node.start_point[0] + 1
