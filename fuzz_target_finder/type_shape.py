"""Syntactic shapes of parameter types, shared by every extractor."""

from dataclasses import dataclass
from typing import Sequence

# Path names with dedicated shapes, matched on the last path segment so that
# `String`, `std::string::String` and `alloc::string::String` agree.
TEXT_PATHS = frozenset({"String"})
SEQUENCE_PATHS = frozenset({"Vec"})


@dataclass(frozen=True)
class Primitive:
    """A built-in scalar such as `u8`, `i64`, `bool` or `str`."""

    name: str


@dataclass(frozen=True)
class OwnedText:
    """An owned string."""


@dataclass(frozen=True)
class BorrowedSlice:
    """A borrowed view `&[T]` or `&mut [T]`."""

    element: "TypeShape"


@dataclass(frozen=True)
class OwnedSequence:
    """A growable container holding one element type, e.g. `Vec<T>`."""

    element: "TypeShape"


@dataclass(frozen=True)
class GenericApplication:
    """Any other path applied to type arguments, e.g. `Option<u32>`."""

    arguments: tuple["TypeShape", ...]


@dataclass(frozen=True)
class FunctionSignatureShape:
    """A function pointer or closure bound, e.g. `fn(&[u8])` or `Fn(u32)`."""

    inputs: tuple["TypeShape", ...]


@dataclass(frozen=True)
class Other:
    """Anything without a dedicated shape."""


TypeShape = (
    Primitive
    | OwnedText
    | BorrowedSlice
    | OwnedSequence
    | GenericApplication
    | FunctionSignatureShape
    | Other
)


def path_shape(path: str, arguments: Sequence[TypeShape] = ()) -> TypeShape:
    """Normalize a (possibly qualified) type path and its type arguments.

    Args:
        path: The written or resolved path, e.g. "Vec" or "std::vec::Vec"
        arguments: Shapes of the type arguments, lifetimes and consts excluded

    Returns:
        The shape both extractors agree on for this path
    """
    name = path.rsplit("::", 1)[-1]
    if name in TEXT_PATHS and not arguments:
        return OwnedText()
    if name in SEQUENCE_PATHS and arguments:
        # Extra arguments (an allocator) do not change the element
        return OwnedSequence(arguments[0])
    if arguments:
        return GenericApplication(tuple(arguments))
    return Other()


def render_shape(shape: TypeShape) -> str:
    """Render a shape compactly for log messages."""
    if isinstance(shape, Primitive):
        return shape.name
    if isinstance(shape, OwnedText):
        return "String"
    if isinstance(shape, BorrowedSlice):
        return f"&[{render_shape(shape.element)}]"
    if isinstance(shape, OwnedSequence):
        return f"Vec<{render_shape(shape.element)}>"
    if isinstance(shape, GenericApplication):
        return f"_<{', '.join(render_shape(a) for a in shape.arguments)}>"
    if isinstance(shape, FunctionSignatureShape):
        return f"fn({', '.join(render_shape(i) for i in shape.inputs)})"
    return "_"


def bounds_shape(bounds: Sequence[TypeShape]) -> TypeShape:
    """Shape of `impl A + B` or `dyn A + B` from the shapes of its trait bounds."""
    if len(bounds) == 1:
        return bounds[0]
    if bounds:
        return GenericApplication(tuple(bounds))
    return Other()
