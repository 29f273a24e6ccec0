"""Decide whether a parameter type can be fed directly from fuzzer input."""

from enum import Enum

from fuzz_target_finder.type_shape import (
    BorrowedSlice,
    FunctionSignatureShape,
    GenericApplication,
    OwnedSequence,
    OwnedText,
    Primitive,
    TypeShape,
)

INTEGER_PRIMITIVES = frozenset(
    {
        "u8",
        "u16",
        "u32",
        "u64",
        "u128",
        "usize",
        "i8",
        "i16",
        "i32",
        "i64",
        "i128",
        "isize",
    }
)


class FuzzabilityTier(Enum):
    """How wide the accepted parameter types are, narrowest first.

    Only BINARY_ONLY behaves differently: it rejects text. The wider tiers
    currently accept the same types.
    """

    BINARY_ONLY = "binary-only"
    BINARY_OR_TEXT = "binary-or-text"
    ARBITRARY = "arbitrary"
    ANY = "any"

    @property
    def text_allowed(self) -> bool:
        return self is not FuzzabilityTier.BINARY_ONLY


def is_integer(shape: TypeShape) -> bool:
    return isinstance(shape, Primitive) and shape.name in INTEGER_PRIMITIVES


def is_fuzzable(shape: TypeShape, tier: FuzzabilityTier) -> bool:
    """Classify a parameter type shape.

    Args:
        shape: The parameter's type shape
        tier: The widest kind of input that counts as fuzzable

    Returns:
        True if a fuzzer could supply this parameter
    """
    if isinstance(shape, Primitive):
        return shape.name in INTEGER_PRIMITIVES
    if isinstance(shape, BorrowedSlice):
        return is_integer(shape.element)
    if isinstance(shape, OwnedSequence):
        return is_fuzzable(shape.element, tier)
    if isinstance(shape, OwnedText):
        return tier.text_allowed
    if isinstance(shape, GenericApplication):
        return any(is_fuzzable(arg, tier) for arg in shape.arguments)
    if isinstance(shape, FunctionSignatureShape):
        return any(is_fuzzable(arg, tier) for arg in shape.inputs)
    return False
