"""Generate fuzz tests for discovered targets."""

import logging
from pathlib import Path

from fuzz_target_finder.errors import GenerationNotImplementedError

logger = logging.getLogger(__name__)


def generate_fuzz_tests(inpath: Path, outpath: Path | None = None) -> list[Path]:
    """Write fuzz test stubs for the targets under `inpath` into `outpath`.

    Raises:
        GenerationNotImplementedError: Always; generation is not implemented
    """
    logger.info(f"Fuzz test generation requested for {inpath} -> {outpath}")
    raise GenerationNotImplementedError(
        "the generate command is not implemented; use `list` to find targets"
    )
