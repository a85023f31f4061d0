"""Random source initialisation for reproducible sessions."""

from __future__ import annotations

import logging
import random

log = logging.getLogger(__name__)


def init_seed(seed: int | None = None) -> random.Random:
    """Return a dedicated Random instance for one simulation session.

    With a seed the global ``random`` module is seeded too, so a replayed
    session produces the same event stream.  Without one the instance is
    seeded from system entropy.
    """
    if seed is None:
        log.debug("Random seed: system entropy")
        return random.Random()
    random.seed(seed)
    rng = random.Random(seed)
    log.info("Random seed initialised: %d", seed)
    return rng
