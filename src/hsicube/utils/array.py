from __future__ import annotations

import numpy as np


def readonly(x: np.ndarray) -> np.ndarray:
    """Return a read-only copy of ``x`` that shares no memory with the input.

    A non-writeable view can still alias memory its owner writes to, so the
    copy is made regardless of the writeable flag.
    """
    x = np.array(x, copy=True)
    x.flags.writeable = False
    return x
