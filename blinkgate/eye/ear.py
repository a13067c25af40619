from __future__ import annotations
import logging
import numpy as np
from typing import Optional, Sequence

log = logging.getLogger(__name__)

CONTOUR_LEN = 6
# contour positions feeding p1..p6 of the EAR formula
EAR_POINT_ORDER = (1, 5, 4, 0, 2, 3)

class ContourError(ValueError):
    pass

def _as_contour(contour) -> np.ndarray:
    if contour is None:
        raise ContourError("eye contour missing")
    pts = np.asarray(contour, dtype=float)
    if pts.ndim != 2 or pts.shape != (CONTOUR_LEN, 2):
        raise ContourError(f"eye contour needs {CONTOUR_LEN} 2-D points, got shape {pts.shape}")
    if not np.isfinite(pts).all():
        raise ContourError("eye contour has non-finite coordinates")
    return pts

def compute_ear(contour: Sequence[Sequence[float]]) -> float:
    """
    Eye aspect ratio of one eye, in the detector's normalized (bbox-relative) space.
    EAR = (|p2-p6| + |p3-p5|) / |p1-p4|
    """
    pts = _as_contour(contour)
    p1,p2,p3,p4,p5,p6 = (pts[i] for i in EAR_POINT_ORDER)
    A = np.linalg.norm(p2 - p6)
    B = np.linalg.norm(p3 - p5)
    C = np.linalg.norm(p1 - p4)
    if C == 0:
        raise ContourError("degenerate eye contour: zero horizontal span")
    return float((A + B) / C)

def frame_ear(left, right) -> Optional[float]:
    """Mean EAR of both eyes, or None when either contour is unusable."""
    try:
        return (compute_ear(left) + compute_ear(right)) / 2.0
    except ContourError as e:
        log.debug("skipping EAR for frame: %s", e)
        return None
