from __future__ import annotations
import cv2, logging, time
from typing import Callable, Iterator, Tuple
import numpy as np

log = logging.getLogger(__name__)

def frames(camera: int|str=0, width: int=640, height: int=480, fps: int=30,
           clock: Callable[[], float]=time.monotonic) -> Iterator[Tuple[float, np.ndarray]]:
    """
    Yield (timestamp, bgr_frame) pairs. Timestamps come from `clock` and are
    never allowed to go backwards, since the blink estimator assumes ordering.
    """
    cap = cv2.VideoCapture(camera)
    if not cap.isOpened():
        cap.release()
        raise RuntimeError(f"Cannot open camera {camera}")
    for prop, val in ((cv2.CAP_PROP_FRAME_WIDTH, width), (cv2.CAP_PROP_FRAME_HEIGHT, height), (cv2.CAP_PROP_FPS, fps)):
        if val and not cap.set(prop, val):
            log.debug("camera %s ignored property %s=%s", camera, prop, val)
    last = float("-inf")
    try:
        while True:
            ok, frame = cap.read()
            if not ok:
                log.info("camera %s stopped delivering frames", camera)
                break
            last = max(last, clock())
            yield last, frame
    finally:
        cap.release()
