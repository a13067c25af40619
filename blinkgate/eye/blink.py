from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional, Tuple

EAR_CLOSED_THRESHOLD = 2.75

@dataclass(frozen=True)
class BlinkState:
    is_eye_closed: bool = False
    blink_count: int = 0
    last_blink_timestamp: Optional[float] = None

def observe(ear: Optional[float], timestamp: float, state: BlinkState,
            thr: float = EAR_CLOSED_THRESHOLD) -> Tuple[BlinkState, bool]:
    """
    Edge-triggered open/closed hysteresis.
    Returns (new_state, closed_edge). Only the open->closed edge counts a blink;
    a missing EAR leaves the state exactly as it was.
    """
    if ear is None:
        return state, False
    if ear < thr:
        if state.is_eye_closed:
            return state, False
        return BlinkState(is_eye_closed=True,
                          blink_count=state.blink_count + 1,
                          last_blink_timestamp=timestamp), True
    if state.is_eye_closed:
        return replace(state, is_eye_closed=False), False
    return state, False

class BlinkDetector:
    def __init__(self, thr: float = EAR_CLOSED_THRESHOLD):
        self.thr = thr
        self.state = BlinkState()

    def __call__(self, ear: Optional[float], timestamp: float) -> bool:
        self.state, edge = observe(ear, timestamp, self.state, self.thr)
        return edge

    def reset(self):
        self.state = BlinkState()
