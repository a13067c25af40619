from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Optional

@dataclass(frozen=True)
class DetectionRateState:
    window_start: float = 0.0
    count_in_window: int = 0
    max_per_second: int = 0
    last_detection_timestamp: Optional[float] = None
    detection_ongoing: bool = False

def on_detection(timestamp: float, state: DetectionRateState, window_s: float = 1.0) -> DetectionRateState:
    if not state.detection_ongoing:
        return replace(state, window_start=timestamp, count_in_window=1,
                       last_detection_timestamp=timestamp, detection_ongoing=True)
    if timestamp - state.window_start > window_s:
        # window closed: fold its count, this detection opens the next one
        return replace(state, window_start=timestamp, count_in_window=1,
                       max_per_second=max(state.max_per_second, state.count_in_window),
                       last_detection_timestamp=timestamp)
    return replace(state, count_in_window=state.count_in_window + 1,
                   last_detection_timestamp=timestamp)

def reset_rate(state: DetectionRateState) -> DetectionRateState:
    """End the ongoing detection run; the unfinished window still counts toward the peak."""
    return replace(state, count_in_window=0, detection_ongoing=False,
                   max_per_second=max(state.max_per_second, state.count_in_window))

def is_timed_out(t: float, state: DetectionRateState, timeout_s: float = 0.4) -> bool:
    if not state.detection_ongoing or state.last_detection_timestamp is None:
        return True
    return t - state.last_detection_timestamp > timeout_s
