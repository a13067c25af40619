from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

log = logging.getLogger(__name__)

SEED_INTERVAL = 4.0     # assumed inter-blink gap (s) before any real sample
MIN_SAMPLE = 1e-3

@dataclass(frozen=True)
class IdleParams:
    alpha: float = 0.25
    beta: float = 0.25
    gain_k: float = 0.25
    var_weight: float = 0.02
    idle_min: float = 0.3
    idle_max: float = 1.0
    seed_interval: float = SEED_INTERVAL

@dataclass(frozen=True)
class IdleEstimatorState:
    estimated_interval: float = SEED_INTERVAL
    interval_variance: float = 0.0
    idle_duration: float = 0.0
    previous_blink_timestamp: Optional[float] = None

def reset_idle(p: IdleParams = IdleParams()) -> IdleEstimatorState:
    return IdleEstimatorState(estimated_interval=p.seed_interval)

def on_blink_edge(timestamp: float, state: IdleEstimatorState,
                  p: IdleParams = IdleParams()) -> IdleEstimatorState:
    """
    Alpha-beta style EMA over inter-blink gaps, mapped to a bounded idle window:
      x_est <- a*x + (1-a)*x_est
      x_var <- b*|x - x_est| + (1-b)*x_var
      idle   = clamp(K / (1/x_est + w*x_var), lo, hi)
    """
    prev = state.previous_blink_timestamp
    if prev is None:
        prev = timestamp - p.seed_interval
    sample = timestamp - prev
    if sample <= 0:
        log.warning("non-increasing blink timestamp (%.4f after %.4f), clamping sample", timestamp, prev)
        sample = MIN_SAMPLE
    x_est = p.alpha*sample + (1 - p.alpha)*state.estimated_interval
    x_var = p.beta*abs(sample - x_est) + (1 - p.beta)*state.interval_variance
    rate = 1.0 / x_est
    idle = max(min(p.gain_k / (rate + p.var_weight*x_var), p.idle_max), p.idle_min)
    log.debug("sample=%.3f est=%.3f var=%.3f idle=%.3f", sample, x_est, x_var, idle)
    return IdleEstimatorState(estimated_interval=x_est, interval_variance=x_var,
                              idle_duration=idle, previous_blink_timestamp=timestamp)

def should_process(t: float, state: IdleEstimatorState) -> bool:
    """Admission gate: False while t sits inside the idle window after the last blink."""
    if state.previous_blink_timestamp is None:
        return True
    return t >= state.previous_blink_timestamp + state.idle_duration

class IdleEstimator:
    def __init__(self, params: IdleParams = IdleParams()):
        self.params = params
        self.state = reset_idle(params)

    def __call__(self, timestamp: float) -> float:
        self.state = on_blink_edge(timestamp, self.state, self.params)
        return self.state.idle_duration

    def admit(self, t: float) -> bool:
        return should_process(t, self.state)

    def reset(self):
        self.state = reset_idle(self.params)
