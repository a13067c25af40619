from __future__ import annotations
import logging
from typing import List, Optional
from ..eye.ear import frame_ear
from ..eye.blink import BlinkDetector
from ..filters.idle import IdleEstimator
from ..runtime.rate import DetectionRateState, on_detection, reset_rate, is_timed_out
from ..runtime.events import Event, FrameObservation, Snapshot
from .config import BlinkConfig

log = logging.getLogger(__name__)

class BlinkMonitor:
    """
    Per-frame blink pipeline: EAR -> hysteresis -> idle estimator, plus the
    detection-rate gauge and the face-loss timeout.

    Drive it from a single producer, frames in timestamp order:
        events = mon.tick(t)
        if mon.admit(t):
            events += mon.update(observation)
    Consumers read `mon.snapshot`, which is replaced only after an update completes.
    """
    def __init__(self, config: Optional[BlinkConfig]=None):
        self.cfg = config or BlinkConfig()
        self._init_state()

    def _init_state(self):
        self.blink = BlinkDetector(thr=self.cfg.ear_threshold)
        self.idle = IdleEstimator(self.cfg.idle_params())
        self.rate = DetectionRateState()
        self._last_t: Optional[float] = None
        self._ear: Optional[float] = None
        self._status: Optional[str] = None
        self._alert_base: Optional[float] = None
        self._anomalies = 0
        self._skipped = 0
        self._snapshot = Snapshot(estimated_interval=self.idle.state.estimated_interval)

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def reset(self):
        """Explicit external reset: clears everything, blink count included."""
        self._init_state()

    def admit(self, t: float) -> bool:
        """Idle gate. False means: do not run the detector for this frame."""
        ok = self.idle.admit(t)
        if not ok:
            self._skipped += 1
            self._commit(self._snapshot.timestamp)
        return ok

    def tick(self, t: float) -> List[Event]:
        """Periodic drowsiness status; only runs while blink tracking is active."""
        if self.idle.state.previous_blink_timestamp is None:
            return []
        if self._alert_base is not None and self._alert_base + self.cfg.alert_period >= t:
            return []
        self._alert_base = t
        self._status = "Blink!" if self.idle.state.estimated_interval > self.cfg.alert_interval else "Good"
        self._commit(self._snapshot.timestamp)
        return [Event(ts=t, type="status", extra={"status": self._status})]

    def update(self, obs: FrameObservation) -> List[Event]:
        t = obs.timestamp
        out: List[Event] = []
        if self._last_t is not None and t < self._last_t:
            self._anomalies += 1
            log.warning("timestamp went backwards: %.4f < %.4f", t, self._last_t)
            out.append(Event(ts=t, type="anomaly", extra={"timestamp": t, "previous": self._last_t}))
        self._last_t = t

        if not obs.detected:
            self._ear = None
            if is_timed_out(t, self.rate, self.cfg.detection_timeout):
                was_ongoing = self.rate.detection_ongoing
                self.idle.reset()
                self.rate = reset_rate(self.rate)
                if was_ongoing:
                    log.info("face lost at %.3f, sampling every frame", t)
                    out.append(Event(ts=t, type="lost"))
        else:
            ear = frame_ear(obs.left_eye, obs.right_eye)
            self._ear = ear
            if ear is not None:
                self.rate = on_detection(t, self.rate, self.cfg.rate_window)
                was_closed = self.blink.state.is_eye_closed
                if self.blink(ear, t):
                    self.idle(t)
                    out.append(Event(ts=t, type="blink", extra={"ear": ear}))
                elif was_closed and not self.blink.state.is_eye_closed:
                    out.append(Event(ts=t, type="reopen", extra={"ear": ear}))

        snap = self._commit(t)
        return [e.model_copy(update={"snapshot": snap}) for e in out]

    def _commit(self, t: Optional[float]) -> Snapshot:
        b, i = self.blink.state, self.idle.state
        self._snapshot = Snapshot(
            timestamp=t,
            blink_count=b.blink_count,
            max_detections_per_second=self.rate.max_per_second,
            is_eye_closed=b.is_eye_closed,
            idle_duration=i.idle_duration,
            ear=self._ear,
            estimated_interval=i.estimated_interval,
            interval_variance=i.interval_variance,
            status=self._status,
            timestamp_anomalies=self._anomalies,
            frames_skipped=self._skipped,
        )
        return self._snapshot
