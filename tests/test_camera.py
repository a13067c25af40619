import numpy as np
import pytest
from blinkgate.io import camera

class FakeCapture:
    def __init__(self, n=3, opened=True):
        self.n = n; self.opened = opened; self.released = False
    def isOpened(self): return self.opened
    def set(self, prop, val): return True
    def read(self):
        if self.n == 0: return False, None
        self.n -= 1
        return True, np.zeros((4,4,3), np.uint8)
    def release(self): self.released = True

def test_frames_timestamps_never_go_back(monkeypatch):
    cap = FakeCapture(n=3)
    monkeypatch.setattr(camera.cv2, "VideoCapture", lambda src: cap)
    ticks = iter([5.0, 4.0, 6.0])
    out = list(camera.frames(0, clock=lambda: next(ticks)))
    assert [t for t, _ in out] == [5.0, 5.0, 6.0]
    assert out[0][1].shape == (4,4,3)
    assert cap.released

def test_closed_camera_raises(monkeypatch):
    cap = FakeCapture(opened=False)
    monkeypatch.setattr(camera.cv2, "VideoCapture", lambda src: cap)
    with pytest.raises(RuntimeError):
        next(camera.frames(1))
    assert cap.released
