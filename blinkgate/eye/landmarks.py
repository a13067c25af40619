from __future__ import annotations
import mediapipe as mp
import numpy as np
import cv2
from ..runtime.events import FrameObservation

# FaceMesh eye rings in contour order: corner, upper, upper, corner, lower, lower
LEFT_EYE = [33, 160, 158, 133, 153, 144]
RIGHT_EYE = [362, 385, 387, 263, 373, 380]

def bbox_relative(pts: np.ndarray, bbox) -> np.ndarray:
    """Express image-normalized points relative to the face box, each axis in [0,1]."""
    x0,y0,x1,y1 = bbox
    span = np.array([max(x1-x0, 1e-6), max(y1-y0, 1e-6)])
    return (pts - np.array([x0,y0])) / span

class FaceLandmarks:
    def __init__(self, static_image_mode=False):
        self.mesh = mp.solutions.face_mesh.FaceMesh(static_image_mode=static_image_mode,
                                                    refine_landmarks=False,
                                                    max_num_faces=1)

    def __call__(self, frame_bgr, ts: float) -> FrameObservation:
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        res = self.mesh.process(rgb)
        if not res.multi_face_landmarks:
            return FrameObservation.not_detected(ts)
        lms = res.multi_face_landmarks[0]
        pts = np.array([(lm.x, lm.y) for lm in lms.landmark], dtype=np.float64)
        bbox = (float(pts[:,0].min()), float(pts[:,1].min()), float(pts[:,0].max()), float(pts[:,1].max()))
        left = bbox_relative(pts[LEFT_EYE], bbox)
        right = bbox_relative(pts[RIGHT_EYE], bbox)
        return FrameObservation(timestamp=ts, bbox=bbox,
                                left_eye=[tuple(p) for p in left.tolist()],
                                right_eye=[tuple(p) for p in right.tolist()])
