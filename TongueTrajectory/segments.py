# coordinate reconciliation between the mask crops and the raw video,
# and splitting of the tip trajectory into lick phases

from typing import Dict, Optional, Tuple

import numpy as np
from scipy.signal import butter, filtfilt

from TongueTrajectory.core import Phase
from TongueTrajectory.load import LickStats

Origin = Tuple[int, int]

def bottom_mask_origin(frame_height: int, bot_mask_height: int) -> Origin:
    # bottom mask sits in the lower left corner of the frame
    return (0, frame_height - bot_mask_height)

def place_mask(
        mask: np.ndarray, 
        origin: Origin, 
        frame_shape: Tuple[int, int]
    ) -> np.ndarray:
    """
    Paste a cropped mask into a frame-sized canvas.

    Parameters
    ----------
    mask : np.ndarray
        (h, w) mask in crop coordinates.
    origin : (int, int)
        (x, y) video coordinates of the upper left corner of the mask.
        Can be negative or extend past the frame, the overflow is clipped.
    frame_shape : (int, int)
        (height, width) of the video frame.
    """

    height, width = frame_shape[:2]
    h, w = mask.shape[:2]
    x0, y0 = int(origin[0]), int(origin[1])

    canvas = np.zeros((height, width), dtype=mask.dtype)

    # visible window, in frame and mask coordinates
    fx0, fy0 = max(x0, 0), max(y0, 0)
    fx1, fy1 = min(x0 + w, width), min(y0 + h, height)
    if fx0 >= fx1 or fy0 >= fy1:
        return canvas

    canvas[fy0:fy1, fx0:fx1] = mask[fy0-y0:fy1-y0, fx0-x0:fx1-x0]
    return canvas

def tip_to_video_coordinates(
        tip: np.ndarray, 
        bot_origin: Origin, 
        top_origin: Origin, 
        top_mask_height: int
    ) -> np.ndarray:
    """
    Move a 3xN tip trajectory from mask to video coordinates.

    tip_x is a row of the bottom mask, tip_y a column shared by both views
    and tip_z a height above the bottom edge of the top mask.
    Returns 3xN (bottom view row, column, top view row).
    """

    tip = np.asarray(tip, dtype=float)
    if tip.ndim != 2 or tip.shape[0] != 3:
        raise ValueError(f"tip must be 3xN, got shape {tip.shape}")

    video = np.empty_like(tip)
    video[0] = tip[0] + bot_origin[1]
    video[1] = tip[1] + bot_origin[0]
    video[2] = top_origin[1] + top_mask_height - 1 - tip[2]
    return video

def _span(start: Optional[int], stop: Optional[int], num_samples: int) -> np.ndarray:
    if start is None or stop is None:
        return np.array([], dtype=int)
    start = max(start, 0)
    stop = min(stop, num_samples - 1)
    return np.arange(start, stop + 1)

def phase_indices(lick: LickStats, num_samples: Optional[int] = None) -> Dict[Phase, np.ndarray]:
    """
    Trajectory samples belonging to each lick phase.

    Bounds are inclusive and neighbouring phases share their boundary 
    sample, so that segments drawn as lines connect.
    """

    n = len(lick.tip_x) if num_samples is None else num_samples

    # protrusion runs up to the first phase that follows it
    protrusion_end = next(
        (i for i in (lick.CSM_start, lick.CSM_end, lick.SSM_start, lick.ret_ind) if i is not None), 
        n - 1
    )

    return {
        Phase.PROTRUSION: _span(lick.prot_ind, protrusion_end, n),
        Phase.CSM: _span(lick.CSM_start, lick.CSM_end, n),
        Phase.SSM: _span(lick.SSM_start, lick.SSM_end, n),
        Phase.CONTACT: _span(lick.SSM_start, lick.SSM_start, n),
        Phase.RETRACTION: _span(lick.ret_ind, n - 1, n),
    }

def segment_trajectory(tip: np.ndarray, lick: LickStats) -> Dict[Phase, np.ndarray]:
    """
    Split a 3xN trajectory into one 3xN array per phase, NaN outside of 
    the phase, so that every segment stays aligned with the video frames.
    """

    tip = np.asarray(tip, dtype=float)
    segments = {}
    for phase, idx in phase_indices(lick, tip.shape[1]).items():
        segment = np.full_like(tip, np.nan)
        segment[:, idx] = tip[:, idx]
        segments[phase] = segment
    return segments

def sample_phase(lick: LickStats, num_samples: Optional[int] = None) -> np.ndarray:
    """Phase label of every sample, later phases win on shared samples. -1 if none"""

    n = len(lick.tip_x) if num_samples is None else num_samples
    labels = np.full(n, -1, dtype=int)
    indices = phase_indices(lick, n)
    for phase in (Phase.PROTRUSION, Phase.CSM, Phase.SSM, Phase.RETRACTION):
        labels[indices[phase]] = phase
    return labels

def lowpass_filter(
        trace: np.ndarray, 
        cutoff_hz: float = 50, 
        fs_hz: float = 1000, 
        order: int = 3
    ) -> np.ndarray:
    """Zero-phase Butterworth low-pass of the finite part of a 1D trace"""

    if not 0 < cutoff_hz < fs_hz / 2:
        raise ValueError(
            f"Low-pass cutoff of {cutoff_hz} Hz must be between 0 and half the "
            f"frame rate ({fs_hz} Hz)"
        )

    trace = np.asarray(trace, dtype=float)
    out = trace.copy()

    finite = np.flatnonzero(np.isfinite(trace))
    if finite.size == 0:
        return out
    
    # NaNs inside the finite run are interpolated before filtering
    first, last = finite[0], finite[-1] + 1
    run = trace[first:last]
    x = np.arange(len(run))
    ok = np.isfinite(run)
    run = np.interp(x, x[ok], run[ok])

    b, a = butter(order, cutoff_hz, btype='low', fs=fs_hz)
    padlen = 3 * max(len(a), len(b))
    if len(run) <= padlen:
        return out

    filtered = filtfilt(b, a, run, padlen=padlen)
    filtered[~ok] = np.nan
    out[first:last] = filtered
    return out
