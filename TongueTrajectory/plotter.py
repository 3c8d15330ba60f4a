# layered per-frame rendering on top of a video

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import cv2
from tqdm import tqdm

from TongueTrajectory.core import Color, TEXT_COLOR
from TongueTrajectory.segments import Origin, place_mask

PLOT_MODES = ('point', 'trail', 'static')
MARKERS = ('o', 'x', None)

def to_rgb(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.ndim == 3 and image.shape[2] == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2RGB)
    return image.copy()

def alpha_blend(
        background_rgb: np.ndarray, 
        weight: np.ndarray, 
        color: Color, 
        alpha_max: float = 0.5
    ) -> np.ndarray:

    bg = background_rgb.astype(np.float32) / 255.0
    fg = np.asarray(color, dtype=np.float32) / 255.0

    alpha = alpha_max * weight[..., np.newaxis]
    blended = bg * (1 - alpha) + fg * alpha
    return (blended * 255).round().clip(0, 255).astype(np.uint8)

def add_label(
        image: np.ndarray,
        label: str,
        position: Tuple[int, int] = (10, 30),
        color: Color = TEXT_COLOR,
        font: int = cv2.FONT_HERSHEY_SIMPLEX,
        font_scale: float = 0.5,
        thickness: int = 1,
    ) -> None:

    cv2.putText(image, label, position, font, font_scale, color, thickness, cv2.LINE_AA)

def finite_runs(x: np.ndarray, y: np.ndarray) -> List[np.ndarray]:
    """Split a polyline at NaN samples, returns int32 point arrays"""

    ok = np.isfinite(x) & np.isfinite(y)
    runs = []
    start = None
    for i, valid in enumerate(np.append(ok, False)):
        if valid and start is None:
            start = i
        elif not valid and start is not None:
            pts = np.column_stack((x[start:i], y[start:i]))
            runs.append(np.round(pts).astype(np.int32))
            start = None
    return runs

def draw_marker(
        image: np.ndarray, 
        x: float, 
        y: float, 
        marker: Optional[str], 
        color: Color, 
        size: int, 
        thickness: int
    ) -> None:

    if marker is None or not (np.isfinite(x) and np.isfinite(y)):
        return
    
    center = (int(round(x)), int(round(y)))
    if marker == 'o':
        cv2.circle(image, center, size, color, thickness, cv2.LINE_AA)
    elif marker == 'x':
        cv2.drawMarker(image, center, color, cv2.MARKER_TILTED_CROSS, 2*size, thickness, cv2.LINE_AA)

@dataclass
class OverlayLayer:
    masks: np.ndarray
    color: Color
    alpha: float
    origin: Origin

    def draw(self, image: np.ndarray, frame_idx: int) -> np.ndarray:
        weight = place_mask(self.masks[frame_idx], self.origin, image.shape[:2])
        return alpha_blend(image, weight, self.color, self.alpha)

@dataclass
class PlotLayer:
    x: np.ndarray
    y: np.ndarray
    mode: str
    color: Color
    marker: Optional[str] = None
    line_width: int = 1
    marker_size: int = 4

    def draw(self, image: np.ndarray, frame_idx: int) -> np.ndarray:

        if self.mode == 'point':
            draw_marker(image, self.x[frame_idx], self.y[frame_idx], self.marker or 'o', 
                        self.color, self.marker_size, self.line_width)
            return image

        stop = frame_idx + 1 if self.mode == 'trail' else len(self.x)
        x, y = self.x[:stop], self.y[:stop]

        for run in finite_runs(x, y):
            if len(run) > 1 and self.line_width > 0:
                cv2.polylines(image, [run], False, self.color, self.line_width, cv2.LINE_AA)

        if self.marker is not None:
            for xi, yi in zip(x, y):
                draw_marker(image, xi, yi, self.marker, self.color, self.marker_size, self.line_width)

        return image

@dataclass
class TextLayer:
    text: Union[str, Sequence[str]]
    position: Tuple[int, int]
    color: Color = TEXT_COLOR
    font_scale: float = 0.5

    def draw(self, image: np.ndarray, frame_idx: int) -> np.ndarray:
        label = self.text if isinstance(self.text, str) else self.text[frame_idx]
        add_label(image, label, self.position, self.color, font_scale=self.font_scale)
        return image

Layer = Union[OverlayLayer, PlotLayer, TextLayer]

@dataclass
class VideoPlotter:
    """
    Video with overlays, plots and text added on top, rendered per frame.
    Layers are drawn in the order they were added.
    """

    frames: np.ndarray
    layers: List[Layer] = field(default_factory=list)

    @property
    def num_frames(self) -> int:
        return self.frames.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.frames.shape[1:3]

    def _check_length(self, n: int, what: str) -> None:
        if n != self.num_frames:
            raise ValueError(f"{what} has {n} frames, video has {self.num_frames}")

    def add_overlay(
            self, 
            masks: np.ndarray, 
            color: Color, 
            alpha: float, 
            origin: Origin = (0, 0)
        ) -> None:

        self._check_length(masks.shape[0], 'mask stack')
        self.layers.append(OverlayLayer(masks, color, alpha, origin))

    def add_plot(
            self,
            x: Sequence[float],
            y: Sequence[float],
            mode: str,
            color: Color,
            marker: Optional[str] = None,
            line_width: int = 1,
            marker_size: int = 4
        ) -> None:

        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.shape != y.shape:
            raise ValueError(f"x and y lengths differ: {x.shape} vs {y.shape}")
        if mode not in PLOT_MODES:
            raise ValueError(f"Unknown plot mode '{mode}', expected one of {PLOT_MODES}")
        if marker not in MARKERS:
            raise ValueError(f"Unknown marker '{marker}', expected one of {MARKERS}")
        if mode != 'static':
            self._check_length(len(x), 'plot')

        self.layers.append(PlotLayer(x, y, mode, color, marker, line_width, marker_size))

    def add_text(
            self, 
            text: Union[str, Sequence[str]], 
            position: Tuple[int, int], 
            color: Color = TEXT_COLOR,
            font_scale: float = 0.5
        ) -> None:

        if not isinstance(text, str):
            self._check_length(len(text), 'text')
        self.layers.append(TextLayer(text, position, color, font_scale))

    def get_frame(self, frame_idx: int) -> np.ndarray:

        if not 0 <= frame_idx < self.num_frames:
            raise IndexError(f"frame #{frame_idx} out of range [0, {self.num_frames})")

        image = np.ascontiguousarray(to_rgb(self.frames[frame_idx]))
        for layer in self.layers:
            image = layer.draw(image, frame_idx)
        return image

    def get_video_plot(self) -> np.ndarray:
        height, width = self.shape
        video = np.empty((self.num_frames, height, width, 3), dtype=np.uint8)
        for frame_idx in tqdm(range(self.num_frames), leave=False):
            video[frame_idx] = self.get_frame(frame_idx)
        return video
