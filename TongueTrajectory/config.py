import argparse
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from TongueTrajectory.core import (
    Phase,
    Color,
    PHASE_COLORS,
    MASK_COLOR,
    MASK_ALPHA,
    TIP_COLOR,
    TEXT_COLOR,
    SCALE_BAR_COLOR,
    BACKGROUND_COLOR,
    DEFAULT_TOP_MASK_ORIGIN,
    DEFAULT_PIX_PER_MILLIMETER,
    DEFAULT_MS_PER_FRAME,
    DEFAULT_FPS
)

@dataclass
class RenderConfig:
    top_mask_origin: Tuple[int, int] = DEFAULT_TOP_MASK_ORIGIN
    pix_per_millimeter: float = DEFAULT_PIX_PER_MILLIMETER
    ms_per_frame: float = DEFAULT_MS_PER_FRAME

    # colors
    phase_colors: Dict[Phase, Color] = field(default_factory=lambda: dict(PHASE_COLORS))
    mask_color: Color = MASK_COLOR
    mask_alpha: float = MASK_ALPHA
    tip_color: Color = TIP_COLOR
    text_color: Color = TEXT_COLOR
    scale_bar_color: Color = SCALE_BAR_COLOR
    background_color: Color = BACKGROUND_COLOR

    # markers and lines
    line_width: int = 1
    marker_size: int = 3
    tip_marker_size: int = 5
    tip_line_width: int = 2
    contact_marker_size: int = 4
    contact_line_width: int = 2
    scale_bar_width: int = 2
    font_scale: float = 0.5

    # trajectory
    lowpass_cutoff_hz: Optional[float] = None
    
    # output
    fps: float = DEFAULT_FPS
    writer: str = 'opencv'
    quality: int = 18

    def update(self, **overrides: Any) -> "RenderConfig":
        """Copy with every non-None override applied"""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

def load_yaml_config(path: Path) -> dict:
    """Load YAML config from file"""
    with open(path, 'r') as f:
        cfg = yaml.safe_load(f)
    return cfg or {}

def _color(value: Any, key: str) -> Color:
    if len(value) != 3:
        raise ValueError(f"'{key}' must be an RGB triplet, got {value}")
    return tuple(int(c) for c in value)

def config_from_dict(cfg: dict) -> RenderConfig:

    known = {f.name for f in fields(RenderConfig)}
    unknown = set(cfg) - known
    if unknown:
        raise KeyError(f"Unknown config keys: {sorted(unknown)}")

    kwargs = dict(cfg)
    if 'top_mask_origin' in kwargs:
        kwargs['top_mask_origin'] = tuple(int(v) for v in kwargs['top_mask_origin'])
    if 'phase_colors' in kwargs:
        colors = dict(PHASE_COLORS)
        for name, value in kwargs['phase_colors'].items():
            try:
                phase = Phase[name.upper()]
            except KeyError:
                raise KeyError(f"Unknown phase '{name}' in phase_colors") from None
            colors[phase] = _color(value, name)
        kwargs['phase_colors'] = colors
    for key in ('mask_color', 'tip_color', 'text_color', 'scale_bar_color', 'background_color'):
        if key in kwargs:
            kwargs[key] = _color(kwargs[key], key)

    return RenderConfig(**kwargs)

def load_render_config(path: Optional[Path]) -> RenderConfig:
    if path is None:
        return RenderConfig()
    return config_from_dict(load_yaml_config(path))

def add_render_arguments(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML render config (colors, alpha, line widths, writer...)",
    )

    parser.add_argument(
        "--top-mask-origin",
        type=int,
        nargs=2,
        metavar=("X", "Y"),
        default=None,
        help=f"0-based video coordinates of the top mask upper left corner (default: {DEFAULT_TOP_MASK_ORIGIN})",
    )

    parser.add_argument(
        "--pix-per-mm",
        type=float,
        default=None,
        help=f"video scale, for the scale bar (default: {DEFAULT_PIX_PER_MILLIMETER})",
    )

    parser.add_argument(
        "--ms-per-frame",
        type=float,
        default=None,
        help=f"camera frame period, for the time label (default: {DEFAULT_MS_PER_FRAME})",
    )

    parser.add_argument(
        "--lowpass-cutoff",
        type=float,
        default=None,
        help="smooth the tip trajectory with a Butterworth low-pass at this cutoff (Hz)",
    )

    parser.add_argument(
        "--fps",
        type=float,
        default=None,
        help=f"output video framerate (default: {DEFAULT_FPS})",
    )

    parser.add_argument(
        "--writer",
        choices=['opencv', 'ffmpeg'],
        default=None,
        help="video encoder, ffmpeg must be on the PATH (default: opencv)",
    )

    parser.add_argument(
        "--quality",
        type=int,
        default=None,
        help="ffmpeg constant quality (default: 18)",
    )

    parser.add_argument(
        "--export-csv",
        action="store_true",
        help="also save the phase-labelled trajectory as CSV next to the video",
    )

    return parser

def config_from_args(args: argparse.Namespace) -> RenderConfig:
    cfg = load_render_config(args.config)
    return cfg.update(
        top_mask_origin = None if args.top_mask_origin is None else tuple(args.top_mask_origin),
        pix_per_millimeter = args.pix_per_mm,
        ms_per_frame = args.ms_per_frame,
        lowpass_cutoff_hz = args.lowpass_cutoff,
        fps = args.fps,
        writer = args.writer,
        quality = args.quality
    )
