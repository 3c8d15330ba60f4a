"""
Three-panel diagnostic video of a single lick: the raw video, the video with
the top and bottom tongue masks and the tip overlaid, and the tip trajectory
colour-coded by lick phase.
"""

from pathlib import Path
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt

from TongueTrajectory.config import RenderConfig
from TongueTrajectory.core import Phase
from TongueTrajectory.export import export_trajectory
from TongueTrajectory.load import LickStats, T_StatsInput, select_lick, load_mask_stack, normalize_mask
from TongueTrajectory.plotter import VideoPlotter
from TongueTrajectory.segments import (
    bottom_mask_origin,
    tip_to_video_coordinates,
    segment_trajectory,
    lowpass_filter
)
from TongueTrajectory.video import (
    load_video_data, 
    save_video_data, 
    default_output_path, 
    hconcat
)

VideoInput = Union[str, Path, np.ndarray]
MaskInput = Union[str, Path, np.ndarray]

# phases drawn as trajectory segments, contact is drawn on its own
TRAJECTORY_PHASES = (Phase.PROTRUSION, Phase.CSM, Phase.SSM, Phase.RETRACTION)

# rows of the video-coordinate tip array, one per camera view
TOP_VIEW_ROW = 2
BOTTOM_VIEW_ROW = 0
COLUMN_ROW = 1

class SegmentationVideo(NamedTuple):
    video_data: np.ndarray
    full_video: np.ndarray
    output_path: Optional[Path]

class Panels(NamedTuple):
    raw: VideoPlotter
    masked: VideoPlotter
    graph: VideoPlotter

def smooth_lick(lick: LickStats, cutoff_hz: float, ms_per_frame: float) -> LickStats:
    fs_hz = 1000.0 / ms_per_frame
    return lick._replace(
        tip_x = lowpass_filter(lick.tip_x, cutoff_hz, fs_hz),
        tip_y = lowpass_filter(lick.tip_y, cutoff_hz, fs_hz),
        tip_z = lowpass_filter(lick.tip_z, cutoff_hz, fs_hz),
    )

def restrict_video(video: VideoInput, start: int, stop: int) -> np.ndarray:

    if isinstance(video, np.ndarray):
        if stop > video.shape[0]:
            raise ValueError(f"Lick frames [{start}, {stop}) outside of video ({video.shape[0]} frames)")
        return video[start:stop]

    print('Loading video...')
    return load_video_data(Path(video), start, stop)

def restrict_masks(masks: MaskInput, start: int, stop: int, name: str) -> np.ndarray:

    if isinstance(masks, np.ndarray):
        stack = normalize_mask(masks[start:stop])
    else:
        stack = load_mask_stack(Path(masks), start, stop)

    if stack.shape[0] != stop - start:
        raise ValueError(f"{name} mask stack too short for lick frames [{start}, {stop})")
    return stack

def build_panels(
        video_data: np.ndarray,
        top_masks: np.ndarray,
        bot_masks: np.ndarray,
        tip_video: np.ndarray,
        segments: dict,
        bot_origin: Tuple[int, int],
        cfg: RenderConfig
    ) -> Panels:

    num_frames, height, width = video_data.shape[:3]

    raw = VideoPlotter(video_data)
    masked = VideoPlotter(video_data)
    graph = VideoPlotter(np.full((num_frames, height, width, 3), cfg.background_color, dtype=np.uint8))

    # masks and current tip position
    masked.add_overlay(top_masks, cfg.mask_color, cfg.mask_alpha, cfg.top_mask_origin)
    masked.add_overlay(bot_masks, cfg.mask_color, cfg.mask_alpha, bot_origin)
    for row in (BOTTOM_VIEW_ROW, TOP_VIEW_ROW):
        masked.add_plot(
            tip_video[COLUMN_ROW], tip_video[row], 'point', cfg.tip_color, 
            marker='o', line_width=cfg.tip_line_width, marker_size=cfg.tip_marker_size
        )

    # elapsed time
    labels = [f'{(i+1) * cfg.ms_per_frame:03.0f} ms' for i in range(num_frames)]
    raw.add_text(labels, (20, height - 20), cfg.text_color, cfg.font_scale)

    # trajectory, growing with time, and current tip position
    for phase in TRAJECTORY_PHASES:
        seg, color = segments[phase], cfg.phase_colors[phase]
        for row in (TOP_VIEW_ROW, BOTTOM_VIEW_ROW):
            graph.add_plot(seg[COLUMN_ROW], seg[row], 'trail', color, line_width=cfg.line_width)
        for row in (TOP_VIEW_ROW, BOTTOM_VIEW_ROW):
            graph.add_plot(
                seg[COLUMN_ROW], seg[row], 'point', color, 
                marker='o', line_width=cfg.line_width, marker_size=cfg.marker_size
            )

    contact = segments[Phase.CONTACT]
    for row in (TOP_VIEW_ROW, BOTTOM_VIEW_ROW):
        graph.add_plot(
            contact[COLUMN_ROW], contact[row], 'trail', cfg.phase_colors[Phase.CONTACT],
            marker='x', line_width=cfg.contact_line_width, marker_size=cfg.contact_marker_size
        )

    # scale bar
    graph.add_text('1 mm', (width - 50, height - 30), cfg.scale_bar_color, cfg.font_scale)
    graph.add_plot(
        [width - 50, width - 50 + cfg.pix_per_millimeter], [height - 20, height - 20],
        'static', cfg.scale_bar_color, line_width=cfg.scale_bar_width
    )

    return Panels(raw, masked, graph)

def render(panels: Panels, sample_frame: Optional[int] = None) -> np.ndarray:

    if sample_frame is None:
        print('Generating the raw video...')
        raw_video = panels.raw.get_video_plot()
        print('Generating the masked video...')
        masked_video = panels.masked.get_video_plot()
        print('Generating the trajectory video...')
        graph_video = panels.graph.get_video_plot()
        print('Done generating videos.')
    else:
        print('Generating sample frame...')
        raw_video = panels.raw.get_frame(sample_frame)
        masked_video = panels.masked.get_frame(sample_frame)
        graph_video = panels.graph.get_frame(sample_frame)

    return hconcat(raw_video, masked_video, graph_video)

def show_sample_frame(image: np.ndarray, output_path: Optional[Path] = None) -> None:

    if output_path is not None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        plt.imsave(output_path, image)
        return
    
    print('Displaying sample frame...')
    fig = plt.figure()
    ax = fig.gca()
    ax.imshow(image)
    ax.set_axis_off()
    plt.show()

def make_segmentation_video(
        video: VideoInput,
        top_mask: MaskInput,
        bot_mask: MaskInput,
        t_stats: T_StatsInput,
        lick_num: int = 0,
        top_mask_origin: Optional[Tuple[int, int]] = None,
        pix_per_millimeter: Optional[float] = None,
        output_path: Optional[Path] = None,
        sample_frame: Optional[int] = None,
        config: Optional[RenderConfig] = None,
        export_csv: bool = False
    ) -> SegmentationVideo:
    """
    Create a video illustrating the segmentation and trajectory of a mouse 
    tongue licking a spout.

    Parameters
    ----------
    video : path or np.ndarray
        Raw video file, or the video data itself (frames, height, width[, 3]).
    top_mask, bot_mask : path or np.ndarray
        Top and bottom view mask stacks (frames, height, width).
    t_stats : path, record or list of records
        t_stats .mat file or already loaded licks.
    lick_num : int
        Position of the lick to animate within t_stats.
    top_mask_origin : (int, int)
        0-based (x, y) video coordinates of the top mask upper left corner.
    pix_per_millimeter : float
        Video scale, sets the length of the scale bar.
    output_path : Path
        Where to save the video. Defaults to <video>_trajectory.<ext>.
        With `sample_frame`, where to save the sample frame image.
    sample_frame : int
        Only render this frame of the lick, much faster than the whole 
        video. Shown in a figure unless `output_path` is given.
    config : RenderConfig
        Colors, line widths, writer. Explicit arguments take precedence.
    export_csv : bool
        Also write the phase-labelled trajectory next to the video.
    """

    cfg = (config or RenderConfig()).update(
        top_mask_origin = top_mask_origin, 
        pix_per_millimeter = pix_per_millimeter
    )
    output_path = None if output_path is None else Path(output_path)

    if sample_frame is None and output_path is None:
        if isinstance(video, np.ndarray):
            raise ValueError("output_path is required when the video is passed as an array")
        output_path = default_output_path(video)

    if isinstance(t_stats, (str, Path)):
        print('Loading t_stats...')
    lick = select_lick(t_stats, lick_num)
    if cfg.lowpass_cutoff_hz is not None:
        lick = smooth_lick(lick, cfg.lowpass_cutoff_hz, cfg.ms_per_frame)

    start, stop = lick.start_frame, lick.end_frame + 1
    num_frames = lick.num_frames
    if start < 0:
        raise ValueError(f"Lick starts before the first frame: {start}")
    if len(lick.tip_x) != num_frames:
        raise ValueError(f"Trajectory has {len(lick.tip_x)} samples but the lick spans {num_frames} frames")
    if sample_frame is not None and not 0 <= sample_frame < num_frames:
        raise IndexError(f"Sample frame #{sample_frame} out of range [0, {num_frames})")

    video_data = restrict_video(video, start, stop)
    height = video_data.shape[1]

    print('Loading masks...')
    top_masks = restrict_masks(top_mask, start, stop, 'top')
    bot_masks = restrict_masks(bot_mask, start, stop, 'bottom')

    bot_origin = bottom_mask_origin(height, bot_masks.shape[1])
    tip_video = tip_to_video_coordinates(lick.tip, bot_origin, cfg.top_mask_origin, top_masks.shape[1])
    segments = segment_trajectory(tip_video, lick)

    print('Creating VideoPlotter objects...')
    panels = build_panels(video_data, top_masks, bot_masks, tip_video, segments, bot_origin, cfg)
    full_video = render(panels, sample_frame)

    if sample_frame is not None:
        show_sample_frame(full_video, output_path)
        return SegmentationVideo(video_data, full_video, output_path)

    print(f'Saving the full video to {output_path}')
    save_video_data(full_video, output_path, cfg.fps, cfg.writer, cfg.quality)
    if export_csv:
        export_trajectory(lick, tip_video, output_path.with_suffix('.csv'), cfg.ms_per_frame)

    return SegmentationVideo(video_data, full_video, output_path)
