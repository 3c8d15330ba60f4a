from pathlib import Path
from typing import Optional, Union

import numpy as np
from tqdm import tqdm

from video_tools import OpenCV_VideoReader, OpenCV_VideoWriter, FFMPEG_VideoWriter_CPU

WRITERS = ('opencv', 'ffmpeg')

def load_video_data(
        video_file: Path, 
        start: int = 0, 
        stop: Optional[int] = None,
        grayscale: bool = False
    ) -> np.ndarray:
    """Read frames [start, stop) of a video into a (frames, height, width[, 3]) array"""

    reader = OpenCV_VideoReader()
    reader.open_file(str(video_file))

    num_frames = reader.get_number_of_frame()
    stop = num_frames if stop is None else stop
    if not 0 <= start < stop <= num_frames:
        raise ValueError(f"Frame range [{start}, {stop}) outside of {video_file} ({num_frames} frames)")

    reader.seek_to(start)
    frames = []
    for frame_idx in tqdm(range(start, stop), leave=False):
        ret, frame = reader.next_frame()
        if not ret:
            raise RuntimeError(f'failed to read image #{frame_idx} from {video_file}')
        if grayscale and frame.ndim == 3:
            frame = frame[:, :, 0]
        frames.append(frame)

    return np.stack(frames)

def default_output_path(video_file: Union[str, Path], suffix: str = '_trajectory') -> Path:
    video_file = Path(video_file)
    return video_file.with_name(f"{video_file.stem}{suffix}{video_file.suffix}")

def save_video_data(
        frames: np.ndarray, 
        output_file: Path, 
        fps: float,
        writer: str = 'opencv',
        quality: int = 18,
        fourcc: str = 'mp4v'
    ) -> Path:

    if writer not in WRITERS:
        raise ValueError(f"Unknown writer '{writer}', expected one of {WRITERS}")

    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    height, width = frames.shape[1:3]

    if writer == 'ffmpeg':
        video_writer = FFMPEG_VideoWriter_CPU(
            filename = str(output_file),
            height = height, 
            width = width, 
            fps = fps, 
            q = quality,
        )
    else:
        video_writer = OpenCV_VideoWriter(
            height = height, 
            width = width,
            fps = fps,
            filename = str(output_file),
            fourcc = fourcc
        )

    for frame in tqdm(frames, leave=False):
        video_writer.write_frame(frame)
    video_writer.close()

    return output_file

def hconcat(*panels: np.ndarray) -> np.ndarray:
    """Lay RGB videos (frames, height, width, 3), or RGB frames, side by side"""

    if not panels:
        raise ValueError("Nothing to concatenate")
    
    for p in panels:
        if p.shape[-1] != 3:
            raise ValueError(f"Panels must be RGB, got shape {p.shape}")

    if len({p.shape[:-2] for p in panels}) != 1:
        raise ValueError(f"Panels differ in frame count or height: {[p.shape for p in panels]}")
    
    return np.concatenate(panels, axis=-2)
