from pathlib import Path
from typing import List, Dict, NamedTuple, Optional, Sequence, Union, Any

import numpy as np
from scipy.io import loadmat

from TongueTrajectory.core import (
    PHASE_INDEX_FIELDS, 
    TIP_FIELDS, 
    MASK_VARIABLE, 
    T_STATS_VARIABLE,
    T_STATS_FILENAME
)

class LickStats(NamedTuple):
    pairs: tuple[int, int]
    prot_ind: Optional[int]
    CSM_start: Optional[int]
    CSM_end: Optional[int]
    SSM_start: Optional[int]
    SSM_end: Optional[int]
    ret_ind: Optional[int]
    tip_x: np.ndarray
    tip_y: np.ndarray
    tip_z: np.ndarray
    lick_index: Optional[int] = None
    trial_num: Optional[int] = None

    @property
    def start_frame(self) -> int:
        return self.pairs[0]

    @property
    def end_frame(self) -> int:
        return self.pairs[1]

    @property
    def num_frames(self) -> int:
        return self.pairs[1] - self.pairs[0] + 1

    @property
    def tip(self) -> np.ndarray:
        return np.vstack((self.tip_x, self.tip_y, self.tip_z))

    @classmethod
    def from_record(cls, record: Any, one_based: bool = True) -> "LickStats":
        """
        Build a LickStats from a t_stats record.

        Parameters
        ----------
        record : dict or scipy mat_struct
            One element of the t_stats struct array.
        one_based : bool
            Whether indices and tip pixel coordinates follow the MATLAB 
            1-based convention. They are shifted to 0-based if so.
        """
        shift = 1 if one_based else 0

        pairs = np.asarray(_field(record, 'pairs'), dtype=float).ravel()
        if pairs.size != 2 or not np.all(np.isfinite(pairs)):
            raise ValueError(f"pairs must hold a start and an end frame, got {pairs}")
        start, end = int(pairs[0]) - shift, int(pairs[1]) - shift
        if end < start:
            raise ValueError(f"lick ends before it starts: {start} > {end}")

        tip = [np.asarray(_field(record, f), dtype=float).ravel() - shift for f in TIP_FIELDS]
        if len({len(t) for t in tip}) != 1:
            raise ValueError(f"tip_x, tip_y and tip_z lengths differ: {[len(t) for t in tip]}")

        indices = {f: _index(_field(record, f, None), shift) for f in PHASE_INDEX_FIELDS}

        return cls(
            pairs = (start, end),
            tip_x = tip[0],
            tip_y = tip[1],
            tip_z = tip[2],
            lick_index = _index(_field(record, 'lick_index', None), 0),
            trial_num = _index(_field(record, 'trial_num', None), 0),
            **indices
        )

def _field(record: Any, name: str, *default: Any) -> Any:
    if isinstance(record, dict):
        value = record.get(name, *default) if default else record[name]
    elif hasattr(record, name):
        value = getattr(record, name)
    elif default:
        value = default[0]
    else:
        raise KeyError(f"t_stats record has no field '{name}'")
    return value

def _index(value: Any, shift: int) -> Optional[int]:
    if value is None:
        return None
    arr = np.asarray(value, dtype=float).ravel()
    if arr.size == 0 or not np.isfinite(arr[0]):
        return None
    return int(arr[0]) - shift

T_StatsInput = Union[str, Path, LickStats, Dict, Sequence]

def load_t_stats(t_stats: T_StatsInput, one_based: bool = True) -> List[LickStats]:
    """Load every lick record from a t_stats .mat file or from in-memory records"""

    if isinstance(t_stats, (str, Path)):
        mat = loadmat(str(t_stats), squeeze_me=True, struct_as_record=False)
        if T_STATS_VARIABLE not in mat:
            raise KeyError(f"No '{T_STATS_VARIABLE}' variable in {t_stats}")
        records = np.atleast_1d(mat[T_STATS_VARIABLE]).tolist()
    elif isinstance(t_stats, (LickStats, dict)):
        records = [t_stats]
    else:
        records = list(t_stats)

    return [
        r if isinstance(r, LickStats) else LickStats.from_record(r, one_based) 
        for r in records
    ]

def select_lick(t_stats: T_StatsInput, lick_num: int = 0) -> LickStats:

    if isinstance(t_stats, LickStats):
        return t_stats
    
    licks = load_t_stats(t_stats)
    if len(licks) == 1:
        return licks[0]
    
    if not -len(licks) <= lick_num < len(licks):
        raise IndexError(f"lick #{lick_num} out of range, t_stats holds {len(licks)} licks")
    return licks[lick_num]

def select_licks_by_index(t_stats: T_StatsInput, lick_index: int) -> List[LickStats]:
    return [lick for lick in load_t_stats(t_stats) if lick.lick_index == lick_index]

def normalize_mask(mask: np.ndarray) -> np.ndarray:
    if mask.dtype == np.uint8:
        return mask.astype(np.float32) / 255.0
    return np.clip(mask.astype(np.float32), 0.0, 1.0)

def load_mask_stack(
        mask_file: Path, 
        start: Optional[int] = None, 
        stop: Optional[int] = None
    ) -> np.ndarray:
    """
    Load a (num_frames, height, width) mask stack.

    Masks are stored as `mask_pred` in .mat/.npz files, or as a bare array
    in .npy files. Frames are restricted to [start, stop).
    """

    mask_file = Path(mask_file)
    suffix = mask_file.suffix.lower()

    if suffix == '.npy':
        masks = np.load(mask_file)
    elif suffix == '.npz':
        with np.load(mask_file) as data:
            if MASK_VARIABLE not in data:
                raise KeyError(f"No '{MASK_VARIABLE}' array in {mask_file}")
            masks = data[MASK_VARIABLE]
    else:
        mat = loadmat(str(mask_file))
        if MASK_VARIABLE not in mat:
            raise KeyError(f"No '{MASK_VARIABLE}' variable in {mask_file}")
        masks = mat[MASK_VARIABLE]

    if masks.ndim == 2:
        masks = masks[np.newaxis]
    if masks.ndim != 3:
        raise ValueError(f"Expected a (frames, height, width) mask stack, got shape {masks.shape}")

    return normalize_mask(masks[start:stop])

class SessionFiles(NamedTuple):
    videos: List[Path]
    top_masks: List[Path]
    bot_masks: List[Path]
    t_stats: Path

    def trial(self, trial_num: int) -> tuple[Path, Path, Path]:
        """video, top mask and bottom mask of a 1-based trial number"""
        if not 1 <= trial_num <= len(self.videos):
            raise IndexError(f"trial {trial_num} out of range, session has {len(self.videos)} videos")
        i = trial_num - 1
        return self.videos[i], self.top_masks[i], self.bot_masks[i]

def find_session_files(
        video_dir: Path, 
        mask_dir: Path,
        video_pattern: str = '*.avi'
    ) -> SessionFiles:

    video_dir = Path(video_dir)
    mask_dir = Path(mask_dir)

    t_stats_file = mask_dir / T_STATS_FILENAME
    if not t_stats_file.is_file():
        raise FileNotFoundError(f"No {T_STATS_FILENAME} in {mask_dir}")

    videos = sorted(f for f in video_dir.glob(video_pattern) if f.is_file())
    top_masks = sorted(f for f in mask_dir.glob('Top*') if f.is_file())
    bot_masks = sorted(f for f in mask_dir.glob('Bot*') if f.is_file())

    if not (len(videos) == len(top_masks) == len(bot_masks)):
        raise ValueError(
            f"Found {len(videos)} videos, {len(top_masks)} top masks "
            f"and {len(bot_masks)} bottom masks, counts must match"
        )

    return SessionFiles(videos, top_masks, bot_masks, t_stats_file)
