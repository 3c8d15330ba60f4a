from pathlib import Path

import numpy as np
import pandas as pd

from TongueTrajectory.core import Phase, DEFAULT_MS_PER_FRAME
from TongueTrajectory.load import LickStats
from TongueTrajectory.segments import sample_phase

def trajectory_table(
        lick: LickStats, 
        tip_video: np.ndarray, 
        ms_per_frame: float = DEFAULT_MS_PER_FRAME
    ) -> pd.DataFrame:
    """One row per lick frame: phase and tip position in video coordinates"""

    n = tip_video.shape[1]
    phases = sample_phase(lick, n)

    return pd.DataFrame({
        'frame': np.arange(lick.start_frame, lick.start_frame + n),
        'time_ms': (np.arange(n) + 1) * ms_per_frame,
        'phase': [str(Phase(p)) if p >= 0 else pd.NA for p in phases],
        'bottom_view_x': tip_video[1],
        'bottom_view_y': tip_video[0],
        'top_view_x': tip_video[1],
        'top_view_y': tip_video[2],
        'tip_x': lick.tip_x,
        'tip_y': lick.tip_y,
        'tip_z': lick.tip_z,
    })

def export_trajectory(
        lick: LickStats, 
        tip_video: np.ndarray, 
        output_csv: Path,
        ms_per_frame: float = DEFAULT_MS_PER_FRAME
    ) -> Path:

    output_csv = Path(output_csv)
    output_csv.parent.mkdir(parents=True, exist_ok=True)
    trajectory_table(lick, tip_video, ms_per_frame).to_csv(output_csv, index=False)
    return output_csv
