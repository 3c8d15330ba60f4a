import numpy as np
import pytest
from scipy.io import savemat

from TongueTrajectory.load import LickStats

T_STATS_DTYPE = [
    ('pairs', 'O'),
    ('prot_ind', 'O'),
    ('CSM_start', 'O'),
    ('CSM_end', 'O'),
    ('SSM_start', 'O'),
    ('SSM_end', 'O'),
    ('ret_ind', 'O'),
    ('tip_x', 'O'),
    ('tip_y', 'O'),
    ('tip_z', 'O'),
    ('lick_index', 'O'),
    ('trial_num', 'O'),
]

def matlab_record(pairs, indices, n, lick_index=1, trial_num=1):
    """t_stats element the way MATLAB stores it, 1-based"""
    samples = np.arange(1.0, n + 1)
    return (
        np.array(pairs, dtype=float),
        *[np.nan if i is None else float(i) for i in indices],
        samples, 
        samples + 10, 
        samples + 20,
        float(lick_index),
        float(trial_num),
    )

def write_t_stats(path, records):
    savemat(str(path), {'t_stats': np.array(records, dtype=T_STATS_DTYPE)})
    return path

@pytest.fixture
def lick():
    """6-frame lick, 0-based, starting at frame 2 of the video"""
    return LickStats(
        pairs = (2, 7),
        prot_ind = 0,
        CSM_start = 2,
        CSM_end = 3,
        SSM_start = 3,
        SSM_end = 4,
        ret_ind = 4,
        tip_x = np.full(6, 5.0),
        tip_y = np.full(6, 15.0),
        tip_z = np.full(6, 2.0),
        lick_index = 1,
        trial_num = 1
    )

@pytest.fixture
def t_stats_file(tmp_path):
    records = [
        matlab_record((3, 8), (1, 3, 4, 4, 5, 5), 6, lick_index=1, trial_num=1),
        matlab_record((11, 14), (1, None, None, None, None, 3), 4, lick_index=2, trial_num=1),
        matlab_record((5, 10), (1, 3, 4, 4, 5, 5), 6, lick_index=1, trial_num=2),
    ]
    return write_t_stats(tmp_path / 't_stats.mat', records)
