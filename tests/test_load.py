import numpy as np
import pytest
from scipy.io import savemat

from conftest import matlab_record, write_t_stats
from TongueTrajectory.load import (
    LickStats,
    load_t_stats,
    select_lick,
    select_licks_by_index,
    load_mask_stack,
    find_session_files
)

def test_record_is_converted_to_zero_based():
    record = {
        'pairs': [3, 8],
        'prot_ind': 1,
        'CSM_start': 3,
        'CSM_end': 4,
        'SSM_start': 4,
        'SSM_end': 5,
        'ret_ind': 5,
        'tip_x': [1.0, 2.0],
        'tip_y': [3.0, 4.0],
        'tip_z': [5.0, 6.0],
        'lick_index': 7,
    }
    lick = LickStats.from_record(record)
    assert lick.pairs == (2, 7)
    assert lick.num_frames == 6
    assert lick.prot_ind == 0
    assert lick.ret_ind == 4
    np.testing.assert_array_equal(lick.tip_x, [0.0, 1.0])
    np.testing.assert_array_equal(lick.tip, [[0, 1], [2, 3], [4, 5]])
    # labels are not indices
    assert lick.lick_index == 7
    assert lick.trial_num is None

def test_record_zero_based_is_kept():
    record = {
        'pairs': [3, 8], 'prot_ind': 1, 'ret_ind': 5,
        'tip_x': [1.0], 'tip_y': [3.0], 'tip_z': [5.0],
    }
    lick = LickStats.from_record(record, one_based=False)
    assert lick.pairs == (3, 8)
    assert lick.prot_ind == 1
    assert lick.CSM_start is None
    np.testing.assert_array_equal(lick.tip_x, [1.0])

@pytest.mark.parametrize("value", [np.nan, [], None])
def test_missing_phase_index_is_none(value):
    record = {
        'pairs': [1, 1], 'CSM_start': value,
        'tip_x': [1.0], 'tip_y': [1.0], 'tip_z': [1.0],
    }
    assert LickStats.from_record(record).CSM_start is None

def test_record_errors():
    base = {'pairs': [1, 2], 'tip_x': [1.0, 2.0], 'tip_y': [1.0, 2.0], 'tip_z': [1.0, 2.0]}
    with pytest.raises(ValueError):
        LickStats.from_record({**base, 'pairs': [5, 2]})
    with pytest.raises(ValueError):
        LickStats.from_record({**base, 'pairs': [np.nan, 2]})
    with pytest.raises(ValueError):
        LickStats.from_record({**base, 'tip_z': [1.0]})
    with pytest.raises(KeyError):
        LickStats.from_record({'pairs': [1, 2]})

def test_load_t_stats_from_mat(t_stats_file):
    licks = load_t_stats(t_stats_file)
    assert len(licks) == 3
    first = licks[0]
    assert first.pairs == (2, 7)
    assert (first.prot_ind, first.CSM_start, first.CSM_end) == (0, 2, 3)
    assert (first.SSM_start, first.SSM_end, first.ret_ind) == (3, 4, 4)
    np.testing.assert_array_equal(first.tip_x, np.arange(6.0))
    np.testing.assert_array_equal(first.tip_z, np.arange(6.0) + 20)
    assert first.lick_index == 1
    assert first.trial_num == 1

    second = licks[1]
    assert second.CSM_start is None
    assert second.SSM_end is None
    assert second.ret_ind == 2

def test_load_t_stats_single_record(tmp_path):
    path = write_t_stats(tmp_path / 'one.mat', [matlab_record((1, 4), (1, 2, 2, 2, 3, 3), 4)])
    licks = load_t_stats(path)
    assert len(licks) == 1
    assert licks[0].pairs == (0, 3)

def test_load_t_stats_missing_variable(tmp_path):
    path = tmp_path / 'other.mat'
    savemat(str(path), {'something_else': np.zeros(3)})
    with pytest.raises(KeyError):
        load_t_stats(path)

def test_select_lick(t_stats_file, lick):
    assert select_lick(t_stats_file, 2).pairs == (4, 9)
    assert select_lick(t_stats_file, -1).pairs == (4, 9)
    assert select_lick(lick, 5) is lick
    # a single record is used whatever the lick number
    assert select_lick([lick], 3) is lick
    with pytest.raises(IndexError):
        select_lick(t_stats_file, 3)

def test_select_licks_by_index(t_stats_file):
    licks = select_licks_by_index(t_stats_file, 1)
    assert [l.trial_num for l in licks] == [1, 2]
    assert select_licks_by_index(t_stats_file, 9) == []

def test_load_mask_stack_mat(tmp_path):
    masks = np.zeros((5, 4, 3), dtype=np.uint8)
    masks[2:] = 255
    path = tmp_path / 'Top_1.mat'
    savemat(str(path), {'mask_pred': masks})

    stack = load_mask_stack(path, 1, 4)
    assert stack.shape == (3, 4, 3)
    assert stack.dtype == np.float32
    np.testing.assert_allclose(stack[:, 0, 0], [0.0, 1.0, 1.0])

def test_load_mask_stack_npy_and_npz(tmp_path):
    masks = np.random.default_rng(0).uniform(-0.5, 1.5, size=(3, 2, 2))
    np.save(tmp_path / 'masks.npy', masks)
    stack = load_mask_stack(tmp_path / 'masks.npy')
    assert stack.min() >= 0.0 and stack.max() <= 1.0

    np.savez(tmp_path / 'masks.npz', mask_pred=masks)
    assert load_mask_stack(tmp_path / 'masks.npz').shape == (3, 2, 2)

    np.savez(tmp_path / 'bad.npz', other=masks)
    with pytest.raises(KeyError):
        load_mask_stack(tmp_path / 'bad.npz')

def test_load_mask_stack_single_frame(tmp_path):
    np.save(tmp_path / 'mask.npy', np.ones((2, 2), dtype=bool))
    assert load_mask_stack(tmp_path / 'mask.npy').shape == (1, 2, 2)

def test_load_mask_stack_bad_shape(tmp_path):
    np.save(tmp_path / 'mask.npy', np.ones((2, 2, 2, 2)))
    with pytest.raises(ValueError):
        load_mask_stack(tmp_path / 'mask.npy')

def make_session(tmp_path, num_videos=2, num_top=2, num_bot=2, t_stats=True):
    video_dir = tmp_path / 'videos'
    mask_dir = tmp_path / 'masks'
    video_dir.mkdir()
    mask_dir.mkdir()
    for i in range(num_videos):
        (video_dir / f'trial_{i+1:03d}.avi').touch()
    for i in range(num_top):
        (mask_dir / f'Top_{i+1:03d}.mat').touch()
    for i in range(num_bot):
        (mask_dir / f'Bot_{i+1:03d}.mat').touch()
    if t_stats:
        (mask_dir / 't_stats.mat').touch()
    return video_dir, mask_dir

def test_find_session_files(tmp_path):
    video_dir, mask_dir = make_session(tmp_path)
    files = find_session_files(video_dir, mask_dir)
    assert [v.name for v in files.videos] == ['trial_001.avi', 'trial_002.avi']
    assert files.t_stats == mask_dir / 't_stats.mat'

    video, top, bot = files.trial(2)
    assert (video.name, top.name, bot.name) == ('trial_002.avi', 'Top_002.mat', 'Bot_002.mat')
    with pytest.raises(IndexError):
        files.trial(0)
    with pytest.raises(IndexError):
        files.trial(3)

def test_find_session_files_errors(tmp_path):
    (tmp_path / "a").mkdir()
    video_dir, mask_dir = make_session(tmp_path / "a", t_stats=False)
    with pytest.raises(FileNotFoundError):
        find_session_files(video_dir, mask_dir)

    (tmp_path / 'b').mkdir()
    video_dir, mask_dir = make_session(tmp_path / 'b', num_bot=1)
    with pytest.raises(ValueError):
        find_session_files(video_dir, mask_dir)
