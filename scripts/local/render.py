from .config import ROOT, SESSIONS, STYLE_YAML, LICK_INDEX
from TongueTrajectory.config import load_render_config
from TongueTrajectory.session import make_segmentation_video_from_session

cfg = load_render_config(STYLE_YAML)

for video_dir, mask_dir in SESSIONS:
    make_segmentation_video_from_session(
        ROOT / video_dir, 
        ROOT / mask_dir, 
        ROOT / mask_dir / 'trajectory_videos', 
        LICK_INDEX,
        config = cfg
    )
