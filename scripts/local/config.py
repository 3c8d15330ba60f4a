from pathlib import Path

ROOT = Path('/media/data/tongue_tracking')

STYLE_YAML = Path('scripts/local/style.yaml')

# (video folder, segmentation folder) relative to ROOT
SESSIONS = [
    ('ALM_1/2023-03-14/videos', 'ALM_1/2023-03-14/segmentation'),
    ('ALM_1/2023-03-15/videos', 'ALM_1/2023-03-15/segmentation'),
    ('ALM_2/2023-03-14/videos', 'ALM_2/2023-03-14/segmentation'),
]

LICK_INDEX = 1
