from enum import IntEnum
from typing import Tuple

class Phase(IntEnum):

    PROTRUSION = 0
    CSM = 1
    SSM = 2
    CONTACT = 3
    RETRACTION = 4

    def __str__(self):
        return self.name

Color = Tuple[int, int, int]

# RGB, 0-255
PHASE_COLORS: dict[Phase, Color] = {
    Phase.PROTRUSION: (0, 103, 56),
    Phase.CSM: (241, 101, 33),
    Phase.SSM: (236, 177, 33),
    Phase.CONTACT: (0, 0, 0),
    Phase.RETRACTION: (101, 44, 144),
}

MASK_COLOR: Color = (255, 0, 0)
MASK_ALPHA = 0.3
TIP_COLOR: Color = (255, 255, 0)
TEXT_COLOR: Color = (255, 255, 255)
SCALE_BAR_COLOR: Color = (0, 0, 0)
BACKGROUND_COLOR: Color = (255, 255, 255)

# (x, y), 0-based video coordinates of the top mask upper left corner 
DEFAULT_TOP_MASK_ORIGIN = (0, 29)
DEFAULT_PIX_PER_MILLIMETER = 20

# cameras run at 1 kHz
DEFAULT_MS_PER_FRAME = 1.0
DEFAULT_FPS = 30

# t_stats fields holding indices into the lick trajectory
PHASE_INDEX_FIELDS = [
    'prot_ind',
    'CSM_start',
    'CSM_end',
    'SSM_start',
    'SSM_end',
    'ret_ind'
]

TIP_FIELDS = ['tip_x', 'tip_y', 'tip_z']

MASK_VARIABLE = 'mask_pred'
T_STATS_VARIABLE = 't_stats'
T_STATS_FILENAME = 't_stats.mat'
