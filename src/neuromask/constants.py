"""Shared constants and paths for NeuroMask."""

from pathlib import Path

# Package paths
PACKAGE_ROOT = Path(__file__).parent
CONFIG_DIR = PACKAGE_ROOT / "config"

# Persisted design format
APP_NAME = "NeuroMask"
DESIGN_FORMAT_VERSION = "2.1"

# Procedural head proportions (1 unit ~ 10cm)
HEAD_HALF_WIDTH_FACTOR = 0.55
HEAD_HEIGHT = 1.10
HEAD_DEPTH = 1.00

# Placement
DISTRIBUTION_SEED = 99
RANDOM_V_OFFSET = 1000          # hash offset separating v from u samples
SCALE_NOISE_STEP = 0.1          # hash offset multiplier for scale noise
GOLDEN_ANGLE = 2.39996
SPIRAL_V_STRETCH = 1.2
EYE_CENTERS = ((-0.35, 0.35), (0.35, 0.35))
EYE_CUTOUT_RADIUS = 0.12
UP_AXIS = (0.0, 1.0, 0.0)

# Snapping
SNAP_SAMPLE_BUDGET = 2000       # max vertices visited per snap query
TARGET_MESH_WIDTH = 1.6         # user meshes are normalized to this x extent

# Landmark tracking
LANDMARK_COUNT = 478            # MediaPipe FaceLandmarker contract
NOSE_TIP = 1
LEFT_EYE_OUTER = 33
RIGHT_EYE_OUTER = 263
LEFT_CHEEK = 454
RIGHT_CHEEK = 234

# Virtual camera used to lift normalized landmarks into scene units
CAMERA_DISTANCE = 4.0
CAMERA_FOV_Y_DEG = 45.0
IPD_UNITS = 0.63
REF_HEAD_WIDTH = 1.45
MIN_HEAD_DISTANCE = 0.5
MAX_HEAD_DISTANCE = 8.0
YAW_GAIN = 3.5
PITCH_GAIN = 3.0
POSE_SMOOTHING = 0.4

# Face capture
SCAN_SCENE_SCALE = 12.0
SCAN_FALLBACK_SCALE = 1.5

# Point cloud normals
NORMAL_NEIGHBORS = 6

# Animation defaults
MAX_DELTA_TIME = 0.1  # Clamp dt to avoid large jumps
