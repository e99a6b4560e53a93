"""Module-level constants for mfactor."""

EPSILON = 1e-10

DEFAULT_IC_N = 5
DEFAULT_IC_ROLLING_N = 120
MIN_IC_PAIRS = 2

NEWEY_WEST_MIN_PERIODS = 10

CONFIG_VERSION = 1
CONFIG_FILE = 'config.json'
PANEL_FILE = 'panel.csv'
FACTORS_DIR = 'factors'
