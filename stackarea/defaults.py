from __future__ import annotations


DEFAULT_WIDTH = 350
DEFAULT_HEIGHT = 150
DEFAULT_MARGIN_TOP = 80
DEFAULT_MARGIN_RIGHT = 10
DEFAULT_MARGIN_BOTTOM = 40
DEFAULT_MARGIN_LEFT = 40
MIN_CONTAINER_WIDTH = 100

DEFAULT_SERIES_COLOR = (62, 149, 255, 255)
AREA_OUTLINE_COLOR = (128, 128, 128, 255)

TIME_AXIS_TICK_COUNT = 5
TIME_AXIS_OFFSET = 30

# Info panel geometry, relative to the plot origin.
INFO_PANEL_Y = -60
INFO_TOTAL_DY = 18
INFO_EVENTS_DY = 54
INFO_METRICS_X = 120
INFO_METRICS_ROW_DY = 18
INFO_METRICS_PER_COLUMN = 3
INFO_METRICS_COLUMN_PAD = 70
INFO_METRIC_DOT_RADIUS = 4
INFO_METRIC_TEXT_DX = 10

SCANNER_OVERHANG = 10
EVENT_TICK_LENGTH = 8
EVENT_TICK_HIGHLIGHT_LENGTH = 12

TRANSITION_DURATION_S = 0.25
