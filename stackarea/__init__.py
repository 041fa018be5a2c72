from stackarea.api import stack_area
from stackarea.errors import SnapshotAlignmentError, StackAreaDataError, StackAreaError, StackAreaStateError
from stackarea.host import ChartHost, PointerEvent, SurfaceHost, pointer_move
from stackarea.resolver import closest
from stackarea.scales import LinearScale, Palette, TimeScale
from stackarea.selection import InfoPanelState, SelectionState
from stackarea.series import Margin, Sample, SeriesData, Snapshot, StackAreaStyle, StackedBand
from stackarea.stack import compute_stack
from stackarea.surface import FrameSurface, WriteBatch
from stackarea.widget import StackArea

__all__ = [
    "ChartHost",
    "FrameSurface",
    "InfoPanelState",
    "LinearScale",
    "Margin",
    "Palette",
    "PointerEvent",
    "Sample",
    "SelectionState",
    "SeriesData",
    "SnapshotAlignmentError",
    "Snapshot",
    "StackArea",
    "StackAreaDataError",
    "StackAreaError",
    "StackAreaStateError",
    "StackAreaStyle",
    "StackedBand",
    "SurfaceHost",
    "TimeScale",
    "WriteBatch",
    "closest",
    "compute_stack",
    "pointer_move",
    "stack_area",
]
