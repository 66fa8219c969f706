from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class StatusField:
    """
    A labelled value shown in the status bar.

    :ivar label: The label/name of the status field.
    :ivar fmt: Format string used when no formatter is given.
    :ivar formatter: Callable turning the value into display text.
    :ivar value: Current value.
    """
    label: str
    fmt: str = "{}"
    formatter: Callable[[Any], str] = None
    value: Any = None
    visible: bool = True

    def __post_init__(self):
        if self.formatter is None:
            self.formatter = lambda v, fmt=self.fmt, label=self.label: f"{label}: {fmt.format(v)}"


def format_angle(label: str) -> Callable[[float], str]:
    def formatter(angle: float) -> str:
        return f"{label} {angle:.1f}\N{DEGREE SIGN}"
    return formatter


def format_visualization(node) -> str:
    """Describe the current transient node."""
    if node is None or node.record is None:
        return "Nothing shown"
    return f"Showing {node.record.kind.value} {node.record}"


# To add a field, add it here and update it from MainWindow.
STATUS_FIELDS = {
    "visualization": StatusField(label="Visualization", formatter=format_visualization),
    "azimuth": StatusField(label="Azimuth", formatter=format_angle("Az")),
    "elevation": StatusField(label="Elevation", formatter=format_angle("El")),
}
