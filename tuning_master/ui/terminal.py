"""Terminal renderer: draws the display models as ASCII with click."""

from typing import Optional, Sequence

import click
import pyfiglet

from ..logger import get_logger
from ..display import (
    DisplayMode,
    NeedleModel,
    PolyphonicModel,
    StrobeModel,
    build_display,
    NEEDLE_MAX_DEGREES,
)
from ..note_types import StringTuningResult, TuningResult

logger = get_logger(__name__)

NEEDLE_WIDTH = 31
STROBE_WIDTH = 24
STROBE_PATTERN = "█░░"


def draw_needle(model: NeedleModel, width: int = NEEDLE_WIDTH) -> str:
    """|-----------^-----------| with the marker placed by the needle rotation."""
    mid = width // 2
    pos = mid + int(round(model.rotation / NEEDLE_MAX_DEGREES * mid))
    cells = ["-"] * width
    cells[0], cells[mid], cells[-1] = "|", "|", "|"
    cells[pos] = "^"
    marker = click.style("IN TUNE", fg="green") if model.in_tune else ""
    return f"[{''.join(cells)}] {marker}".rstrip()


def draw_strobe(model: StrobeModel, phase: float, width: int = STROBE_WIDTH) -> str:
    """One row per band, shifted by how far each band has turned after ``phase`` seconds."""
    rows = []
    for band in model.bands:
        shift = int(phase * band.speed * len(STROBE_PATTERN)) % len(STROBE_PATTERN)
        if band.direction == "flat":
            shift = -shift
        pattern = (STROBE_PATTERN * (width // len(STROBE_PATTERN) + 2))[
            shift % len(STROBE_PATTERN):
        ][:width]
        rows.append(pattern)
    return " ".join(rows)


def draw_strings(model: PolyphonicModel) -> str:
    parts = []
    for bar in model.strings:
        if not bar.active:
            parts.append(f"{bar.label}:  .  ")
        elif bar.in_tune:
            parts.append(click.style(f"{bar.label}:  OK ", fg="green"))
        else:
            arrow = "v" if bar.cents > 0 else "^"
            parts.append(click.style(f"{bar.label}:{arrow}{abs(bar.cents):3.0f}", fg="red"))
    return "  ".join(parts)


def render_line(model, phase: float = 0.0) -> str:
    """Single status line for any display model."""
    r = model.readout
    note = f"{r.note}{r.octave if r.octave is not None else ''}"
    head = f"{note:<4} {r.cents_label:>10}"

    if isinstance(model, NeedleModel):
        body = draw_needle(model)
    elif isinstance(model, StrobeModel):
        body = draw_strobe(model, phase)
    else:
        body = draw_strings(model)
    return f"{head}  {body}"


class TerminalRenderer:
    """Redraws one status line per result; optionally prints big note names."""

    def __init__(self, mode: DisplayMode = DisplayMode.CHROMATIC, big_note: bool = False):
        self.mode = DisplayMode(mode)
        self.big_note = big_note
        self._last_note: Optional[str] = None
        self._phase = 0.0

    def on_result(
        self, result: TuningResult, strings: Sequence[StringTuningResult] = ()
    ) -> None:
        """RESULT_UPDATED listener."""
        model = build_display(self.mode, result, strings)

        note = str(result.note) if result.note else None
        if self.big_note and note and note != self._last_note:
            click.echo("\n" + pyfiglet.figlet_format(result.note.name, font="big"))
        self._last_note = note

        self._phase += 1 / 60
        click.echo("\r" + render_line(model, self._phase) + "\033[K", nl=False)

    def finish(self) -> None:
        click.echo("")
