"""Command-line runner that executes a ROM headlessly."""

from __future__ import annotations

import sys
from collections import deque
from typing import TextIO

from chipeight.machine import (
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    Chip8,
    Chip8Error,
    Status,
)

PROG_NAME = "chipeight"
DEFAULT_CYCLES_PER_FRAME = 10
DEFAULT_MAX_CYCLES = 1_000_000
SEPARATOR = "-" * DISPLAY_WIDTH

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


class _RunFailure(Chip8Error):
    """A machine error together with the number of cycles completed before it."""

    def __init__(self, status: Status, pc: int | None, cycles: int) -> None:
        super().__init__(status, pc)
        self.cycles = cycles


def render_ascii(display) -> str:
    """Render a display buffer as a separator line and rows of '#' and '.'."""
    lines = [SEPARATOR]
    for y in range(DISPLAY_HEIGHT):
        row = display[y * DISPLAY_WIDTH:(y + 1) * DISPLAY_WIDTH]
        lines.append("".join("#" if pixel else "." for pixel in row))
    return "\n".join(lines) + "\n"


def run(
    chip: Chip8,
    max_cycles: int = DEFAULT_MAX_CYCLES,
    cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
    ascii_output: bool = False,
    out: TextIO | None = None,
) -> int:
    """Execute up to max_cycles instructions and return how many ran."""
    if out is None:
        out = sys.stdout
    executed = 0
    frame_count = 0
    while executed < max_cycles:
        try:
            chip.cycle()
        except Chip8Error as exc:
            raise _RunFailure(exc.status, exc.pc, executed) from exc
        executed += 1
        frame_count += 1
        if frame_count >= cycles_per_frame:
            chip.tick_timers()
            frame_count = 0
            if chip.sound_timer > 0:
                out.write("\a")
                out.flush()
            if chip.consume_draw_flag() and ascii_output:
                out.write(render_ascii(chip.display))
    return executed


def _print_usage(out: TextIO) -> None:
    out.write(
        f"Usage: {PROG_NAME} <rom_path> [--cycles-per-frame N] [--max-cycles N] [--ascii]\n"
        "\n"
        "Options:\n"
        "  --cycles-per-frame N   Number of CPU cycles between display refreshes "
        f"(default: {DEFAULT_CYCLES_PER_FRAME}).\n"
        f"  --max-cycles N         Stop after N cycles (default: {DEFAULT_MAX_CYCLES}).\n"
        "  --ascii                Print display frames to stdout when draw occurs.\n"
    )


def _parse_count(text: str, limit: int) -> int | None:
    """Parse a positive decimal count no larger than limit, or return None."""
    digits = text.lstrip(" \t\n\r\f\v")
    if digits.startswith("+"):
        digits = digits[1:]
    if not digits or not (digits.isascii() and digits.isdigit()):
        return None
    value = int(digits)
    if value == 0 or value > limit:
        return None
    return value


def main(argv: list[str] | None = None) -> int:
    """Run a ROM from the command line and return the exit status."""
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        _print_usage(sys.stdout)
        return 1

    rom_path = args[0]
    settings = {"--cycles-per-frame": DEFAULT_CYCLES_PER_FRAME, "--max-cycles": DEFAULT_MAX_CYCLES}
    limits = {"--cycles-per-frame": _U32_MAX, "--max-cycles": _U64_MAX}
    ascii_output = False

    pending = deque(args[1:])
    while pending:
        arg = pending.popleft()
        if arg == "--ascii":
            ascii_output = True
            continue
        if arg in limits and pending:
            text = pending.popleft()
            value = _parse_count(text, limits[arg])
            if value is None:
                sys.stderr.write(f"Invalid value for {arg}: {text}\n")
                return 1
            settings[arg] = value
            continue
        sys.stderr.write(f"Unknown argument: {arg}\n")
        _print_usage(sys.stdout)
        return 1

    chip = Chip8()
    try:
        chip.load_rom(rom_path)
    except Chip8Error as exc:
        sys.stderr.write(f"Failed to load ROM '{rom_path}': {exc.status.message}\n")
        return 1

    try:
        executed = run(
            chip,
            settings["--max-cycles"],
            settings["--cycles-per-frame"],
            ascii_output,
            sys.stdout,
        )
    except _RunFailure as exc:
        sys.stderr.write(
            f"Runtime error after {exc.cycles} cycles at PC=0x{chip.pc:03X}: "
            f"{exc.status.message}\n"
        )
        return 1

    sys.stdout.write(f"Execution finished after {executed} cycles.\n")
    return 0