# chipeight

A CHIP-8 virtual machine with a headless runner. It loads a ROM at address
`0x200` and runs the standard instruction set. The runner counts the timers
down once per frame and can print the 64×32 display as ASCII art.

## Installation

```
pip install .
```

For the tests, install the `test` extra and run `pytest`:

```
pip install .[test]
pytest
```

## Command line

```
chipeight <rom_path> [--cycles-per-frame N] [--max-cycles N] [--ascii]
```

- `--cycles-per-frame N`: the number of CPU cycles between timer ticks and
  display refreshes (default: 10).
- `--max-cycles N`: stop after N cycles (default: 1000000).
- `--ascii`: print a frame to standard output whenever the display has changed.
  A frame is a line of 64 dashes followed by 32 lines of `#` (pixel on) and `.`
  (pixel off).

Both counts must be positive whole numbers. At the end of each frame the runner
writes a bell character (`\a`) if the sound timer is still above zero. When the
run ends, the runner prints `Execution finished after N cycles.` and exits with
status 0.

The runner exits with status 1 in these cases:

- The arguments are missing or unknown. The usage text is printed.
- An option value is not valid.
- The ROM cannot be read or is larger than 3584 bytes.
- The program hits a runtime error, such as a bad opcode, a stack overflow or
  underflow, or an out-of-bounds memory access. The runner reports how many
  cycles completed and the program counter.

## Library

```python
from chipeight.machine import Chip8, Chip8Error

chip = Chip8()
chip.load_rom("game.ch8")          # or chip.load_bytes(b"...")
try:
    for _ in range(1000):
        chip.cycle()
except Chip8Error as err:
    print(err.status, err.pc, err)

chip.set_key(0x5, True)             # press key 5
chip.tick_timers()                  # call once per frame
if chip.consume_draw_flag():
    ...                             # redraw from chip.display
```

- `Chip8(rng=None)` takes an optional `random.Random`, which the `CXNN`
  instruction uses.
- `Chip8.reset()` puts the machine back in its power-on state, with the font
  loaded at `0x50` and the program counter at `0x200`.
- The machine state is held in these attributes:
  - `memory`, `v` and `keypad`
  - `display`, with one byte per pixel, row by row
  - `index`, `pc` and `stack`
  - `delay_timer` and `sound_timer`
  - `draw_flag`, `waiting_for_key` and `wait_reg`
- After an `FX0A` instruction, `cycle()` does nothing until a key is pressed
  with `set_key`.

Every failure is raised as `Chip8Error`. Its `status` attribute holds a `Status`
member, and `status.message` is a short description of what went wrong. For
errors raised while executing, `pc` holds the program counter.

The runner can also be used from code:

- `chipeight.cli.run(chip, max_cycles, cycles_per_frame, ascii_output, out)`
  runs a loaded machine, writes bells and frames to `out`, and returns the
  number of cycles executed.
- `chipeight.cli.render_ascii(display)` turns a display buffer into a frame of
  text.

## What it does not do

- The runner opens no window and plays no sound beyond the bell character.
- The runner reads no keyboard input. Keys can be pressed only from code, with
  `Chip8.set_key`. A ROM that waits for a key therefore keeps waiting under the
  `chipeight` command until the cycle limit is reached.