"""The CHIP-8 virtual machine: memory, registers, timers, keypad and display."""

from __future__ import annotations

import os
import random
from enum import Enum

MEMORY_SIZE = 4096
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
DISPLAY_SIZE = DISPLAY_WIDTH * DISPLAY_HEIGHT
STACK_DEPTH = 16
REGISTER_COUNT = 16
PROGRAM_START = 0x200
FONT_BASE = 0x50
ROM_CAPACITY = MEMORY_SIZE - PROGRAM_START

FONTSET = bytes(
    (
        0xF0, 0x90, 0x90, 0x90, 0xF0,
        0x20, 0x60, 0x20, 0x20, 0x70,
        0xF0, 0x10, 0xF0, 0x80, 0xF0,
        0xF0, 0x10, 0xF0, 0x10, 0xF0,
        0x90, 0x90, 0xF0, 0x10, 0x10,
        0xF0, 0x80, 0xF0, 0x10, 0xF0,
        0xF0, 0x80, 0xF0, 0x90, 0xF0,
        0xF0, 0x10, 0x20, 0x40, 0x40,
        0xF0, 0x90, 0xF0, 0x90, 0xF0,
        0xF0, 0x90, 0xF0, 0x10, 0xF0,
        0xF0, 0x90, 0xF0, 0x90, 0x90,
        0xE0, 0x90, 0xE0, 0x90, 0xE0,
        0xF0, 0x80, 0x80, 0x80, 0xF0,
        0xE0, 0x90, 0x90, 0x90, 0xE0,
        0xF0, 0x80, 0xF0, 0x80, 0xF0,
        0xF0, 0x80, 0xF0, 0x80, 0x80,
    )
)


class Status(Enum):
    """Outcome of a machine operation; the value is its description."""

    OK = "OK"
    INVALID_ARG = "invalid argument"
    FILE = "file error"
    ROM_TOO_LARGE = "ROM too large"
    PC_OOB = "program counter out of bounds"
    STACK_OVERFLOW = "stack overflow"
    STACK_UNDERFLOW = "stack underflow"
    MEMORY_OOB = "memory access out of bounds"
    BAD_OPCODE = "invalid/unsupported opcode"

    @property
    def message(self) -> str:
        return self.value


class Chip8Error(Exception):
    """Raised when loading or executing fails; carries the status and PC."""

    def __init__(self, status: Status, pc: int | None = None) -> None:
        super().__init__(status.value)
        self.status = status
        self.pc = pc


class Chip8:
    """A CHIP-8 interpreter with 4 KiB of memory and a 64x32 display."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng if rng is not None else random.Random()
        self.reset()

    def reset(self) -> None:
        """Clear all state, load the font and point PC at the program start."""
        self.memory = bytearray(MEMORY_SIZE)
        self.memory[FONT_BASE:FONT_BASE + len(FONTSET)] = FONTSET
        self.v = bytearray(REGISTER_COUNT)
        self.index = 0
        self.pc = PROGRAM_START
        self.stack: list[int] = []
        self.delay_timer = 0
        self.sound_timer = 0
        self.keypad = bytearray(REGISTER_COUNT)
        self.display = bytearray(DISPLAY_SIZE)
        self.draw_flag = False
        self.waiting_for_key = False
        self.wait_reg = 0

    def load_rom(self, rom_path: str | os.PathLike[str]) -> None:
        """Load a ROM file into memory at the program start."""
        try:
            with open(rom_path, "rb") as handle:
                data = handle.read(ROM_CAPACITY + 1)
        except OSError as exc:
            raise Chip8Error(Status.FILE) from exc
        self.load_bytes(data)

    def load_bytes(self, data: bytes) -> None:
        """Copy program bytes into memory at the program start."""
        data = bytes(data)
        if len(data) > ROM_CAPACITY:
            raise Chip8Error(Status.ROM_TOO_LARGE)
        self.memory[PROGRAM_START:PROGRAM_START + len(data)] = data

    def _error(self, status: Status) -> Chip8Error:
        return Chip8Error(status, self.pc)

    def _skip(self) -> None:
        self.pc = (self.pc + 2) & 0xFFFF

    def cycle(self) -> None:
        """Fetch, decode and execute one instruction."""
        if self.waiting_for_key:
            return
        pc = self.pc
        if pc + 1 >= MEMORY_SIZE:
            raise self._error(Status.PC_OOB)

        opcode = (self.memory[pc] << 8) | self.memory[pc + 1]
        self.pc = pc + 2

        x = (opcode >> 8) & 0xF
        y = (opcode >> 4) & 0xF
        kk = opcode & 0xFF
        nnn = opcode & 0xFFF
        n = opcode & 0xF
        v = self.v

        match opcode >> 12:
            case 0x0:
                if opcode == 0x00E0:
                    self.display[:] = bytes(DISPLAY_SIZE)
                    self.draw_flag = True
                elif opcode == 0x00EE:
                    if not self.stack:
                        raise self._error(Status.STACK_UNDERFLOW)
                    self.pc = self.stack.pop()
                else:
                    raise self._error(Status.BAD_OPCODE)
            case 0x1:
                self.pc = nnn
            case 0x2:
                if len(self.stack) >= STACK_DEPTH:
                    raise self._error(Status.STACK_OVERFLOW)
                self.stack.append(self.pc)
                self.pc = nnn
            case 0x3:
                if v[x] == kk:
                    self._skip()
            case 0x4:
                if v[x] != kk:
                    self._skip()
            case 0x5:
                if n != 0:
                    raise self._error(Status.BAD_OPCODE)
                if v[x] == v[y]:
                    self._skip()
            case 0x6:
                v[x] = kk
            case 0x7:
                v[x] = (v[x] + kk) & 0xFF
            case 0x8:
                self._arithmetic(x, y, n)
            case 0x9:
                if n != 0:
                    raise self._error(Status.BAD_OPCODE)
                if v[x] != v[y]:
                    self._skip()
            case 0xA:
                self.index = nnn
            case 0xB:
                target = (nnn + v[0]) & 0xFFFF
                if target >= MEMORY_SIZE:
                    raise self._error(Status.PC_OOB)
                self.pc = target
            case 0xC:
                v[x] = self._rng.randrange(256) & kk
            case 0xD:
                self._draw(x, y, n)
            case 0xE:
                pressed = self.keypad[v[x] & 0xF] != 0
                if kk == 0x9E:
                    if pressed:
                        self._skip()
                elif kk == 0xA1:
                    if not pressed:
                        self._skip()
                else:
                    raise self._error(Status.BAD_OPCODE)
            case _:
                self._misc(x, kk)

    def _arithmetic(self, x: int, y: int, op: int) -> None:
        v = self.v
        match op:
            case 0x0:
                v[x] = v[y]
            case 0x1:
                v[x] |= v[y]
            case 0x2:
                v[x] &= v[y]
            case 0x3:
                v[x] ^= v[y]
            case 0x4:
                total = v[x] + v[y]
                v[0xF] = 1 if total > 0xFF else 0
                v[x] = total & 0xFF
            case 0x5:
                v[0xF] = 1 if v[x] >= v[y] else 0
                v[x] = (v[x] - v[y]) & 0xFF
            case 0x6:
                v[0xF] = v[x] & 0x01
                v[x] = v[x] >> 1
            case 0x7:
                v[0xF] = 1 if v[y] >= v[x] else 0
                v[x] = (v[y] - v[x]) & 0xFF
            case 0xE:
                v[0xF] = (v[x] & 0x80) >> 7
                v[x] = (v[x] << 1) & 0xFF
            case _:
                raise self._error(Status.BAD_OPCODE)

    def _draw(self, x: int, y: int, height: int) -> None:
        v = self.v
        vx, vy = v[x], v[y]
        v[0xF] = 0
        for row in range(height):
            addr = (self.index + row) & 0xFFFF
            if addr >= MEMORY_SIZE:
                raise self._error(Status.MEMORY_OOB)
            sprite = self.memory[addr]
            y_pos = (vy + row) % DISPLAY_HEIGHT
            for bit in range(8):
                if not (sprite >> (7 - bit)) & 0x01:
                    continue
                idx = y_pos * DISPLAY_WIDTH + (vx + bit) % DISPLAY_WIDTH
                if self.display[idx] == 1:
                    v[0xF] = 1
                self.display[idx] ^= 1
        self.draw_flag = True

    def _misc(self, x: int, kk: int) -> None:
        v = self.v
        match kk:
            case 0x07:
                v[x] = self.delay_timer
            case 0x0A:
                self.waiting_for_key = True
                self.wait_reg = x
            case 0x15:
                self.delay_timer = v[x]
            case 0x18:
                self.sound_timer = v[x]
            case 0x1E:
                total = (self.index + v[x]) & 0xFFFF
                v[0xF] = 1 if total > 0x0FFF else 0
                self.index = total & 0x0FFF
            case 0x29:
                self.index = FONT_BASE + (v[x] & 0x0F) * 5
            case 0x33:
                if self.index + 2 >= MEMORY_SIZE:
                    raise self._error(Status.MEMORY_OOB)
                value = v[x]
                self.memory[self.index:self.index + 3] = bytes(
                    (value // 100, (value // 10) % 10, value % 10)
                )
            case 0x55:
                if self.index + x >= MEMORY_SIZE:
                    raise self._error(Status.MEMORY_OOB)
                self.memory[self.index:self.index + x + 1] = v[:x + 1]
            case 0x65:
                if self.index + x >= MEMORY_SIZE:
                    raise self._error(Status.MEMORY_OOB)
                v[:x + 1] = self.memory[self.index:self.index + x + 1]
            case _:
                raise self._error(Status.BAD_OPCODE)

    def tick_timers(self) -> None:
        """Count both timers down by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    def set_key(self, key: int, pressed: bool) -> None:
        """Press or release a key; a press ends a pending key wait."""
        key_index = key & 0x0F
        self.keypad[key_index] = 1 if pressed else 0
        if pressed and self.waiting_for_key:
            self.v[self.wait_reg] = key_index
            self.waiting_for_key = False

    def consume_draw_flag(self) -> bool:
        """Return whether the display changed since the last call, and clear it."""
        should_draw = self.draw_flag
        self.draw_flag = False
        return should_draw