"""A CHIP-8 virtual machine (machine) and a headless command-line runner (cli)."""

__version__ = "0.1.0"
__all__ = ["cli", "machine"]