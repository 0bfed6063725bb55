"""Interactive terminal over the sandbox."""

from .emulator import TerminalEmulator, TerminalState, prompt_variants, strip_prompt_echo

__all__ = ["TerminalEmulator", "TerminalState", "prompt_variants", "strip_prompt_echo"]
