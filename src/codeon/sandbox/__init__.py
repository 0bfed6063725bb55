"""Sandbox execution backends."""

from .client import ExecutionResult, PistonSandbox, Sandbox, create_sandbox

__all__ = ["ExecutionResult", "PistonSandbox", "Sandbox", "create_sandbox"]
