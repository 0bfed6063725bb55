"""Exception types shared across the engine."""


class CodeOnError(Exception):
    """Base class for engine errors."""


class SandboxError(CodeOnError):
    """The sandbox could not be reached or returned a malformed response."""


class PersistenceError(CodeOnError):
    """A write to the profile store failed after all retries."""


class CatalogError(CodeOnError):
    """Unknown challenge or missing oracle."""
