class PinseqError(Exception):
    """Base class for errors raised by pinseq."""


class ConfigurationError(PinseqError, ValueError):
    """A generator, alphabet or permutation was built with invalid settings."""


class KeyStoreError(PinseqError, RuntimeError):
    """Persisted key/index state could not be read or written."""
