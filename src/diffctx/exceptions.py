"""Custom exceptions for diffctx."""


class DiffCtxError(Exception):
    """Base exception for all diffctx errors."""


class ConfigError(DiffCtxError):
    """Configuration-related errors."""


class DiffParseError(DiffCtxError):
    """A diff line could not be interpreted (e.g. a malformed hunk header)."""


class ScanError(DiffCtxError):
    """File scanning errors."""


class TokenizerError(DiffCtxError):
    """Token counting backend errors."""

    def __init__(self, backend: str, reason: str):
        super().__init__(f"Tokenizer '{backend}' failed: {reason}")
        self.backend = backend
