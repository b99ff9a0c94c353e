from __future__ import annotations


class ModpagesError(Exception):
    pass


class PackageImportError(ModpagesError, ImportError):
    """The requested name does not resolve to a documentable unit.

    Custom error handlers can match on this to answer "not found".
    """


class RenderError(ModpagesError):
    """The unit resolved but producing its page failed."""
