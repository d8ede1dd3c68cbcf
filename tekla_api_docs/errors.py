"""Exception types raised outside the query surface."""


class TeklaDocsError(Exception):
    """Base error for the documentation index."""


class DatasetBuildError(TeklaDocsError):
    """The offline dataset build could not run (missing TOC, unwritable output)."""


class RemoteFallbackError(TeklaDocsError):
    """A remote documentation lookup failed.

    Raised by fallback transports and always converted to "no remote answer"
    by the public fallback methods.
    """
