"""Error taxonomy for a listing build."""


class ListingBuildError(Exception):
    """Base class for errors raised while building a listing."""


class FatalBuildError(ListingBuildError):
    """
    Raised when the run cannot produce a meaningful listing.

    The command-line entry point turns this into a non-zero exit status.
    """

    def __init__(self, message: str, source: str | None = None):
        self.message = message
        self.source = source
        super().__init__(self.message)


class ListingSourceNotFoundError(FatalBuildError):
    """Neither a listing source nor a fallback package manifest exists."""


class RepositoryNotFoundError(FatalBuildError):
    """A GitHub repository declared in the listing source could not be resolved."""


class ArchiveError(ListingBuildError):
    """
    A release archive could not be downloaded or read.

    Callers skip the archive and keep processing the rest of their source.
    """
