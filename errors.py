"""Exceptions raised by the review pipeline and its collaborators."""


class MalformedDiffError(ValueError):
    """Diff text could not be split into file changes."""


class AnalyzerFailure(RuntimeError):
    """An analyzer raised while reviewing a diff.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, analyzer_name: str, error: BaseException):
        self.analyzer_name = analyzer_name
        super().__init__(f"{analyzer_name} analyzer failed: {error}")


class TransportError(Exception):
    """A call to the hosting provider (fetch diff, post comment) failed."""
