"""Base exception shared by every error this package raises."""


class BirthdaysError(Exception):
    """Root of the package's exception hierarchy."""
