# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2025 The Artfolio Developers


"""Exceptions for the Artfolio software.

Serious exceptions are for unexpected things that we probably cannot
sanely or safely recover from.  Benign are for signaling expected (or
at least not unexpected) situations, such as a backend refusing a write.
"""


class ArtfolioException(Exception):
    """Catch-all parent of all Artfolio-related exceptions."""

    pass


class ArtfolioSeriousException(ArtfolioException):
    """Serious or unexpected problems that are generally not recoverable."""

    pass


class ArtfolioBenignException(ArtfolioException):
    """A not-unexpected situation, often signaling an error condition."""

    pass


class ArtfolioConnectionError(ArtfolioBenignException):
    pass


class ArtfolioAuthenticationException(ArtfolioBenignException):
    """You are not authenticated, with precisely that as the default message."""

    def __init__(self, msg=None):
        if not msg:
            msg = "You are not authenticated."
        super().__init__(msg)


class ArtfolioNoPermission(ArtfolioBenignException):
    """You don't have permission, e.g., to annotate or delete that work."""

    pass


class ArtfolioNotFound(ArtfolioBenignException):
    """The backend has no such row, e.g., a work deleted by a teacher."""

    pass


class ArtfolioConflict(ArtfolioBenignException):
    """The action was contradictory to info already in the system."""

    pass


class ArtfolioInvalidRecord(ArtfolioSeriousException):
    """A row from the backend did not have the shape we expect."""

    pass


class ArtfolioTimeoutError(ArtfolioSeriousException):
    """Some message failed due to network trouble such as a timeout."""

    pass
