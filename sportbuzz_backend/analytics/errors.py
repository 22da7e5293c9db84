# -*- coding: utf-8 -*-
"""
Exception types raised by the analytics core.

Routes translate these into HTTP responses: ``NotFoundError`` becomes a 404,
``TransientStoreError`` becomes a generic 500 on read paths and is logged and
dropped on the view-recording path.
"""


class AnalyticsError(Exception):
    """Base class for analytics errors."""


class NotFoundError(AnalyticsError):
    """The requested article or record does not exist (or is not published)."""


class TransientStoreError(AnalyticsError):
    """A MongoDB operation failed (timeout, connection loss, server error)."""

    def __init__(self, message, original=None):
        super().__init__(message)
        self.original = original
