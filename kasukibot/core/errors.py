from __future__ import annotations


class KasukiError(Exception):
    """Base error. `message` is what the user gets to see."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class OptionError(KasukiError):
    kind = "option"


class WebRequestError(KasukiError):
    kind = "web request"


class DecodeError(KasukiError):
    kind = "decode"


class FileError(KasukiError):
    kind = "file"


class DatabaseError(KasukiError):
    kind = "database"


class SendingError(KasukiError):
    kind = "sending"


class LanguageError(KasukiError):
    kind = "language"
