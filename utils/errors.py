"""
Defines custom exception classes for the application.
"""

class PRFoldException(Exception):
    """Base exception class for prfold application."""
    pass

class MessageDecodeError(PRFoldException):
    """Raised when a pull request message cannot be decoded from its wire form."""
    pass

class DependencyGroupDecodeError(MessageDecodeError, ValueError):
    """Raised when the `dependency-group` field is neither null nor {"name": ...}."""
    pass

class FormatterError(PRFoldException):
    """Raised when an error occurs during report formatting."""
    pass

class ConfigError(PRFoldException):
    """Raised when there is a configuration error."""
    pass
