class MetaboxError(Exception):
    """Base class for pymetabox errors."""


class DuplicateIdError(MetaboxError):
    """Raised when a panel id has already been registered."""


class UnknownPanelError(MetaboxError):
    """Raised when a panel id is not registered."""


class UnknownFieldError(MetaboxError):
    """Raised when a field name is unknown to a form."""


class DuplicateFieldError(MetaboxError):
    """Raised when two fields of one panel share a name."""


class AuthenticityError(MetaboxError):
    """Raised when a submitted security token is missing or invalid."""


class PermissionDeniedError(MetaboxError):
    """Raised when the acting user may not edit the content item."""


class ValidationError(MetaboxError):
    """Raised when a submitted field value fails validation."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field


class ConfigError(MetaboxError):
    """Raised when settings cannot be parsed."""


class DefinitionError(MetaboxError):
    """Raised when a panel definition file is malformed."""


class StoreLoadError(MetaboxError):
    """Raised when a store fails to parse its file."""
