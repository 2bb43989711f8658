# stagehand/core/errors.py

class StagehandError(Exception):
    """Base class for every error raised by stagehand itself."""


class ConfigurationError(StagehandError):
    """A required setting is missing or inconsistent."""


class MissingPortError(ConfigurationError):
    def __init__(self, message: str = "Missing port number"):
        super().__init__(message)


class MountError(StagehandError, TypeError):
    """The host server refused a handler passed to mount()."""


class TestsFailedError(StagehandError):
    """At least one server test failed while reject_on_error was set."""
    __test__ = False

    def __init__(self, message: str = "Some server tests failed, see log for details"):
        super().__init__(message)


class NotRunningError(StagehandError):
    def __init__(self, message: str = "Server is not running."):
        super().__init__(message)
