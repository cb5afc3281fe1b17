"""Domain exceptions for index, command and project operations."""


class DepmanError(Exception):
    """Base exception for depman errors."""

    def __init__(self, message: str):
        """
        Initialize error.

        Args:
            message: Human readable description, shown verbatim in the status bar
        """
        self.message = message
        super().__init__(self.message)


class PyPIError(DepmanError):
    """Base exception for package index errors."""

    pass


class NetworkError(PyPIError):
    """Raised when the index cannot be reached or retries are exhausted."""

    pass


class RequestCancelled(PyPIError):
    """Raised when an index request observes its cancellation signal."""

    pass


class InvalidResponseError(PyPIError):
    """Raised when the index answers with something we cannot interpret."""

    pass


class CommandError(DepmanError):
    """Raised when a package manager command fails."""

    def __init__(self, message: str, stderr: str = "", returncode: int | None = None):
        super().__init__(message)
        self.stderr = stderr
        self.returncode = returncode


class PackageListError(DepmanError):
    """Raised when package manager list output cannot be parsed."""

    pass


class InvalidPackageSpecError(DepmanError):
    """Raised when a typed requirement specifier is rejected."""

    pass


class ProjectInitError(DepmanError):
    """Raised when a dependency file cannot be created."""

    pass
