# depth_analyzer/errors.py


class AnalyzerError(Exception):
    """Base class for every error raised by depth_analyzer."""


class ConfigError(AnalyzerError):
    """Invalid threshold, color token, decision mode or config file."""


class MissingImageError(AnalyzerError):
    """No image was supplied for a single-shot classification."""

    def __init__(self, message="no image specified"):
        super().__init__(message)


class ImageDecodeError(AnalyzerError):
    """A file could not be opened or decoded as an image."""

    def __init__(self, path, reason=None):
        self.path = path
        self.reason = reason
        msg = f"could not open file: {path}"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)
