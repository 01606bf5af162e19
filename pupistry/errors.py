class PupistryError(Exception):
    """Base class for every error raised by pupistry itself."""


class MissingConfigurationError(PupistryError, RuntimeError):
    """A required configuration setting is absent.

    Subclasses RuntimeError so callers that only expect a generic runtime
    failure keep working, while ``field`` names the missing setting.
    """

    def __init__(self, field: str):
        self.field: str = field
        super().__init__(f"Missing required configuration: {field}")


class ArtifactError(PupistryError):
    pass


class ChecksumMismatchError(ArtifactError):
    def __init__(self, version: str, expected: str, actual: str):
        self.version: str = version
        self.expected: str = expected
        self.actual: str = actual
        super().__init__(f"Checksum mismatch for artifact {version}: expected {expected}, got {actual}")


class SignatureError(ArtifactError):
    pass
