"""Exception hierarchy for the avatar-compressor engine."""


class CompressorError(Exception):
    """Base exception for all avatar-compressor errors."""


class ValidationError(CompressorError):
    """Raised when caller input is invalid and cannot be corrected."""


class AnalysisError(CompressorError):
    """Raised when a complexity analyzer cannot score a texture."""


class ConfigError(CompressorError):
    """Raised when a configuration file or preset is malformed."""
