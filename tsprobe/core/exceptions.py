"""tsprobe custom exceptions."""


class TsprobeError(Exception):
    """Base exception for tsprobe errors."""


class ParseError(TsprobeError):
    """Error reading or parsing a source file."""


class ResolutionError(TsprobeError):
    """A package or its declarations could not be located."""


class PackageNotFoundError(ResolutionError):
    """No manifest found for the package in any search root."""


class DeclarationsNotFoundError(ResolutionError):
    """The package ships no declaration files."""


class ManifestError(ResolutionError):
    """The package manifest could not be read."""


class ProjectConfigError(TsprobeError):
    """Project root or tsconfig.json could not be determined."""


class InvalidSearchPatternError(TsprobeError):
    """The search term is not a valid regular expression."""
