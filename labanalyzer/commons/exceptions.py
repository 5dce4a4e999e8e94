"""Exceptions raised by the lab analyzer."""


class LabAnalyzerError(Exception):
    """Base class for every error the package raises on purpose."""


class EmptyMessageError(LabAnalyzerError):
    """Raised when an HL7 message has no non-blank segment left to parse."""

    def __init__(self, message: str = "Empty HL7 message"):
        super().__init__(message)


class ConfigurationError(LabAnalyzerError):
    """Raised when settings or the reference table cannot be loaded or validated."""

    pass


class AnalysisError(LabAnalyzerError):
    """Raised when the AI collaborator returns no usable content."""

    pass
