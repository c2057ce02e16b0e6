"""Custom exceptions for domsift."""


class DomsiftError(Exception):
    """Base class for all domsift exceptions."""

    pass


class ConfigurationError(DomsiftError):
    """Raised when a processing setting cannot be read."""

    def __init__(self, setting: str, raw_value: str):
        """Initialize configuration error.

        Args:
            setting: Name of the environment variable that failed to parse
            raw_value: The value found in the environment

        """
        self.setting = setting
        self.raw_value = raw_value
        super().__init__(f'Invalid value for {setting}: {raw_value!r} (expected an integer)')


class LocatorSyntaxError(DomsiftError):
    """Raised when a CSS selector or XPath expression cannot be evaluated."""

    def __init__(self, locator: str, kind: str, reason: str):
        """Initialize locator syntax error.

        Args:
            locator: The locator that failed to evaluate
            kind: Query language used ('css' or 'xpath')
            reason: Message from the underlying evaluator

        """
        self.locator = locator
        self.kind = kind
        self.reason = reason
        super().__init__(f'Invalid {kind} locator {locator!r}: {reason}')


class ReductionError(DomsiftError):
    """Raised when a reduction stage fails."""

    def __init__(self, stage: str, reason: str):
        """Initialize reduction error.

        Args:
            stage: Pipeline stage that failed
            reason: Human-readable failure description

        """
        self.stage = stage
        self.reason = reason
        super().__init__(f'Stage {stage!r} failed: {reason}')


class LLMGenerationError(DomsiftError):
    """Raised when the model fails to produce an analysis."""

    pass
