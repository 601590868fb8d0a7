"""Exception types raised by the content pipeline."""


class MarkrealmError(Exception):
    """Base class for markrealm errors."""


class ReadError(MarkrealmError):
    """A source file could not be read."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"Cannot read {path}: {reason}")


class RenderError(MarkrealmError):
    """A source file could not be rendered (bad markup or front matter)."""

    def __init__(self, path, reason: str):
        self.path = path
        super().__init__(f"Cannot render {path}: {reason}")


class ConfigParseError(MarkrealmError):
    """A config file exists but could not be parsed."""


class BuildFailed(MarkrealmError):
    """Static build aborted because of broken links in strict mode."""

    def __init__(self, broken_count: int):
        self.broken_count = broken_count
        super().__init__(f"Found {broken_count} broken links. Build failed.")
