from __future__ import annotations


class TechDebtError(Exception):
    """Base class for report generation errors."""


class ConfigError(TechDebtError):
    pass


class ShardFormatError(TechDebtError):
    """A generated shard is not valid JSON or does not follow the item schema."""


class GitCommandError(TechDebtError):
    """A git invocation could not run or exited with an error."""


class ReportWriteError(TechDebtError):
    """The final report could not be written. Fatal for the run."""
