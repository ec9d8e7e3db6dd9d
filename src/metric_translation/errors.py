class TranslationError(Exception):
    """Base class for errors raised by metric translation"""


class RuleConfigError(TranslationError, ValueError):
    """A translation rule could not be loaded"""


class FilterConfigError(TranslationError, ValueError):
    """An exclude/include filter could not be built"""


class ConfigError(TranslationError, ValueError):
    """The exporter configuration is invalid or unreadable"""


class DataPointTypeError(TranslationError, TypeError):
    """A data point carries a value of an unsupported type"""
