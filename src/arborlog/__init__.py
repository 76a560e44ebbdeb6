"""
arborlog: hierarchical, pipeline-based logging.

Named loggers form a dot-separated tree. Each node owns pipelines
(transformers → presenter → dispatcher); a message runs through the
pipelines of its logger and of every ancestor it propagates to.
"""

from arborlog.errors import (
    ArborlogError,
    CallerError,
    InvalidNameError,
    InvalidLevelError,
    CycleDetectedError,
    StageError,
    ConfigurationError,
)
from arborlog.levels import LogLevel, LevelTable
from arborlog.components import Component
from arborlog.records import LogRecord, format_message, parse_log_args
from arborlog.pipeline import PipelineEntry, NodeDescriptor
from arborlog.node import LoggerNode, ROOT_NAME
from arborlog.registry import LoggerRegistry
from arborlog.processor import PipelineProcessor
from arborlog.presenters import Presenter, TextPresenter, DetailedPresenter, JsonPresenter
from arborlog.dispatchers import Dispatcher, ConsoleDispatcher, FileDispatcher, MemoryDispatcher
from arborlog.transformers import noop, RedactTransformer, AddFieldsTransformer
from arborlog.config import LoggingConfig, ComponentCatalog

__version__ = "0.1.0"

__all__ = [
    "ArborlogError",
    "CallerError",
    "InvalidNameError",
    "InvalidLevelError",
    "CycleDetectedError",
    "StageError",
    "ConfigurationError",
    "LogLevel",
    "LevelTable",
    "Component",
    "LogRecord",
    "format_message",
    "parse_log_args",
    "PipelineEntry",
    "NodeDescriptor",
    "LoggerNode",
    "ROOT_NAME",
    "LoggerRegistry",
    "PipelineProcessor",
    "Presenter",
    "TextPresenter",
    "DetailedPresenter",
    "JsonPresenter",
    "Dispatcher",
    "ConsoleDispatcher",
    "FileDispatcher",
    "MemoryDispatcher",
    "noop",
    "RedactTransformer",
    "AddFieldsTransformer",
    "LoggingConfig",
    "ComponentCatalog",
]
