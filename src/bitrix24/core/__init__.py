"""
Core request engine.

This module contains the single-call dispatcher, the batch command compiler
and executor, and the two pagination strategies every entity service uses.
"""

from bitrix24.core.batch import BatchExecutor, chunked, create_result_with, require_identifier
from bitrix24.core.call import CallResult, RemoteCall
from bitrix24.core.commands import build_command, build_commands, parse_command
from bitrix24.core.dispatcher import Dispatcher
from bitrix24.core.pager import IdCursorPager, OffsetPager, PagerState

__all__ = [
    "BatchExecutor",
    "CallResult",
    "Dispatcher",
    "IdCursorPager",
    "OffsetPager",
    "PagerState",
    "RemoteCall",
    "build_command",
    "build_commands",
    "chunked",
    "create_result_with",
    "parse_command",
    "require_identifier",
]
