"""
Namespaced handles, range translation and the batch commit protocol.
"""

from keyspace.engine.batch import Batch, BatchCoordinator
from keyspace.engine.keyspace import Keyspace, open_keyspace
from keyspace.engine.live_stream import Change, LiveStream
from keyspace.engine.range_translator import TranslatedRange, translate
from keyspace.engine.read_stream import ReadStream

__all__ = [
    "Batch",
    "BatchCoordinator",
    "Change",
    "Keyspace",
    "LiveStream",
    "ReadStream",
    "TranslatedRange",
    "open_keyspace",
    "translate",
]
