from .errors import DecodeError
from .event import decode_event, encode_event
from .osv import OsvParser, decode, encode
from .timestamp import decode_timestamp, encode_timestamp

__all__ = [
    # Structural parsing
    "OsvParser",
    "decode",
    "encode",
    "DecodeError",
    # Field codecs
    "decode_event",
    "encode_event",
    "decode_timestamp",
    "encode_timestamp",
]
