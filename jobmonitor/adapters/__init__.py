"""
Adapters between domain objects and their stored representation.
"""

from .record_converter import RecordFormatError, dict_to_record, record_to_dict

__all__ = ["RecordFormatError", "dict_to_record", "record_to_dict"]
