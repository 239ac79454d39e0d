"""
Export - JSON serialization and delivery of finalized records.
"""

from .json_export import record_to_dict, dumps_record, record_from_dict
from .billing import BillingExporter

__all__ = ["record_to_dict", "dumps_record", "record_from_dict", "BillingExporter"]
