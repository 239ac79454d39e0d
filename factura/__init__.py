"""
Factura - Incremental invoice capture engine

Turns unstructured input (a photographed receipt or a spoken dictation)
into a structured invoice record. Each capture is sent to a generative
model, and the engine provides:
- Merging of partial extraction results into one record
- Completeness evaluation
- A guided question sequence
- JSON export of the finalized record
"""

__version__ = "0.1.0"
