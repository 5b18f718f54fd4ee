"""
Medicine Photo Identification & Information Pipeline

Identifies a medicine from photographs and compiles a profile from
several independent drug-information sources.
Pipeline: VISION → SEARCH TERMS → AGGREGATION → PROFILE → QUALITY
"""

__version__ = "1.0.0"
