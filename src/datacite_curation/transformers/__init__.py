"""Transformers from source formats to the normalized Resource."""

from .datacite_xml import DataCiteXmlTransformer
from .legacy import LegacyAgents, LegacyTransformer
from .legacy_source import LegacySource, SqlLegacySource

__all__ = [
    "DataCiteXmlTransformer",
    "LegacyAgents",
    "LegacySource",
    "LegacyTransformer",
    "SqlLegacySource",
]
