"""
Address Discoverer - extraction pipeline

Document flattening, name element and contact link location, chunk
splitting and the orchestrating IndividualExtractor.
"""

from .document import Document
from .extractor import IndividualExtractor

__all__ = ['Document', 'IndividualExtractor']
