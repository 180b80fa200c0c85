"""
Ferry - Salesforce Record Migration Tool

Copies selected Salesforce records, together with the records they reference,
from a source org into one or more target orgs while preserving relationships.
"""

__version__ = "1.0.0"
__author__ = "Ken Brill"
