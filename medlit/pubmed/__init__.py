"""
PubMed collaborator

Search, fetch, citation links and MeSH lookup against NCBI E-utilities.
"""

from .client import EUtilsClient, LiteratureSource, create_eutils_client
from .parser import parse_articles, parse_links, parse_mesh_record

__all__ = [
    "EUtilsClient",
    "LiteratureSource",
    "create_eutils_client",
    "parse_articles",
    "parse_links",
    "parse_mesh_record",
]
