"""Readers: one per table family, all serving from the shared TtlCache."""
from data.readers.base import BaseReader, RowMatch
from data.readers.company import CompanyReader
from data.readers.contact import ContactReader
from data.readers.opportunity import OpportunityReader
from data.readers.interaction import InteractionReader
from data.readers.product import ProductReader
from data.readers.config import ConfigReader
from data.readers.auth import AuthReader

__all__ = [
    "BaseReader", "RowMatch",
    "CompanyReader", "ContactReader", "OpportunityReader", "InteractionReader",
    "ProductReader", "ConfigReader", "AuthReader",
]
