"""CRUD operations for the global factory and price bundle records."""
from __future__ import annotations

from dexledger.db.records import EntityRepo
from dexledger.models import Bundle, Factory


class FactoryRepo(EntityRepo[Factory]):
    table = "factories"
    model = Factory
    kind = "factory"


class BundleRepo(EntityRepo[Bundle]):
    table = "bundles"
    model = Bundle
    kind = "bundle"
