"""CRUD operations for the tokens table."""
from __future__ import annotations

from dexledger.db.records import EntityRepo
from dexledger.models import Token


class TokenRepo(EntityRepo[Token]):
    table = "tokens"
    model = Token
    kind = "token"
