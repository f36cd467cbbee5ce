"""
Brand alias service.

Brand aliases map free-text brand strings from past imports to clients so
future imports resolve them automatically. Aliases are written only after
an operator confirms a mapping during apply.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.client import BrandAlias, BrandAliasResponse
from exceptions import DatabaseError, ValidationError
from utils.text_utils import alias_key

logger = structlog.get_logger(__name__)


class BrandAliasService:
    """Brand alias store (unique on alias)."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "brand_aliases"

    def get_all(self) -> list[BrandAlias]:
        """All stored aliases, for matching."""
        logger.debug("getting_brand_aliases")

        try:
            result = (
                self.db.table(self.table)
                .select("id, alias, client_id, created_at")
                .execute()
            )

            aliases = [BrandAlias(**row) for row in result.data]

            logger.info("brand_aliases_retrieved", count=len(aliases))

            return aliases

        except Exception as e:
            logger.error("get_brand_aliases_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def list_with_clients(self) -> list[BrandAliasResponse]:
        """Aliases joined with client names, ordered by alias."""
        try:
            result = (
                self.db.table(self.table)
                .select("id, alias, client_id, created_at, clients(company_name)")
                .order("alias")
                .execute()
            )

            aliases = []
            for row in result.data:
                client = row.pop("clients", None) or {}
                aliases.append(BrandAliasResponse(
                    **row,
                    client_name=client.get("company_name") or "Unknown",
                ))
            return aliases

        except Exception as e:
            logger.error("list_brand_aliases_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def upsert(self, brand: str, client_id: str) -> str:
        """
        Store brand -> client, replacing any previous client for that alias.

        Idempotent: confirming the same mapping twice leaves one row.

        Args:
            brand: Brand text as it appeared in the sheet
            client_id: Confirmed client UUID

        Returns:
            The normalized alias key that was stored
        """
        key = alias_key(brand)
        if not key:
            raise ValidationError("Brand alias cannot be blank", code="BRAND_ALIAS_BLANK")

        try:
            self.db.table(self.table).upsert(
                {"alias": key, "client_id": client_id},
                on_conflict="alias",
            ).execute()

            logger.info("brand_alias_upserted", alias=key, client_id=client_id)

            return key

        except Exception as e:
            logger.error("upsert_brand_alias_failed", alias=key, error=str(e))
            raise DatabaseError("upsert", str(e))


_brand_alias_service: Optional[BrandAliasService] = None


def get_brand_alias_service() -> BrandAliasService:
    """Get or create BrandAliasService instance."""
    global _brand_alias_service
    if _brand_alias_service is None:
        _brand_alias_service = BrandAliasService()
    return _brand_alias_service
