"""
Client (tenant) service.

Reads active clients for brand matching and creates minimal client
records when an operator resolves an unknown brand during import.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.client import ClientForMatching
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

DEFAULT_INDUSTRIES = ["general_merchandise"]


class ClientService:
    """
    Client store.

    Only the operations the import pipeline needs; client CRUD lives elsewhere.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "clients"

    def get_active(self) -> list[ClientForMatching]:
        """
        Get all active clients ordered by company name.

        Returns:
            List of ClientForMatching
        """
        logger.debug("getting_active_clients")

        try:
            result = (
                self.db.table(self.table)
                .select("id, company_name, industries")
                .eq("active", True)
                .order("company_name")
                .execute()
            )

            clients = [ClientForMatching(**row) for row in result.data]

            logger.info("active_clients_retrieved", count=len(clients))

            return clients

        except Exception as e:
            logger.error("get_active_clients_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def find_by_company_name(self, company_name: str) -> Optional[ClientForMatching]:
        """
        Case-insensitive lookup by exact company name.

        Returns:
            ClientForMatching or None if not found
        """
        logger.debug("finding_client_by_name", company_name=company_name)

        try:
            result = (
                self.db.table(self.table)
                .select("id, company_name, industries")
                .ilike("company_name", _escape_like(company_name))
                .limit(1)
                .execute()
            )

            if not result.data:
                return None

            return ClientForMatching(**result.data[0])

        except Exception as e:
            logger.error("find_client_by_name_failed", company_name=company_name, error=str(e))
            raise DatabaseError("select", str(e))

    def create_minimal(self, company_name: str) -> ClientForMatching:
        """
        Create an active client with only a company name.

        Args:
            company_name: Trimmed brand/company name

        Returns:
            Created ClientForMatching
        """
        logger.info("creating_minimal_client", company_name=company_name)

        try:
            result = (
                self.db.table(self.table)
                .insert({
                    "company_name": company_name,
                    "active": True,
                    "industries": DEFAULT_INDUSTRIES,
                    "allow_product_workflow_override": False,
                })
                .execute()
            )

            client = ClientForMatching(**result.data[0])

            logger.info("minimal_client_created", client_id=client.id, company_name=company_name)

            return client

        except Exception as e:
            logger.error("create_minimal_client_failed", company_name=company_name, error=str(e))
            raise DatabaseError("insert", str(e))


def _escape_like(value: str) -> str:
    """Escape ILIKE wildcards so the name matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_client_service: Optional[ClientService] = None


def get_client_service() -> ClientService:
    """Get or create ClientService instance."""
    global _client_service
    if _client_service is None:
        _client_service = ClientService()
    return _client_service
