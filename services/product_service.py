"""
Product service for the import pipeline.

Reads the catalog by SKU and creates products introduced by a spreadsheet.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import ProductCreate, ProductSnapshot
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class ProductService:
    """
    Product catalog store.

    Handles catalog snapshots, creation and renames.
    """

    def __init__(self, page_size: Optional[int] = None):
        self.db = get_supabase_client()
        self.table = "products"
        self.page_size = page_size or settings.catalog_page_size

    # ===================
    # READ OPERATIONS
    # ===================

    def get_catalog_snapshot(self) -> dict[str, ProductSnapshot]:
        """
        Every product keyed by lowercase SKU.

        Pages through the table since PostgREST caps a single response.
        If two products share a SKU ignoring case, the first one read wins.

        Returns:
            Dict of sku_key -> ProductSnapshot
        """
        logger.info("getting_catalog_snapshot")

        try:
            catalog: dict[str, ProductSnapshot] = {}
            offset = 0

            while True:
                result = (
                    self.db.table(self.table)
                    .select("id, sku, name, client_id")
                    .order("sku")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )

                for row in result.data:
                    if not row.get("sku"):
                        continue
                    product = ProductSnapshot(**row)
                    catalog.setdefault(product.sku_key, product)

                if len(result.data) < self.page_size:
                    break
                offset += self.page_size

            logger.info("catalog_snapshot_retrieved", count=len(catalog))

            return catalog

        except Exception as e:
            logger.error("get_catalog_snapshot_failed", error=str(e))
            raise DatabaseError("select", str(e))

    def get_sku_keys(self) -> set[str]:
        """Lowercase SKUs of every product, for new-SKU flags."""
        return set(self.get_catalog_snapshot())

    # ===================
    # WRITE OPERATIONS
    # ===================

    def create(self, data: ProductCreate) -> ProductSnapshot:
        """
        Create a new product.

        Args:
            data: Product creation data

        Returns:
            Created ProductSnapshot
        """
        logger.info(
            "creating_product",
            sku=data.sku,
            container_type=data.container_type,
            client_id=data.client_id
        )

        try:
            result = (
                self.db.table(self.table)
                .insert(data.to_insert())
                .execute()
            )

            if not result.data:
                raise DatabaseError("insert", "no row returned")

            product = ProductSnapshot(**result.data[0])

            logger.info("product_created", product_id=product.id, sku=product.sku)

            return product

        except DatabaseError:
            raise
        except Exception as e:
            logger.error("create_product_failed", sku=data.sku, error=str(e))
            raise DatabaseError("insert", str(e))

    def update_name(self, product_id: str, name: str) -> None:
        """Rename a product."""
        logger.info("updating_product_name", product_id=product_id)

        try:
            (
                self.db.table(self.table)
                .update({"name": name})
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error("update_product_name_failed", product_id=product_id, error=str(e))
            raise DatabaseError("update", str(e))


# Singleton instance for convenience
_product_service: Optional[ProductService] = None


def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
