"""SQLAlchemy models for the product catalog.

Defines the five catalog tables and the secondary indexes the query
layer relies on. Parent links are plain columns rather than foreign keys:
the catalog is provisioned externally and may contain orphans, which the
query layer filters out instead of the database rejecting them.
"""

from decimal import Decimal

from sqlalchemy import Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from storefront.catalog import records
from storefront.infrastructure.database import Base


class CollectionModel(Base):
    """Collection row.

    Attributes:
        id: Surrogate primary key.
        external_id: Linkage key referenced by categories.
        name: Display name.
        slug: URL identifier.
    """

    __tablename__ = "collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Collection(external_id={self.external_id}, slug={self.slug})>"

    def to_record(self) -> records.Collection:
        """Convert to an immutable record."""
        return records.Collection(
            external_id=self.external_id,
            name=self.name,
            slug=self.slug,
        )


class CategoryModel(Base):
    """Category row."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    collection_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(slug={self.slug})>"

    def to_record(self) -> records.Category:
        """Convert to an immutable record."""
        return records.Category(
            slug=self.slug,
            name=self.name,
            collection_id=self.collection_id,
            image_url=self.image_url,
        )


class SubcollectionModel(Base):
    """Subcollection row. No slug column; see ``storefront.catalog.slugs``."""

    __tablename__ = "subcollections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    external_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    category_slug: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subcollection(external_id={self.external_id}, name={self.name})>"

    def to_record(self) -> records.Subcollection:
        """Convert to an immutable record."""
        return records.Subcollection(
            external_id=self.external_id,
            name=self.name,
            category_slug=self.category_slug,
        )


class SubcategoryModel(Base):
    """Subcategory row."""

    __tablename__ = "subcategories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    subcollection_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Subcategory(slug={self.slug})>"

    def to_record(self) -> records.Subcategory:
        """Convert to an immutable record."""
        return records.Subcategory(
            slug=self.slug,
            name=self.name,
            subcollection_id=self.subcollection_id,
            image_url=self.image_url,
        )


class ProductModel(Base):
    """Product row.

    Attributes:
        slug: URL identifier.
        name: Display name; full-text indexed on PostgreSQL.
        description: Product description.
        price: Price in major currency units.
        subcategory_slug: Parent subcategory.
        image_url: Product image URL.
    """

    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_subcategory_slug_slug_id", "subcategory_slug", "slug", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    subcategory_slug: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(slug={self.slug}, name={self.name[:30]}...)>"

    def to_record(self) -> records.Product:
        """Convert to an immutable record."""
        return records.Product(
            slug=self.slug,
            name=self.name,
            description=self.description,
            price=Decimal(self.price),
            subcategory_slug=self.subcategory_slug,
            image_url=self.image_url,
        )
