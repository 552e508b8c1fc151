"""Record-to-schema converters shared by the API routers."""

from storefront.api.schemas import (
    CategoryPageResponse,
    CategorySchema,
    CollectionPageResponse,
    CollectionSchema,
    CountSchema,
    DataCountsResponse,
    ProductSchema,
    SearchResultSchema,
    SubcategorySchema,
    SubcollectionSchema,
    SubcollectionSectionSchema,
)
from storefront.catalog.records import (
    CappedCount,
    Category,
    CategoryPage,
    Collection,
    CollectionPage,
    Product,
    SearchHit,
    Subcategory,
    Subcollection,
)
from storefront.catalog.store import CatalogTable


def count_to_response(count: CappedCount) -> CountSchema:
    return CountSchema(count=count.count, is_exact=count.is_exact, display=count.display)


def collection_to_response(collection: Collection) -> CollectionSchema:
    return CollectionSchema(**collection.to_dict())


def category_to_response(category: Category) -> CategorySchema:
    return CategorySchema(**category.to_dict())


def subcollection_to_response(subcollection: Subcollection) -> SubcollectionSchema:
    return SubcollectionSchema(**subcollection.to_dict())


def subcategory_to_response(subcategory: Subcategory) -> SubcategorySchema:
    return SubcategorySchema(**subcategory.to_dict())


def product_to_response(product: Product) -> ProductSchema:
    return ProductSchema(**product.to_dict())


def search_hit_to_response(hit: SearchHit) -> SearchResultSchema:
    """Convert a search hit, adding the product page href."""
    product = hit.product
    return SearchResultSchema(
        href=hit.href,
        name=product.name,
        slug=product.slug,
        image_url=product.image_url,
        description=product.description,
        price=str(product.price),
        subcategory_slug=product.subcategory_slug,
    )


def collection_page_to_response(page: CollectionPage) -> CollectionPageResponse:
    return CollectionPageResponse(
        collection=collection_to_response(page.collection),
        categories=[category_to_response(c) for c in page.categories],
    )


def category_page_to_response(page: CategoryPage) -> CategoryPageResponse:
    return CategoryPageResponse(
        category=category_to_response(page.category),
        sections=[
            SubcollectionSectionSchema(
                subcollection=subcollection_to_response(section.subcollection),
                subcategories=[subcategory_to_response(s) for s in section.subcategories],
                product_count=count_to_response(section.product_count),
            )
            for section in page.sections
        ],
        product_count=count_to_response(page.product_count),
    )


def data_counts_to_response(counts: dict[CatalogTable, CappedCount]) -> DataCountsResponse:
    return DataCountsResponse(
        **{table.value: count_to_response(count) for table, count in counts.items()}
    )
