"""
Tests for ProductService.

Pagination parsing, total-page math and the folding of gateway error
variants into API errors. The gateway is an AsyncMock with the
ProductGateway spec, so every call can be inspected.
"""

from unittest.mock import AsyncMock

import pytest

from product_api.exceptions import (
    DatabaseError,
    InvalidIdentifierError,
    NotFoundError,
    ValidationError,
    WriteRejectedError,
)
from product_api.models.product import Product
from product_api.schemas.product import (
    MAX_OFFSET,
    CategoryStats,
    Pagination,
    ProductFilter,
    ProductPayload,
)
from product_api.services.gateway_base import ProductGateway
from product_api.services.product_service import (
    LIMIT_ERROR,
    PAGINATION_ERROR,
    ProductService,
    parse_pagination,
)

VALID_ID = "65a4f1c2e4b0a1b2c3d4e5f6"


@pytest.fixture
def mock_gateway():
    gateway = AsyncMock(spec=ProductGateway)
    gateway.find.return_value = []
    gateway.count.return_value = 0
    gateway.category_breakdown.return_value = []
    return gateway


@pytest.fixture
def service():
    return ProductService()


@pytest.fixture
def product(make_document):
    return Product.from_document(make_document())


@pytest.fixture
def payload():
    return ProductPayload(
        name="Desk Lamp", description="Adjustable LED desk lamp", price=39.99, category="lighting"
    )


class TestParsePagination:
    def test_defaults(self):
        assert parse_pagination(None, None) == Pagination(page=1, limit=10)

    def test_blank_values_use_defaults(self):
        assert parse_pagination("", "  ") == Pagination(page=1, limit=10)

    def test_explicit_values(self):
        pagination = parse_pagination("3", "25")
        assert (pagination.page, pagination.limit, pagination.offset) == (3, 25, 50)

    @pytest.mark.parametrize("page,limit", [("0", "10"), ("1", "0"), ("-2", "5"), ("abc", "5"), ("1", "2.5")])
    def test_invalid_values_are_rejected(self, page, limit):
        with pytest.raises(ValidationError) as exc_info:
            parse_pagination(page, limit)
        assert exc_info.value.message == PAGINATION_ERROR
        assert exc_info.value.status_code == 400

    def test_limit_is_capped(self):
        assert parse_pagination("1", "100").limit == 100

        with pytest.raises(ValidationError) as exc_info:
            parse_pagination("1", "101")
        assert exc_info.value.message == LIMIT_ERROR
        assert exc_info.value.field == "limit"

    def test_page_whose_offset_overflows_the_store_is_rejected(self):
        last_page = MAX_OFFSET // 10 + 1
        assert parse_pagination(str(last_page), "10").offset <= MAX_OFFSET

        for page in (str(last_page + 1), "10000000000000000000"):
            with pytest.raises(ValidationError) as exc_info:
                parse_pagination(page, "10")
            assert exc_info.value.message == PAGINATION_ERROR
            assert exc_info.value.status_code == 400


class TestListProducts:
    @pytest.mark.asyncio
    async def test_total_pages_rounds_up(self, service, mock_gateway, product):
        mock_gateway.find.return_value = [product] * 5
        mock_gateway.count.return_value = 12

        result = await service.list_products(mock_gateway, page="2", limit="5")

        assert result.current_page == 2
        assert result.total_pages == 3
        assert result.total_products == 12
        assert len(result.products) == 5
        mock_gateway.find.assert_awaited_once_with(ProductFilter(), Pagination(page=2, limit=5))

    @pytest.mark.asyncio
    async def test_empty_collection_has_zero_pages(self, service, mock_gateway):
        result = await service.list_products(mock_gateway)

        assert result.products == []
        assert result.total_pages == 0
        assert result.current_page == 1

    @pytest.mark.asyncio
    async def test_filters_are_forwarded_to_find_and_count(self, service, mock_gateway):
        await service.list_products(mock_gateway, category="lighting", search="lamp")

        expected = ProductFilter(category="lighting", search="lamp")
        assert mock_gateway.find.await_args.args[0] == expected
        mock_gateway.count.assert_awaited_once_with(expected)

    @pytest.mark.asyncio
    async def test_empty_filters_are_dropped(self, service, mock_gateway):
        await service.list_products(mock_gateway, category="", search="")
        assert mock_gateway.find.await_args.args[0] == ProductFilter()

    @pytest.mark.asyncio
    async def test_bad_limit_never_reaches_the_gateway(self, service, mock_gateway):
        with pytest.raises(ValidationError):
            await service.list_products(mock_gateway, limit="0")
        mock_gateway.find.assert_not_awaited()


class TestStats:
    @pytest.mark.asyncio
    async def test_stock_counts_add_up(self, service, mock_gateway):
        mock_gateway.category_breakdown.return_value = [
            CategoryStats(category="lighting", count=3, avg_price=20.0, total_value=60.0)
        ]
        mock_gateway.count.side_effect = lambda criteria=None: 3 if criteria is None else 2

        stats = await service.get_stats(mock_gateway)

        assert stats.total_products == 3
        assert stats.in_stock_count == 2
        assert stats.out_of_stock_count == 1
        assert stats.by_category[0].avg_price == 20.0


class TestSingleProductOperations:
    @pytest.mark.asyncio
    async def test_get_existing(self, service, mock_gateway, product):
        mock_gateway.get.return_value = product

        result = await service.get_product(mock_gateway, product.id)

        assert result.id == product.id
        assert result.in_stock is True

    @pytest.mark.asyncio
    async def test_get_unknown_id_is_not_found(self, service, mock_gateway):
        mock_gateway.get.return_value = None

        with pytest.raises(NotFoundError) as exc_info:
            await service.get_product(mock_gateway, VALID_ID)
        assert exc_info.value.message == "Product not found"

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, service, mock_gateway):
        mock_gateway.get.side_effect = InvalidIdentifierError("nope")

        with pytest.raises(NotFoundError):
            await service.get_product(mock_gateway, "nope")

    @pytest.mark.asyncio
    async def test_create_defaults_in_stock(self, service, mock_gateway, product, payload):
        mock_gateway.create.return_value = product

        await service.create_product(mock_gateway, payload)

        fields = mock_gateway.create.await_args.args[0]
        assert fields["inStock"] is True
        assert fields["price"] == 39.99

    @pytest.mark.asyncio
    async def test_create_rejected_by_store_is_validation_error(self, service, mock_gateway, payload):
        mock_gateway.create.side_effect = WriteRejectedError("Product validation failed: bad doc")

        with pytest.raises(ValidationError) as exc_info:
            await service.create_product(mock_gateway, payload)
        assert exc_info.value.message == "Product validation failed: bad doc"

    @pytest.mark.asyncio
    async def test_update_leaves_in_stock_alone_when_omitted(self, service, mock_gateway, product, payload):
        mock_gateway.update.return_value = product

        await service.update_product(mock_gateway, product.id, payload)

        fields = mock_gateway.update.await_args.args[1]
        assert "inStock" not in fields

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [None, InvalidIdentifierError("x")])
    async def test_update_missing_is_not_found(self, service, mock_gateway, payload, outcome):
        if isinstance(outcome, Exception):
            mock_gateway.update.side_effect = outcome
        else:
            mock_gateway.update.return_value = outcome

        with pytest.raises(NotFoundError):
            await service.update_product(mock_gateway, "x", payload)

    @pytest.mark.asyncio
    async def test_update_rejected_by_store_is_validation_error(self, service, mock_gateway, payload):
        mock_gateway.update.side_effect = WriteRejectedError()

        with pytest.raises(ValidationError):
            await service.update_product(mock_gateway, VALID_ID, payload)

    @pytest.mark.asyncio
    async def test_delete_returns_removed_product(self, service, mock_gateway, product):
        mock_gateway.delete.return_value = product

        result = await service.delete_product(mock_gateway, product.id)

        assert result.message == "Product deleted successfully"
        assert result.product.id == product.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("outcome", [None, InvalidIdentifierError("x")])
    async def test_delete_missing_is_not_found(self, service, mock_gateway, outcome):
        if isinstance(outcome, Exception):
            mock_gateway.delete.side_effect = outcome
        else:
            mock_gateway.delete.return_value = outcome

        with pytest.raises(NotFoundError):
            await service.delete_product(mock_gateway, "x")

    @pytest.mark.asyncio
    async def test_database_errors_propagate(self, service, mock_gateway):
        mock_gateway.get.side_effect = DatabaseError()

        with pytest.raises(DatabaseError):
            await service.get_product(mock_gateway, VALID_ID)
