"""Tests for repostore.codecs.products — the catalog array inside products.ts."""

import logging

import pytest

from repostore.codecs.products import (
    PRODUCTS_FILE_FOOTER,
    PRODUCTS_FILE_HEADER,
    REGENERATION_WARNING,
    ProductsCodec,
    decode,
    encode,
    has_unmanaged_content,
)
from repostore.errors import ConflictError, NotFoundError, ParseError

PATH = "data/intake-form/products.ts"

TWO_PRODUCTS = """[
  {
    id: "semaglutide",
    name: "Semaglutide",
    category: 'weight-loss',
    img: "/assets/images/products/semaglutide.png",
    prices: { monthly: 199, "3-month": 549, },
    productBundleIds: { monthly: "bundle_1" },
    features: ["Weekly injection", `Free shipping`],
    availability: "in_stock",
    type: "injection",
    popular: true,
    // kept by the decoder, unknown to the model
    badge: "Best seller",
  },
  {
    id: "tirzepatide",
    name: "Tirzepatide",
    availability: "coming_soon",
  },
]"""


class TestDecode:
    def test_decodes_records_in_order(self, products_source) -> None:
        products = decode(products_source(TWO_PRODUCTS))
        assert [p.id for p in products] == ["semaglutide", "tirzepatide"]
        first = products[0]
        assert first.prices == {"monthly": 199, "3-month": 549}
        assert first.product_bundle_ids == {"monthly": "bundle_1"}
        assert first.features == ["Weekly injection", "Free shipping"]
        assert first.popular is True

    def test_minimal_entry_gets_defaults_and_survives_encoding(self) -> None:
        source = 'export const products: Product[] = [{id:"a",name:"A",prices:{monthly:10}}];'
        [product] = decode(source)
        assert product.id == "a"
        assert product.prices == {"monthly": 10}
        assert product.features == []
        assert decode(encode([product])) == [product]

    def test_unknown_fields_preserved(self, products_source) -> None:
        first = decode(products_source(TWO_PRODUCTS))[0]
        assert first.to_literal()["badge"] == "Best seller"

    def test_fallback_binding(self) -> None:
        source = (
            "import type { Product } from './types';\n"
            "const productsData: Product[] = [{ id: 'a', name: 'A' }];\n"
            "export const products = productsData;\n"
        )
        assert [p.id for p in decode(source)] == ["a"]

    def test_generic_binding(self) -> None:
        source = "export const products: Array<Product> = [{ id: 'a', name: 'A' }];"
        assert [p.id for p in decode(source)] == ["a"]

    def test_missing_array_raises(self) -> None:
        with pytest.raises(ParseError, match="Unable to locate products array"):
            decode("export const items = [];")

    def test_unsupported_syntax_raises(self, products_source) -> None:
        with pytest.raises(ParseError, match="Spread elements"):
            decode(products_source("[...baseProducts]"))

    def test_invalid_entry_raises(self, products_source) -> None:
        with pytest.raises(ParseError, match=r"Product #1 is invalid"):
            decode(products_source("[{id: 'a', name: 'A'}, {id: 'b'}]"))

    def test_invalid_enum_raises(self, products_source) -> None:
        with pytest.raises(ParseError, match="availability"):
            decode(products_source("[{id: 'a', name: 'A', availability: 'sold'}]"))


class TestEncode:
    def test_decode_encode_decode_is_stable(self, products_source) -> None:
        products = decode(products_source(TWO_PRODUCTS))
        again = decode(encode(products))
        assert [p.to_literal() for p in again] == [p.to_literal() for p in products]

    def test_encode_is_canonical(self, make_product) -> None:
        source = encode([make_product()])
        assert source.startswith(PRODUCTS_FILE_HEADER)
        assert source.endswith(PRODUCTS_FILE_FOOTER)
        assert "export const products: Product[] = [" in source
        assert has_unmanaged_content(source) is False

    def test_unset_fields_not_written(self, make_product) -> None:
        source = encode([make_product()])
        assert "thumbnail" not in source
        assert "productBundleIds" not in source


class TestUnmanagedContent:
    def test_template_file_is_managed(self, products_source) -> None:
        assert has_unmanaged_content(products_source(TWO_PRODUCTS)) is False

    def test_extra_export_is_unmanaged(self, products_source) -> None:
        footer = PRODUCTS_FILE_FOOTER + "\nexport const FEATURED = ['semaglutide'];\n"
        assert has_unmanaged_content(products_source(TWO_PRODUCTS, footer=footer)) is True

    def test_header_comment_is_unmanaged(self, products_source) -> None:
        header = "// DO NOT EDIT BY HAND\n" + PRODUCTS_FILE_HEADER
        assert has_unmanaged_content(products_source(TWO_PRODUCTS, header=header)) is True

    def test_fallback_binding_is_unmanaged(self) -> None:
        source = "const productsData: Product[] = [];\nexport const products = productsData;"
        assert has_unmanaged_content(source) is True


class TestProductsCodec:
    @pytest.mark.asyncio
    async def test_read(self, memory_gateway, coords, products_source) -> None:
        stamp = memory_gateway.seed(coords, PATH, products_source(TWO_PRODUCTS).encode())
        catalog = await ProductsCodec(memory_gateway).read(coords, PATH)

        assert catalog.version_stamp == stamp
        assert len(catalog.products) == 2
        assert catalog.has_unmanaged_content is False
        assert catalog.warnings == []

    @pytest.mark.asyncio
    async def test_read_missing(self, memory_gateway, coords) -> None:
        with pytest.raises(NotFoundError):
            await ProductsCodec(memory_gateway).read(coords, PATH)

    @pytest.mark.asyncio
    async def test_read_parse_error_names_path(self, memory_gateway, coords) -> None:
        memory_gateway.seed(coords, PATH, b"export const products: Product[] = [oops];")
        with pytest.raises(ParseError) as exc_info:
            await ProductsCodec(memory_gateway).read(coords, PATH)
        assert exc_info.value.path == PATH
        assert exc_info.value.offset is not None

    @pytest.mark.asyncio
    async def test_read_flags_unmanaged_content(self, memory_gateway, coords, products_source) -> None:
        footer = PRODUCTS_FILE_FOOTER + "\nexport const extra = 1;\n"
        memory_gateway.seed(coords, PATH, products_source(TWO_PRODUCTS, footer=footer).encode())

        catalog = await ProductsCodec(memory_gateway).read(coords, PATH)
        assert catalog.has_unmanaged_content is True
        assert catalog.warnings

    @pytest.mark.asyncio
    async def test_write_regenerates_and_warns(
        self, memory_gateway, coords, products_source, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Scenario: read, edit one field, save, read back."""
        memory_gateway.seed(coords, PATH, products_source(TWO_PRODUCTS).encode())
        codec = ProductsCodec(memory_gateway)
        catalog = await codec.read(coords, PATH)

        edited = [p.model_copy(update={"name": "Semaglutide Plus"}) if p.id == "semaglutide" else p
                  for p in catalog.products]
        with caplog.at_level(logging.WARNING, logger="repostore.codecs.products"):
            result = await codec.write(coords, PATH, edited, catalog.version_stamp)

        assert REGENERATION_WARNING in result.warnings
        assert any("Regenerated" in r.message for r in caplog.records)

        reread = await codec.read(coords, PATH)
        assert reread.version_stamp == result.new_version_stamp
        assert reread.products[0].name == "Semaglutide Plus"
        assert reread.products[0].to_literal()["badge"] == "Best seller"
        assert reread.has_unmanaged_content is False

    @pytest.mark.asyncio
    async def test_write_with_stale_stamp_conflicts(self, memory_gateway, coords, products_source) -> None:
        memory_gateway.seed(coords, PATH, products_source(TWO_PRODUCTS).encode())
        codec = ProductsCodec(memory_gateway)
        catalog = await codec.read(coords, PATH)
        await codec.write(coords, PATH, catalog.products[:1], catalog.version_stamp)

        with pytest.raises(ConflictError):
            await codec.write(coords, PATH, catalog.products, catalog.version_stamp)
