"""Products codec — the product catalog stored as an array in a TypeScript file.

The catalog file is a TypeScript module, not data. This codec treats one
array literal inside it as the table:

- decode: find the array binding (primary pattern first, then fallbacks),
  read the literal with the restricted parser in ``codecs.literal``, and
  validate each entry as a ProductRecord.
- encode: regenerate the whole file from a fixed header, the rendered
  array, and a fixed footer.

Regeneration is lossy. Anything the template does not contain (comments,
extra exports, helpers) is dropped by the next save. ``read`` reports
whether the current file carries such content and ``write`` always returns
a warning saying the file was regenerated.

Tier 2 service — imports from hooks.interfaces (Tier 1), codecs.literal,
schemas, errors.

Usage:
    codec = ProductsCodec(gateway)
    catalog = await codec.read(coords, "data/intake-form/products.ts")
    result = await codec.write(coords, path, catalog.products, catalog.version_stamp)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from pydantic import ValidationError

from repostore.codecs.literal import parse_literal_at, render_literal
from repostore.errors import NotFoundError, ParseError
from repostore.hooks.interfaces import FileGateway
from repostore.schemas import ProductRecord, RepoCoordinates, WriteResult

logger = logging.getLogger(__name__)

# Binding forms that introduce the products array, most specific first.
ARRAY_BINDING_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"export\s+const\s+products\s*:\s*Product\[\]\s*=\s*"),
        "export const products: Product[]",
    ),
    (
        re.compile(r"const\s+productsData\s*:\s*Product\[\]\s*=\s*"),
        "const productsData: Product[]",
    ),
    (
        re.compile(
            r"(?:export\s+)?const\s+products\s*(?::\s*(?:Array<\s*Product\s*>|Product\[\]))?\s*=\s*"
        ),
        "const products",
    ),
]

PRODUCTS_FILE_HEADER = """\
import type { Product } from "~/types/intake-form/checkout";

// --- PRODUCT DATA ---

// This is the master list of all available products.
"""

PRODUCTS_FILE_FOOTER = """\
export function getProductById(id: string): Product | undefined {
  return products.find((product) => product.id === id);
}

export function getPopularProducts(): Product[] {
  return products.filter((product) => product.popular);
}
"""

REGENERATION_WARNING = (
    "The products file was regenerated from its template; content outside "
    "the products array (comments, extra exports) is not preserved."
)


@dataclass(frozen=True)
class ProductCatalog:
    """Decoded catalog plus the stamp it was read at.

    Attributes:
        products: Records in file order.
        version_stamp: Stamp to send back with the next write.
        has_unmanaged_content: True when the file holds text outside the
            template that the next write will drop.
    """

    products: list[ProductRecord]
    version_stamp: str
    has_unmanaged_content: bool = False
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _Located:
    start: int
    end: int
    pattern_index: int
    value: object


def _locate(source: str) -> _Located:
    """Finds and parses the products array literal.

    Raises:
        ParseError: No binding pattern matched, or the literal is not a
            plain array.
    """
    for index, (pattern, label) in enumerate(ARRAY_BINDING_PATTERNS):
        match = pattern.search(source)
        if match is None:
            continue
        if not source.startswith("[", match.end()):
            logger.debug("Binding %r matched but is not followed by an array", label)
            continue
        value, end = parse_literal_at(source, match.end())
        return _Located(start=match.start(), end=end, pattern_index=index, value=value)

    raise ParseError("", "Unable to locate products array in products file content.")


def _squash(text: str) -> str:
    return "".join(text.split())


def has_unmanaged_content(source: str) -> bool:
    """Whether regenerating this source would drop hand-written text.

    Compares the text before the binding and after the array with the
    template, ignoring whitespace.
    """
    located = _locate(source)
    if located.pattern_index != 0:
        return True
    before = _squash(source[:located.start])
    after = _squash(source[located.end:])
    return (
        before != _squash(PRODUCTS_FILE_HEADER)
        or after != _squash(";" + PRODUCTS_FILE_FOOTER)
    )


def decode(source: str) -> list[ProductRecord]:
    """Decodes the product sequence embedded in a products source file.

    Raises:
        ParseError: The array is missing, contains unsupported syntax, or an
            entry is not a valid product.
    """
    located = _locate(source)
    if not isinstance(located.value, list):
        raise ParseError("", "Products binding is not an array literal.")

    products: list[ProductRecord] = []
    for index, entry in enumerate(located.value):
        if not isinstance(entry, dict):
            raise ParseError("", f"Product #{index} is not an object literal.")
        try:
            products.append(ProductRecord.model_validate(entry))
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(part) for part in first.get("loc", ()))
            raise ParseError(
                "", f"Product #{index} is invalid: {loc}: {first.get('msg')}"
            ) from exc
    return products


def encode(products: list[ProductRecord]) -> str:
    """Regenerates the entire products file from the template."""
    body = render_literal([product.to_literal() for product in products])
    return (
        f"{PRODUCTS_FILE_HEADER}\n"
        f"export const products: Product[] = {body};\n\n"
        f"{PRODUCTS_FILE_FOOTER}"
    )


class ProductsCodec:
    """Reads and writes the product catalog through a FileGateway."""

    def __init__(self, gateway: FileGateway) -> None:
        self._gateway = gateway

    async def read(self, coords: RepoCoordinates, path: str) -> ProductCatalog:
        """Reads and decodes the catalog.

        Raises:
            NotFoundError: The products file does not exist.
            ParseError: The file could not be decoded (carries the path).
        """
        record = await self._gateway.read(coords, path)
        if record is None:
            raise NotFoundError(path, "Products file not found.")

        try:
            source = record.text()
            products = decode(source)
            unmanaged = has_unmanaged_content(source)
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"File is not UTF-8 text: {exc}") from exc
        except ParseError as exc:
            raise ParseError(path, exc.reason, offset=exc.offset) from exc

        warnings = []
        if unmanaged:
            warnings.append(
                "This products file contains content outside the managed template; "
                "saving will remove it."
            )
        return ProductCatalog(
            products=products,
            version_stamp=record.version_stamp,
            has_unmanaged_content=unmanaged,
            warnings=warnings,
        )

    async def write(
        self,
        coords: RepoCoordinates,
        path: str,
        products: list[ProductRecord],
        version_stamp: str,
        message: str | None = None,
    ) -> WriteResult:
        """Regenerates the file and writes it guarded by version_stamp.

        Raises:
            ConflictError: The file changed since version_stamp was read.
        """
        content = encode(products).encode("utf-8")
        result = await self._gateway.write(
            coords,
            path,
            content,
            message or f"CMS: Automated products update for {path}",
            expected_version_stamp=version_stamp,
        )
        logger.warning("Regenerated %s from template (%d products)", path, len(products))
        return WriteResult(
            new_version_stamp=result.new_version_stamp,
            commit_url=result.commit_url,
            warnings=[*result.warnings, REGENERATION_WARNING],
        )
