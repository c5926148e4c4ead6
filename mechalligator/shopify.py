"""Scraper plugin for stores that publish the Shopify ``products.json`` feed."""

from __future__ import annotations

import re
from dataclasses import replace

import requests

from .scraper_types import Product, ScrapeRequest, ScrapeResult, ScraperError
from .shopify_types import ShopifyProduct, ShopifyResponse, ShopifyVariant

_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; MechAlligator/1.0)",
    "Accept": "application/json",
}
_INTEGER = re.compile(r"[+-]?\d+")
_DEFAULT_CURRENCY = "INR"
_MAX_LIMIT = 250


def _parse_int(text: str) -> int | None:
    return int(text) if _INTEGER.fullmatch(text) else None


def _parse_price(text: str) -> float:
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return 0.0


def _trim_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


class ShopifyPlugin:
    """Reads products from a Shopify store's public JSON feed."""

    name = "shopify"
    version = "1.0.0"

    def __init__(self, session: requests.Session | None = None, timeout: float = 30.0) -> None:
        self._session = session if session is not None else requests.Session()
        self._timeout = timeout

    def supported_types(self) -> list[str]:
        return ["SHOPIFY"]

    def required_credentials(self) -> list[str]:
        # The public feed needs no credentials.
        return []

    def supported_options(self) -> dict[str, str]:
        return {
            "limit": "Number of products to fetch (default: 250, max: 250)",
            "collection_handle": "Specific collection handle to scrape (e.g., 'keycaps')",
            "use_storefront_api": "Use Storefront API instead of products.json (requires access token)",
            "page": "Page number for pagination (default: 1)",
            "include_images": "Include product images (true/false, default: true)",
            "include_variants": "Include all variants or just first one (true/false, default: true)",
        }

    def validate(self, request: ScrapeRequest) -> None:
        """Raise ScraperError if the request cannot be scraped."""
        if not request.site_url:
            raise ScraperError("site_url is required")
        site_url = _trim_slash(request.site_url)
        if not site_url.startswith(("http://", "https://")):
            raise ScraperError("site_url must include http:// or https://")
        limit_text = request.options.get("limit", "")
        if limit_text:
            limit = _parse_int(limit_text)
            if limit is None or limit <= 0 or limit > _MAX_LIMIT:
                raise ScraperError("limit must be a number between 1 and 250")

    def scrape(self, request: ScrapeRequest) -> ScrapeResult:
        """Fetch one page of products and convert them."""
        url = self.build_api_url(request)
        try:
            shopify_products = self.fetch_products(url)
        except ScraperError as err:
            raise ScraperError(f"failed to fetch products: {err}") from err

        include_all_variants = request.options.get("include_variants", "") != "false"
        include_images = request.options.get("include_images", "") != "false"

        result = ScrapeResult()
        for shopify_product in shopify_products:
            products, errors = self.convert_product(
                shopify_product, request, include_all_variants, include_images
            )
            result.products.extend(products)
            result.errors.extend(errors)
        return result

    def scrape_all_pages(self, request: ScrapeRequest) -> ScrapeResult:
        """Scrape page after page until a short or empty page is returned."""
        limit = _MAX_LIMIT
        limit_text = request.options.get("limit", "")
        if limit_text:
            parsed = _parse_int(limit_text)
            if parsed is not None:
                limit = parsed

        result = ScrapeResult()
        page = 1
        while True:
            options = dict(request.options, page=str(page), limit=str(limit))
            try:
                page_result = self.scrape(replace(request, options=options))
            except ScraperError as err:
                raise ScraperError(f"failed to scrape page {page}: {err}") from err

            if not page_result.products:
                break
            result.products.extend(page_result.products)
            result.errors.extend(page_result.errors)
            if len(page_result.products) < limit:
                break
            page += 1
        return result

    def build_api_url(self, request: ScrapeRequest) -> str:
        """Return the ``products.json`` URL with limit and page parameters."""
        base_url = _trim_slash(request.site_url)
        collection = request.options.get("collection_handle", "")
        if collection:
            base_url += "/collections/" + collection

        params = [f"limit={request.options.get('limit') or _MAX_LIMIT}"]
        page = request.options.get("page", "")
        if page:
            params.append("page=" + page)
        return f"{base_url}/products.json?{'&'.join(params)}"

    def fetch_products(self, url: str) -> list[ShopifyProduct]:
        """GET the feed at url and decode its products."""
        try:
            response = self._session.get(url, headers=_HEADERS, timeout=self._timeout)
        except requests.RequestException as err:
            raise ScraperError(f"failed to execute request: {err}") from err

        with response:
            if response.status_code != 200:
                raise ScraperError(
                    f"HTTP {response.status_code}: failed to fetch products from {url}"
                )
            try:
                data = response.json()
                if data is None:
                    return []
                return ShopifyResponse.from_dict(data).products
            except ValueError as err:
                raise ScraperError(f"failed to decode JSON response: {err}") from err

    def convert_product(
        self,
        product: ShopifyProduct,
        request: ScrapeRequest,
        include_all_variants: bool,
        include_images: bool,
    ) -> tuple[list[Product], list[str]]:
        """Turn a feed product into one product per variant, or one for the first."""
        base_url = _trim_slash(request.site_url)
        images = [image.src for image in product.images] if include_images else []
        tags = ",".join(product.tags)

        if include_all_variants and len(product.variants) > 1:
            chosen = product.variants
            label = "variant"
        else:
            chosen = product.variants[:1] or [ShopifyVariant()]
            label = "product"

        products: list[Product] = []
        errors: list[str] = []
        for variant in chosen:
            try:
                products.append(
                    self._convert_variant(product, variant, base_url, images, tags)
                )
            except (ValueError, TypeError) as err:
                failed_id = variant.id if label == "variant" else product.id
                errors.append(f"Failed to convert {label} {failed_id}: {err}")
        return products, errors

    @staticmethod
    def _convert_variant(
        product: ShopifyProduct,
        variant: ShopifyVariant,
        base_url: str,
        images: list[str],
        tags: str,
    ) -> Product:
        many = len(product.variants) > 1

        url = f"{base_url}/products/{product.handle}"
        product_id = str(product.id)
        name = product.title
        if many:
            url += f"?variant={variant.id}"
            product_id += f"-{variant.id}"
            if variant.title != "Default Title":
                name += " - " + variant.title

        variant_images = list(images)
        if variant.featured_image is not None:
            variant_images.insert(0, variant.featured_image.src)

        metadata = {
            "shopify_product_id": str(product.id),
            "shopify_variant_id": str(variant.id),
            "handle": product.handle,
            "vendor": product.vendor,
            "product_type": product.product_type,
            "tags": tags,
            "created_at": product.created_at,
            "updated_at": product.updated_at,
            "variant_sku": variant.sku,
            "variant_position": str(variant.position),
            "variant_grams": str(variant.grams),
            "requires_shipping": str(variant.requires_shipping).lower(),
            "taxable": str(variant.taxable).lower(),
        }
        if variant.compare_at_price is not None:
            metadata["compare_at_price"] = variant.compare_at_price
        if variant.option1:
            metadata["option1"] = variant.option1
        if variant.option2:
            metadata["option2"] = variant.option2
        if variant.option3:
            metadata["option3"] = variant.option3

        return Product(
            id=product_id,
            name=name,
            description=product.body_html,
            price=_parse_price(variant.price),
            currency=_DEFAULT_CURRENCY,
            url=url,
            in_stock=variant.available,
            images=variant_images,
            metadata=metadata,
        )