"""Records of the public Shopify ``products.json`` feed."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _require_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"field {key!r} must be an integer")
    return value


def _str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _optional_str(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string or null")
    return value


def _bool(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValueError(f"field {key!r} must be a boolean")
    return value


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be an array")
    return value


def _int_list(data: Mapping[str, Any], key: str) -> list[int]:
    items = _list(data, key)
    if any(isinstance(item, bool) or not isinstance(item, int) for item in items):
        raise ValueError(f"field {key!r} must be an array of integers")
    return list(items)


def _str_list(data: Mapping[str, Any], key: str) -> list[str]:
    items = _list(data, key)
    if not all(isinstance(item, str) for item in items):
        raise ValueError(f"field {key!r} must be an array of strings")
    return list(items)


@dataclass
class ShopifyImage:
    """A product image."""

    id: int = 0
    created_at: str = ""
    position: int = 0
    updated_at: str = ""
    product_id: int = 0
    variant_ids: list[int] = field(default_factory=list)
    src: str = ""
    width: int = 0
    height: int = 0
    alt: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyImage:
        data = _require_mapping(data, "image")
        return cls(
            id=_int(data, "id"),
            created_at=_str(data, "created_at"),
            position=_int(data, "position"),
            updated_at=_str(data, "updated_at"),
            product_id=_int(data, "product_id"),
            variant_ids=_int_list(data, "variant_ids"),
            src=_str(data, "src"),
            width=_int(data, "width"),
            height=_int(data, "height"),
            alt=_optional_str(data, "alt"),
        )


@dataclass
class ShopifyVariantImage:
    """The image featured for a specific variant."""

    id: int = 0
    product_id: int = 0
    position: int = 0
    created_at: str = ""
    updated_at: str = ""
    alt: str | None = None
    width: int = 0
    height: int = 0
    src: str = ""
    variant_ids: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyVariantImage:
        data = _require_mapping(data, "featured_image")
        return cls(
            id=_int(data, "id"),
            product_id=_int(data, "product_id"),
            position=_int(data, "position"),
            created_at=_str(data, "created_at"),
            updated_at=_str(data, "updated_at"),
            alt=_optional_str(data, "alt"),
            width=_int(data, "width"),
            height=_int(data, "height"),
            src=_str(data, "src"),
            variant_ids=_int_list(data, "variant_ids"),
        )


@dataclass
class ShopifyVariant:
    """One purchasable variant of a product."""

    id: int = 0
    title: str = ""
    option1: str = ""
    option2: str | None = None
    option3: str | None = None
    sku: str = ""
    requires_shipping: bool = False
    taxable: bool = False
    featured_image: ShopifyVariantImage | None = None
    available: bool = False
    price: str = ""
    grams: int = 0
    compare_at_price: str | None = None
    position: int = 0
    product_id: int = 0
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyVariant:
        data = _require_mapping(data, "variant")
        featured = data.get("featured_image")
        return cls(
            id=_int(data, "id"),
            title=_str(data, "title"),
            option1=_str(data, "option1"),
            option2=_optional_str(data, "option2"),
            option3=_optional_str(data, "option3"),
            sku=_str(data, "sku"),
            requires_shipping=_bool(data, "requires_shipping"),
            taxable=_bool(data, "taxable"),
            featured_image=(
                None if featured is None else ShopifyVariantImage.from_dict(featured)
            ),
            available=_bool(data, "available"),
            price=_str(data, "price"),
            grams=_int(data, "grams"),
            compare_at_price=_optional_str(data, "compare_at_price"),
            position=_int(data, "position"),
            product_id=_int(data, "product_id"),
            created_at=_str(data, "created_at"),
            updated_at=_str(data, "updated_at"),
        )


@dataclass
class ShopifyOption:
    """A product option such as size or colour, with its values."""

    name: str = ""
    position: int = 0
    values: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyOption:
        data = _require_mapping(data, "option")
        return cls(
            name=_str(data, "name"),
            position=_int(data, "position"),
            values=_str_list(data, "values"),
        )


@dataclass
class ShopifyProduct:
    """A product with its variants, images and options."""

    id: int = 0
    title: str = ""
    handle: str = ""
    body_html: str = ""
    published_at: str = ""
    created_at: str = ""
    updated_at: str = ""
    vendor: str = ""
    product_type: str = ""
    tags: list[str] = field(default_factory=list)
    variants: list[ShopifyVariant] = field(default_factory=list)
    images: list[ShopifyImage] = field(default_factory=list)
    options: list[ShopifyOption] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyProduct:
        data = _require_mapping(data, "product")
        return cls(
            id=_int(data, "id"),
            title=_str(data, "title"),
            handle=_str(data, "handle"),
            body_html=_str(data, "body_html"),
            published_at=_str(data, "published_at"),
            created_at=_str(data, "created_at"),
            updated_at=_str(data, "updated_at"),
            vendor=_str(data, "vendor"),
            product_type=_str(data, "product_type"),
            tags=_str_list(data, "tags"),
            variants=[ShopifyVariant.from_dict(v) for v in _list(data, "variants")],
            images=[ShopifyImage.from_dict(i) for i in _list(data, "images")],
            options=[ShopifyOption.from_dict(o) for o in _list(data, "options")],
        )


@dataclass
class ShopifyResponse:
    """The top-level ``products.json`` document."""

    products: list[ShopifyProduct] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShopifyResponse:
        data = _require_mapping(data, "response")
        return cls(
            products=[ShopifyProduct.from_dict(p) for p in _list(data, "products")]
        )