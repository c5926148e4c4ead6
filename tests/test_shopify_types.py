import json

import pytest

from mechalligator.shopify_types import (
    ShopifyImage,
    ShopifyOption,
    ShopifyProduct,
    ShopifyResponse,
    ShopifyVariant,
    ShopifyVariantImage,
)

VARIANT = {
    "id": 4001,
    "title": "Red",
    "option1": "Red",
    "option2": None,
    "option3": "Large",
    "sku": "SKU-RED",
    "requires_shipping": True,
    "taxable": False,
    "featured_image": {
        "id": 77,
        "product_id": 1001,
        "position": 2,
        "alt": None,
        "width": 800,
        "height": 600,
        "src": "https://cdn.example.com/red.jpg",
        "variant_ids": [4001],
    },
    "available": True,
    "price": "1299.00",
    "grams": 450,
    "compare_at_price": "1499.00",
    "position": 1,
    "product_id": 1001,
    "created_at": "2024-01-01T00:00:00+05:30",
    "updated_at": "2024-02-01T00:00:00+05:30",
}

PRODUCT = {
    "id": 1001,
    "title": "Cherry Keycaps",
    "handle": "cherry-keycaps",
    "body_html": "<p>PBT keycaps</p>",
    "published_at": "2024-01-01T00:00:00+05:30",
    "created_at": "2024-01-01T00:00:00+05:30",
    "updated_at": "2024-02-01T00:00:00+05:30",
    "vendor": "Keebs",
    "product_type": "Keycaps",
    "tags": ["pbt", "cherry"],
    "variants": [VARIANT],
    "images": [
        {
            "id": 55,
            "created_at": "2024-01-01T00:00:00+05:30",
            "position": 1,
            "updated_at": "2024-01-01T00:00:00+05:30",
            "product_id": 1001,
            "variant_ids": [],
            "src": "https://cdn.example.com/main.jpg",
            "width": 1024,
            "height": 768,
            "alt": "Main image",
        }
    ],
    "options": [{"name": "Color", "position": 1, "values": ["Red", "Blue"]}],
}


def test_variant_fields_follow_input():
    variant = ShopifyVariant.from_dict(VARIANT)
    assert variant.id == VARIANT["id"]
    assert variant.title == VARIANT["title"]
    assert variant.option2 is None
    assert variant.option3 == VARIANT["option3"]
    assert variant.requires_shipping is True
    assert variant.taxable is False
    assert variant.price == VARIANT["price"]
    assert variant.compare_at_price == VARIANT["compare_at_price"]
    assert variant.grams == VARIANT["grams"]


def test_variant_featured_image_is_nested_record():
    variant = ShopifyVariant.from_dict(VARIANT)
    assert isinstance(variant.featured_image, ShopifyVariantImage)
    assert variant.featured_image.src == VARIANT["featured_image"]["src"]
    assert variant.featured_image.variant_ids == [VARIANT["id"]]
    assert variant.featured_image.alt is None


def test_variant_null_featured_image():
    data = dict(VARIANT, featured_image=None, compare_at_price=None)
    variant = ShopifyVariant.from_dict(data)
    assert variant.featured_image is None
    assert variant.compare_at_price is None


def test_product_from_json_text():
    product = ShopifyProduct.from_dict(json.loads(json.dumps(PRODUCT)))
    assert product.id == PRODUCT["id"]
    assert product.handle == PRODUCT["handle"]
    assert product.tags == PRODUCT["tags"]
    assert [v.id for v in product.variants] == [VARIANT["id"]]
    assert [i.src for i in product.images] == [PRODUCT["images"][0]["src"]]
    assert product.images[0].alt == PRODUCT["images"][0]["alt"]
    assert product.options == [
        ShopifyOption(name="Color", position=1, values=["Red", "Blue"])
    ]


def test_missing_fields_take_zero_values():
    product = ShopifyProduct.from_dict({"id": 5})
    assert product.id == 5
    assert product.title == ""
    assert product.tags == []
    assert product.variants == []
    assert product.images == []


def test_null_fields_take_zero_values():
    variant = ShopifyVariant.from_dict({"id": None, "sku": None, "available": None})
    assert variant == ShopifyVariant()


def test_response_collects_products():
    response = ShopifyResponse.from_dict({"products": [PRODUCT, {"id": 2}]})
    assert [p.id for p in response.products] == [PRODUCT["id"], 2]


def test_response_without_products():
    assert ShopifyResponse.from_dict({}).products == []


def test_image_from_dict_matches_constructor():
    data = PRODUCT["images"][0]
    assert ShopifyImage.from_dict(data) == ShopifyImage(**data)


@pytest.mark.parametrize(
    "cls, data",
    [
        (ShopifyProduct, {"id": "1001"}),
        (ShopifyProduct, {"id": True}),
        (ShopifyProduct, {"id": 1.5}),
        (ShopifyProduct, {"tags": "pbt"}),
        (ShopifyProduct, {"tags": [1, 2]}),
        (ShopifyProduct, {"variants": {"id": 1}}),
        (ShopifyVariant, {"available": "yes"}),
        (ShopifyVariant, {"price": 12.5}),
        (ShopifyVariant, {"option2": 3}),
        (ShopifyVariant, {"featured_image": "https://cdn.example.com/a.jpg"}),
        (ShopifyImage, {"variant_ids": ["a"]}),
        (ShopifyOption, {"values": "Red"}),
        (ShopifyResponse, {"products": [1]}),
    ],
)
def test_bad_types_raise(cls, data):
    with pytest.raises(ValueError):
        cls.from_dict(data)


@pytest.mark.parametrize(
    "cls",
    [ShopifyImage, ShopifyVariantImage, ShopifyVariant, ShopifyOption, ShopifyProduct, ShopifyResponse],
)
def test_non_mapping_raises(cls):
    with pytest.raises(ValueError):
        cls.from_dict([1, 2, 3])