import pytest

from easyprop.core.exceptions import ValidationException
from easyprop.services.search import PropertySearchFilters, SearchService, parse_range


def search(db, **kwargs):
    return SearchService(db).search_properties(PropertySearchFilters(**kwargs))


def ids(result):
    return [row.id for row in result["properties"]]


@pytest.mark.parametrize("value,expected", [
    ("1000000-5000000", (1_000_000, 5_000_000)),
    ("5000000+", (5_000_000, None)),
    ("0-2500000", (None, 2_500_000)),
    ("2500000-", (2_500_000, None)),
])
def test_parse_range(value, expected):
    assert parse_range(value, "price_range") == expected


def test_parse_range_rejects_garbage():
    with pytest.raises(ValidationException) as exc_info:
        parse_range("cheap", "price_range")
    assert exc_info.value.details == {"price_range": "cheap"}


def test_search_only_returns_active(db, make_property):
    active = make_property()
    make_property(status="sold")

    result = search(db)

    assert ids(result) == [active.id]
    assert result["total"] == 1


def test_search_filters_combine(db, make_property):
    match = make_property(city="Pune", price=4_000_000, bedrooms=3, furnishing="furnished")
    make_property(city="Pune", price=4_000_000, bedrooms=2, furnishing="furnished")
    make_property(city="Pune", price=9_000_000, bedrooms=3, furnishing="furnished")
    make_property(city="Mumbai", price=4_000_000, bedrooms=3, furnishing="furnished")

    result = search(db, city="pune", price_range="3000000-5000000", bhk="3", furnishing="furnished")

    assert ids(result) == [match.id]


def test_search_bhk_four_plus(db, make_property):
    make_property(bedrooms=3)
    four = make_property(bedrooms=4)
    five = make_property(bedrooms=5)

    result = search(db, bhk="4+", sort_by="oldest")

    assert ids(result) == [four.id, five.id]


def test_search_rejects_bad_bhk(db):
    with pytest.raises(ValidationException):
        search(db, bhk="many")


def test_search_age_and_area(db, make_property):
    new = make_property(age_of_property=0, area=700)
    make_property(age_of_property=8, area=700)
    make_property(age_of_property=0, area=2500)

    result = search(db, age_of_property="0-1", area_range="500-1000")

    assert ids(result) == [new.id]


def test_search_rejects_unknown_age_bucket(db):
    with pytest.raises(ValidationException):
        search(db, age_of_property="ancient")


def test_search_free_text(db, make_property):
    match = make_property(title="Penthouse with terrace garden")
    make_property(description="Close to the station")

    assert ids(search(db, search_query="terrace")) == [match.id]


def test_search_amenities_require_all_and_paginate_after_filtering(db, make_property):
    make_property(amenities=["gym"])
    first = make_property(amenities=["gym", "pool", "parking"])
    second = make_property(amenities=["pool", "gym"])
    make_property(amenities=["pool"])

    result = search(db, amenities=["gym", "pool"], sort_by="oldest", limit=1, offset=1)

    assert result["total"] == 2
    assert ids(result) == [second.id]
    assert first.id not in ids(result)


@pytest.mark.parametrize("sort_by,attr,reverse", [
    ("price_low_high", "price", False),
    ("price_high_low", "price", True),
    ("most_viewed", "views", True),
    ("area_low_high", "area", False),
])
def test_search_sorting(db, make_property, sort_by, attr, reverse):
    make_property(price=3_000_000, views=10, area=900)
    make_property(price=8_000_000, views=2, area=1500)
    make_property(price=5_000_000, views=30, area=600)

    values = [getattr(row, attr) for row in search(db, sort_by=sort_by)["properties"]]

    assert values == sorted(values, reverse=reverse)


def test_search_pagination(db, make_property):
    for _ in range(5):
        make_property()

    result = search(db, limit=2, offset=2)

    assert result["total"] == 5
    assert len(result["properties"]) == 2
    assert result["limit"] == 2 and result["offset"] == 2


def test_search_suggestions(db, make_property):
    make_property(city="Bengaluru", locality="Whitefield", title="Villa in Whitefield")
    make_property(city="Bengaluru", locality="Indiranagar")
    make_property(city="Bengaluru", locality="Whitefield", status="sold")
    service = SearchService(db)

    assert service.search_suggestions("w") == []
    suggestions = service.search_suggestions("whitefield")
    assert len(suggestions) == 1
    assert suggestions[0]["locality"] == "Whitefield"
    assert set(suggestions[0]) >= {"id", "title", "price", "images"}


def test_lookup_lists(db, make_property):
    make_property(city="Pune", locality="Baner", property_type="villa", amenities=["pool"])
    make_property(city="Mumbai", locality="Bandra", type="rent", price=60_000)
    make_property(city="Delhi", locality="Saket", status="sold")
    service = SearchService(db)

    assert service.get_unique_cities() == ["Delhi", "Mumbai", "Pune"]
    assert service.get_unique_localities("Pune") == ["Baner"]
    assert service.get_property_types_with_counts() == {"villa": 1, "apartment": 1}
    assert service.get_available_amenities() == ["gym", "parking", "pool"]
    assert service.get_price_ranges("rent") == {"min": 60_000, "max": 60_000, "average": 60_000, "count": 1}
    assert service.get_price_ranges("lease")["count"] == 0


def test_search_filters_data(db, make_property):
    make_property(city="Pune", price=4_000_000)
    make_property(city="Mumbai", type="rent", price=45_000, facing="west")
    make_property(city="Delhi", status="inactive")

    data = SearchService(db).get_search_filters_data()

    assert data["cities"] == ["Mumbai", "Pune"]
    assert data["facing_options"] == ["east", "west"]
    assert data["price_ranges"]["sale"] == {"min": 4_000_000, "max": 4_000_000, "count": 1}
    assert data["price_ranges"]["rent"]["max"] == 45_000
    assert data["total_properties"] == 2
    assert data["sale_count"] == 1 and data["rent_count"] == 1
