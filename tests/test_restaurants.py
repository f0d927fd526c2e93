import pytest

from app.modules.restaurants.filters import RestaurantFilterBuilder, unknown_price_clause

RESTAURANTS = [
    {"id": "r1", "name": "Pizzeria Roma", "avg_rating": 4.6, "review_count": 300, "price_tag": "$$ - $$$",
     "parent_city": "Barcelona", "cuisines": ["Italian", "Pizza"], "is_active": True},
    {"id": "r2", "name": "Sushi Ko", "avg_rating": 4.8, "review_count": 120, "price_tag": "$$$$",
     "parent_city": "Barcelona", "cuisines": ["Japanese", "Sushi"], "is_active": True},
    {"id": "r3", "name": "Taco Loco", "avg_rating": 3.9, "review_count": 80, "price_tag": "$",
     "parent_city": "Madrid", "cuisines": ["Mexican", "Street Food"], "is_active": True},
    {"id": "r4", "name": "Bar Nou", "avg_rating": None, "review_count": 5, "price_tag": None,
     "parent_city": "Barcelona", "cuisines": ["Bar"], "is_active": True},
    {"id": "r5", "name": "Closed Pizza", "avg_rating": 4.9, "review_count": 999, "price_tag": "",
     "parent_city": "Barcelona", "cuisines": ["Pizza"], "is_active": False},
]


@pytest.fixture
def catalogue(fake):
    fake.seed("restaurants", *RESTAURANTS)
    return fake


def ids(items):
    return [r["id"] for r in items]


def test_rating_filter_clamps_and_skips_unrated(catalogue):
    result = RestaurantFilterBuilder(catalogue).rating(4.0, 9).sort("rating").execute()

    assert ids(result.items) == ["r5", "r2", "r1"]
    assert result.filters.maxRating == 5
    assert ("not.is", "avg_rating", "null") in catalogue.executed[-1].calls


def test_city_and_active_only(catalogue):
    result = RestaurantFilterBuilder(catalogue).city("barcel").active_only(True).sort("name", "asc").execute()

    assert ids(result.items) == ["r4", "r1", "r2"]
    assert result.count == 3


def test_cuisines_any_vs_all(catalogue):
    any_of = RestaurantFilterBuilder(catalogue).cuisines(["Sushi", "Pizza"]).sort("name", "asc").execute()
    all_of = RestaurantFilterBuilder(catalogue).cuisines(None, ["Italian", "Pizza"]).execute()

    assert ids(any_of.items) == ["r5", "r1", "r2"]
    assert ids(all_of.items) == ["r1"]


def test_price_drops_unknown_tags(catalogue):
    result = RestaurantFilterBuilder(catalogue).price(["$", "cheap"]).execute()

    assert ids(result.items) == ["r3"]
    assert result.filters.priceTags == ["$"]


def test_price_with_unknown_includes_null_and_blank(catalogue):
    result = RestaurantFilterBuilder(catalogue).price(["$$$$", "(Unknown)"]).sort("name", "asc").execute()

    assert ids(result.items) == ["r4", "r5", "r2"]
    assert result.filters.includeUnknownPrice is True


def test_unknown_price_clause():
    assert unknown_price_clause([]) == "price_tag.is.null,price_tag.eq."
    assert unknown_price_clause(["$", "$$ - $$$"]) == 'price_tag.is.null,price_tag.eq.,price_tag.in.("$","$$ - $$$")'


def test_pagination_clamps_and_reports_has_more(catalogue):
    first = RestaurantFilterBuilder(catalogue).sort("name", "asc").paginate(2, -5).execute()
    huge = RestaurantFilterBuilder(catalogue).paginate(1000, 0).execute()

    assert ids(first.items) == ["r4", "r5"]
    assert first.pagination.offset == 0
    assert first.pagination.hasMore is True
    assert huge.pagination.limit == 100
    assert huge.pagination.hasMore is False


def test_random_sort_overfetches_then_trims(catalogue):
    result = RestaurantFilterBuilder(catalogue).sort("random").paginate(2, 0).execute()

    assert len(result.items) == 2
    assert ("range", 0, 7) in catalogue.executed[-1].calls


def test_list_route_with_query_params(api, catalogue):
    response = api.get("/api/restaurants", params={
        "city": "Barcelona", "cuisineAny": ["Pizza", "Sushi"], "sortBy": "reviews", "limit": 10,
    })

    body = response.json()
    assert response.status_code == 200
    assert ids(body["data"]) == ["r1", "r2"]
    assert body["meta"] == {"total": 2, "limit": 10, "offset": 0, "hasMore": False, "query": None}
    assert body["filters"]["cuisinesAny"] == ["Pizza", "Sushi"]


def test_list_route_with_json_body(api, catalogue):
    response = api.post("/api/restaurants", json={
        "filters": {"minRating": 4.7, "activeOnly": False},
        "pagination": {"limit": 5},
    })

    assert ids(response.json()["data"]) == ["r5", "r2"]


def test_search_requires_query(api, catalogue):
    get = api.get("/api/restaurants/search")
    post = api.post("/api/restaurants/search", json={"query": " "})

    assert get.status_code == 422
    assert get.json()["code"] == "MISSING_SEARCH_QUERY"
    assert post.status_code == 422


def test_search_by_name(api, catalogue):
    body = api.get("/api/restaurants/search", params={"q": "pizz"}).json()

    assert ids(body["data"]) == ["r1"]
    assert body["meta"]["query"] == "pizz"
    assert body["meta"]["limit"] == 20


def test_meta_routes(api, fake):
    fake.rpc_handlers["list_cuisines"] = lambda params: [{"cuisine": "Italian"}, {"cuisine": "Thai"}]
    fake.rpc_handlers["list_price_tags"] = lambda params: ["$", "$$$$"]

    assert api.get("/api/restaurants/meta/cuisines").json() == {"items": ["Italian", "Thai"]}
    assert api.get("/api/restaurants/meta/price-tags").json() == {"items": ["$", "$$$$"]}


def test_rating_filter_swaps_inverted_bounds(api, catalogue):
    body = api.get("/api/restaurants/filter/rating", params={"min": 7, "max": 4.7}).json()

    assert body["min"] == 4.7
    assert body["max"] == 5
    assert ids(body["items"]) == ["r2"]


def test_price_filter_route(api, catalogue):
    body = api.get("/api/restaurants/filter/price", params={"tag": "$", "tags": "$$$$, bogus"}).json()

    assert ids(body["items"]) == ["r2", "r3"]
    assert body["tags"] == ["$", "$$$$", "bogus"]


def test_random_route_clamps_limit(api, fake):
    fake.rpc_handlers["get_random_restaurants"] = lambda params: [{"id": "r1"}] * params["p_limit"]

    body = api.get("/api/restaurants/filter/random", params={"limit": 500}).json()
    default = api.get("/api/restaurants/filter/random").json()

    assert body["limit"] == 100
    assert default["limit"] == 10
    assert fake.rpc_calls[0] == ("get_random_restaurants", {"p_limit": 100})


def test_filter_search_uses_radius_rpc(api, fake):
    fake.rpc_handlers["search_restaurants_by_radius"] = lambda params: [{"id": "near"}]

    body = api.post("/api/restaurants/filter/search", json={
        "filters": {"center_lat": 41.39, "center_lng": 2.17, "radius_km": 2},
    }).json()

    assert body == {"items": [{"id": "near"}], "count": 1}
    name, params = fake.rpc_calls[0]
    assert name == "search_restaurants_by_radius"
    assert params["p_radius_km"] == 2
    assert params["p_limit"] == 12


def test_filter_search_without_radius_is_plain_query(api, catalogue):
    body = api.post("/api/restaurants/filter/search", json={
        "filters": {"city": "Madrid", "radius_km": 0},
    }).json()

    assert ids(body["items"]) == ["r3"]
    assert catalogue.rpc_calls == []
