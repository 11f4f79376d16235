from farmstand.catalogue.product import Product
from farmstand.catalogue.stock import (
    StockPool,
    check_availability,
    check_cart_availability,
    effective_stock,
    stock_constraints,
)


def _product(stock=None, variants_config=None):
    return Product.create(title="Heirloom tomatoes", price=800, stock=stock, variants_config=variants_config)


def _individual(shared_stock=None, options=None, type_id="size"):
    return {
        "id": type_id,
        "name": type_id.title(),
        "stockManagement": "individual",
        "sharedStock": shared_stock,
        "options": options or [],
    }


class TestEffectiveStock:
    def test_product_without_variants_uses_base_stock(self):
        assert effective_stock(_product(stock=5)) == 5

    def test_selected_options_are_ignored_without_variants(self):
        assert effective_stock(_product(stock=5), {"size": "s", "colour": "red"}) == 5

    def test_untracked_product_is_unlimited(self):
        assert effective_stock(_product(stock=None)) is None

    def test_shared_pool_wins_over_option_stock(self):
        product = _product(
            stock=100,
            variants_config=[_individual(shared_stock=4, options=[{"id": "s", "value": "S", "stock": 50}])],
        )

        assert effective_stock(product, {"size": "s"}) == 4

    def test_option_stock_bounds_the_selection(self):
        product = _product(
            stock=100,
            variants_config=[
                _individual(
                    options=[
                        {"id": "s", "value": "S", "stock": 3},
                        {"id": "m", "value": "M", "stock": 0},
                        {"id": "l", "value": "L", "stock": None},
                    ]
                )
            ],
        )

        assert effective_stock(product, {"size": "s"}) == 3
        assert effective_stock(product, {"size": "m"}) == 0

    def test_untracked_option_falls_back_to_base_stock(self):
        product = _product(
            stock=7,
            variants_config=[_individual(options=[{"id": "l", "value": "L", "stock": None}])],
        )

        assert effective_stock(product, {"size": "l"}) == 7

    def test_minimum_across_selected_types(self):
        product = _product(
            stock=100,
            variants_config=[
                _individual(type_id="size", options=[{"id": "s", "value": "S", "stock": 9}]),
                _individual(type_id="colour", shared_stock=2, options=[{"id": "red", "value": "Red"}]),
            ],
        )

        assert effective_stock(product, {"size": "s", "colour": "red"}) == 2

    def test_non_individual_types_contribute_nothing(self):
        product = _product(
            stock=6,
            variants_config=[
                {
                    "id": "wrap",
                    "name": "Wrapping",
                    "stockManagement": "none",
                    "options": [{"id": "gift", "value": "Gift", "stock": 1}],
                }
            ],
        )

        assert effective_stock(product, {"wrap": "gift"}) == 6

    def test_unselected_types_are_ignored(self):
        product = _product(
            stock=8,
            variants_config=[_individual(options=[{"id": "s", "value": "S", "stock": 1}])],
        )

        assert effective_stock(product, {}) == 8


class TestStockConstraints:
    def test_constraints_name_their_pool(self):
        product = _product(
            stock=10,
            variants_config=[
                _individual(type_id="size", options=[{"id": "s", "value": "S", "stock": 3}]),
                _individual(type_id="colour", shared_stock=5, options=[{"id": "red", "value": "Red"}]),
            ],
        )

        constraints = stock_constraints(product, {"size": "s", "colour": "red"})

        assert {(c.pool, c.stock) for c in constraints} == {(StockPool.OPTION, 3), (StockPool.SHARED, 5)}

    def test_base_constraint_only_when_nothing_else_applies(self):
        constraints = stock_constraints(_product(stock=4), None)

        assert [(c.pool, c.stock) for c in constraints] == [(StockPool.BASE, 4)]


class TestCheckAvailability:
    def test_untracked_is_always_available(self):
        result = check_availability(_product(stock=None), None, 999)

        assert result.available is True
        assert result.available_stock is None
        assert result.available_quantity is None

    def test_request_within_remaining_stock(self):
        result = check_availability(_product(stock=5), None, 2, current_cart_qty=3)

        assert result.available is True
        assert result.available_quantity == 2

    def test_request_beyond_remaining_stock(self):
        result = check_availability(_product(stock=5), None, 3, current_cart_qty=3)

        assert result.available is False
        assert result.available_quantity == 2
        assert result.message == "Only 2 more can be purchased"

    def test_two_in_cart_of_three_leaves_one(self):
        result = check_availability(_product(stock=3), None, 2, current_cart_qty=2)

        assert result.available is False
        assert result.available_quantity == 1

    def test_zero_stock_is_out_of_stock(self):
        result = check_availability(_product(stock=0), None, 1)

        assert result.available is False
        assert result.available_stock == 0
        assert result.message == "Out of stock"


def _polish(stock=3, shared_stock=None, stock_management="none"):
    return _product(
        stock=stock,
        variants_config=[
            {
                "id": "polish",
                "name": "Polish",
                "stockManagement": stock_management,
                "sharedStock": shared_stock,
                "options": [{"id": "white", "value": "White"}, {"id": "brown", "value": "Brown"}],
            }
        ],
    )


class TestCheckCartAvailability:
    def test_different_selections_share_base_stock(self):
        product = _polish(stock=3)

        result = check_cart_availability(product, {"polish": "brown"}, 2, held=[({"polish": "white"}, 2)])

        assert result.available is False
        assert result.available_quantity == 1
        assert result.message == "Only 1 more can be purchased"

    def test_different_options_share_one_pool(self):
        product = _polish(stock=100, shared_stock=4, stock_management="individual")

        result = check_cart_availability(product, {"polish": "brown"}, 2, held=[({"polish": "white"}, 3)])

        assert result.available is False
        assert result.available_quantity == 1

    def test_separate_option_counters_do_not_interfere(self):
        product = _product(
            stock=100,
            variants_config=[
                _individual(
                    options=[
                        {"id": "s", "value": "S", "stock": 2},
                        {"id": "m", "value": "M", "stock": 2},
                    ]
                )
            ],
        )

        result = check_cart_availability(product, {"size": "m"}, 2, held=[({"size": "s"}, 2)])

        assert result.available is True
        assert result.available_quantity == 2

    def test_untracked_selection_ignores_held_lines(self):
        result = check_cart_availability(_product(stock=None), None, 50, held=[(None, 50)])

        assert result.available is True
        assert result.available_quantity is None
