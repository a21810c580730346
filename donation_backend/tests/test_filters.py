from datetime import datetime, timedelta, timezone

from src.api.filters import DonationFilter, apply_filter
from src.api.models import DonationStatus, FoodType

T = datetime(2025, 6, 1, 8, 0, 0, tzinfo=timezone.utc)


def listing(donation_id, hours, title="Meal", description="", address="", food_type=FoodType.VEG,
            status=DonationStatus.PENDING):
    return {
        "id": donation_id,
        "title": title,
        "description": description,
        "location": {"lat": 0.0, "lng": 0.0, "address": address},
        "food_type": food_type,
        "status": status,
        "expiry": T + timedelta(hours=hours),
    }


def ids(items):
    return [d["id"] for d in items]


class TestSorting:
    def test_sorted_by_expiry_ascending(self):
        items = [listing("a", 12), listing("b", 24), listing("c", 6)]
        assert ids(apply_filter(items)) == ["c", "a", "b"]

    def test_ties_keep_input_order(self):
        items = [listing("x", 5), listing("y", 1), listing("z", 5)]
        assert ids(apply_filter(items)) == ["y", "x", "z"]

    def test_input_is_not_mutated(self):
        items = [listing("a", 12), listing("b", 6)]
        apply_filter(items, DonationFilter(query="meal"))
        assert ids(items) == ["a", "b"]

    def test_idempotent(self):
        items = [listing("a", 3, title="Rice"), listing("b", 1, title="Rice bowl"), listing("c", 2, title="Bread")]
        flt = DonationFilter(query="rice")
        first = apply_filter(items, flt)
        assert apply_filter(items, flt) == first
        assert apply_filter(first, flt) == first


class TestMatching:
    def setup_method(self):
        self.items = [
            listing("1", 24, title="Fresh Vegetables", description="Tomatoes and carrots", address="123 Main St"),
            listing("2", 12, title="Leftover Pasta", description="Packaged", address="456 Park Ave"),
            listing("3", 36, title="Chicken Curry", description="Spicy", address="789 Broadway",
                    food_type=FoodType.NON_VEG),
            listing("4", 6, title="Bread", description="End of day", address="1 Park Lane",
                    status=DonationStatus.ACCEPTED),
        ]

    def test_query_matches_title_case_insensitively(self):
        assert ids(apply_filter(self.items, DonationFilter(query="PASTA"))) == ["2"]

    def test_query_matches_description(self):
        assert ids(apply_filter(self.items, DonationFilter(query="carrot"))) == ["1"]

    def test_query_matches_address(self):
        assert ids(apply_filter(self.items, DonationFilter(query="park"))) == ["4", "2"]

    def test_food_type(self):
        assert ids(apply_filter(self.items, DonationFilter(food_type=FoodType.NON_VEG))) == ["3"]
        assert ids(apply_filter(self.items, DonationFilter(food_type=FoodType.VEG))) == ["4", "2", "1"]

    def test_veg_only(self):
        assert ids(apply_filter(self.items, DonationFilter(veg_only=True))) == ["4", "2", "1"]

    def test_non_veg_and_veg_only_match_nothing(self):
        flt = DonationFilter(food_type=FoodType.NON_VEG, veg_only=True)
        assert apply_filter(self.items, flt) == []

    def test_available_only(self):
        assert ids(apply_filter(self.items, DonationFilter(available_only=True))) == ["2", "1", "3"]

    def test_distance_has_no_effect(self):
        near = apply_filter(self.items, DonationFilter(max_distance_km=0))
        far = apply_filter(self.items, DonationFilter(max_distance_km=500))
        assert ids(near) == ids(far) == ["4", "2", "1", "3"]

    def test_combined(self):
        flt = DonationFilter(query="park", available_only=True, veg_only=True)
        assert ids(apply_filter(self.items, flt)) == ["2"]
