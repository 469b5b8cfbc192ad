"""
tests/test_models.py
"""
import pytest
from pydantic import ValidationError

from menuscraper.models import ConsentStep, MenuItem, RunState, Site, SiteExtractionResult


class TestMenuItem:
    def test_defaults(self):
        item = MenuItem(name="Goulash")
        assert item.price == "N/A"
        assert item.category == "Daily Menu"
        assert item.source_step == 0

    @pytest.mark.parametrize("price", ["3,50 €", "od 5,20 €", "N/A"])
    def test_valid_prices(self, price):
        assert MenuItem(name="Goulash", price=price).price == price

    @pytest.mark.parametrize("price", ["3.50 €", "3,5 €", "€3,50", "od3,50 €", ""])
    def test_malformed_prices(self, price):
        with pytest.raises(ValidationError):
            MenuItem(name="Goulash", price=price)

    @pytest.mark.parametrize("name", ["Pho", "", "Soup 3,50 €"])
    def test_invalid_names(self, name):
        with pytest.raises(ValidationError):
            MenuItem(name=name)

    def test_frozen(self):
        item = MenuItem(name="Goulash")
        with pytest.raises(ValidationError):
            item.name = "Schnitzel"


class TestSite:
    def test_name_is_stripped(self):
        assert Site(name="  Bistro ", url="https://example.com").name == "Bistro"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Site(name="   ", url="https://example.com")


class TestConsentStep:
    @pytest.mark.parametrize("kwargs", [
        {"action": "click"},
        {"action": "wait"},
        {"action": "wait", "ms": -1},
        {"action": "scroll"},
        {"action": "hover", "selector": "#x"},
    ])
    def test_missing_arguments_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ConsentStep(**kwargs)

    def test_scroll_to_top_is_valid(self):
        assert ConsentStep(action="scroll", y=0).y == 0


class TestSiteExtractionResult:
    def test_failed_result_shape(self):
        result = SiteExtractionResult(site="Bistro", url="https://example.com", success=False, error="boom")
        assert result.items == []
        assert result.item_count == 0
        assert result.screenshot_path is None

    def test_to_dict_is_json_ready(self):
        result = SiteExtractionResult(
            site="Bistro",
            url="https://example.com",
            success=True,
            items=[MenuItem(name="Goulash", price="3,50 €")],
            screenshot_paths=["a-step1.png", "a.png"],
        )
        data = result.to_dict()

        assert data["item_count"] == 1
        assert isinstance(data["scraped_at"], str)
        assert data["items"][0]["price"] == "3,50 €"
        assert result.screenshot_path == "a.png"


def test_run_state_values():
    assert RunState.RUNNING.value == "running"
    assert RunState("completed") is RunState.COMPLETED
