"""
tests/test_classify.py

Section classifier: exclusion precedence, inclusion patterns, first-match
selection order and viewport geometry.
"""
import asyncio

import pytest

from conftest import FakeElement, FakePage, menu_section
from menuscraper.classify import SectionClassifier, is_daily_menu_text, is_in_viewport


class TestTextPredicate:
    @pytest.mark.parametrize("text", [
        "Denné menu pondelok 11:00 - 14:00",
        "DENNÉ MENU ŠTVRTOK",
        "Daily menu Friday: soup and main",
        "Denne menu streda",
        "Denné menu 5 položiek",
    ])
    def test_daily_menu_text_accepted(self, text):
        assert is_daily_menu_text(text)

    @pytest.mark.parametrize("text", [
        "",
        None,
        "Denné menu",                       # generic phrase without weekday or count
        "Our menu for Monday",
        "Menu 5 položiek",
    ])
    def test_other_text_rejected(self, text):
        assert not is_daily_menu_text(text)

    def test_exclusion_wins_over_inclusion(self):
        assert not is_daily_menu_text("Obľúbené Denné menu Monday")
        assert not is_daily_menu_text("Denné menu pondelok | Popular dishes")
        assert not is_daily_menu_text("Hlavné jedlá · Denné menu 8 položiek")
        assert not is_daily_menu_text("Daily menu Tuesday and our Favorites")


class TestGeometry:
    def test_top_edge_inside_viewport(self):
        assert is_in_viewport({'y': 0, 'height': 10}, 1024)
        assert is_in_viewport({'y': 1024, 'height': 10}, 1024)

    def test_top_edge_outside_viewport(self):
        assert not is_in_viewport({'y': -1, 'height': 500}, 1024)
        assert not is_in_viewport({'y': 1025, 'height': 10}, 1024)
        assert not is_in_viewport(None, 1024)


class TestLocate:
    def test_first_match_in_selector_order(self, config):
        section_match = menu_section(top=2000, heading="Denné menu piatok")
        div_match = menu_section(top=100, heading="Denné menu piatok")
        page = FakePage(sections={'section': [section_match], 'div': [div_match]})

        element, _ = asyncio.run(SectionClassifier(config).locate(page))
        assert element is section_match

    def test_excluded_section_is_skipped(self, config):
        decoy = FakeElement("Obľúbené jedlá · Denné menu pondelok 7,90 €")
        real = menu_section(heading="Denné menu pondelok")
        page = FakePage(sections={'div': [decoy, real]})

        element, text = asyncio.run(SectionClassifier(config).locate(page))
        assert element is real
        assert "Obľúbené" not in text

    def test_miss_returns_none(self, config):
        page = FakePage(sections={'div': [FakeElement("Stála ponuka 9,90 €")]})
        assert asyncio.run(SectionClassifier(config).locate(page)) is None

    def test_same_dom_same_scroll_same_answer(self, config):
        page = FakePage(sections={'div': [FakeElement("Kontakt"), menu_section()]})
        classifier = SectionClassifier(config)

        first = asyncio.run(classifier.inspect(page, 1, 1024))
        second = asyncio.run(classifier.inspect(page, 1, 1024))
        assert first.element is second.element
        assert first.item_texts == second.item_texts
        assert first.visible_items == second.visible_items


class TestInspect:
    def test_visible_section_counts_priced_items(self, config):
        section = menu_section(top=100, items=[
            ("Polievka 1: Gulášová polievka 2,50 € s chlebom", 160),
            ("Menu 1: Vyprážaný rezeň so zemiakmi 7,90 €", 220),
            ("Menu 2: Bryndzové halušky 6,90 € so slaninou", 1500),  # below the fold
        ])
        page = FakePage(sections={'section': [section]})

        candidate = asyncio.run(SectionClassifier(config).inspect(page, 1, 1024))

        assert candidate.visible
        assert candidate.total_items == 3
        assert candidate.visible_items == 2
        assert len(candidate.item_texts) == 2
        assert candidate.step == 1

    def test_offscreen_section_still_yields_visible_items(self, config):
        # Section starts above the viewport but its later entries are on screen
        section = menu_section(top=0, items=[
            ("Polievka 1: Gulášová polievka 2,50 € s chlebom", 60),
            ("Menu 1: Vyprážaný rezeň so zemiakmi 7,90 €", 1200),
        ])
        page = FakePage(sections={'section': [section]})
        page.scroll_y = 1024

        candidate = asyncio.run(SectionClassifier(config).inspect(page, 2, 1024))

        assert not candidate.visible
        assert candidate.visible_items == 0
        assert candidate.item_texts == ["Menu 1: Vyprážaný rezeň so zemiakmi 7,90 €"]

    def test_flat_entries_are_not_parsed(self, config):
        section = menu_section(top=100, items=[("Menu 1: Vyprážaný rezeň 7,90 €", 160)])
        section.children[0].height = 5
        page = FakePage(sections={'section': [section]})

        candidate = asyncio.run(SectionClassifier(config).inspect(page, 1, 1024))
        assert candidate.item_texts == []
