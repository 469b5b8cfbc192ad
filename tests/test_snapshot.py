"""
tests/test_snapshot.py

Offline parsing of saved HTML with the same classification and item rules.
"""
from menuscraper.parse import parse_html_snapshot


SNAPSHOT = """
<html>
  <body>
    <section class="favourites">
      <h2>Obľúbené jedlá</h2>
      <ul>
        <li>Burger s hranolkami 11,90 € hovädzie mäso</li>
      </ul>
    </section>
    <section class="today">
      <h2>Denné menu streda</h2>
      <span>3 položiek</span>
      <ul>
        <li>Polievka 1: Gulášová polievka 2,50 € s chlebom</li>
        <li>Menu 1: Vyprážaný rezeň so zemiakmi 7,90 €</li>
        <li>Zobraz viac</li>
      </ul>
    </section>
  </body>
</html>
"""

DIV_SNAPSHOT = """
<html>
  <body>
    <div id="page">
      <div class="popular"><h3>Populárne</h3><ul><li>Pizza quattro formaggi 9,50 €</li></ul></div>
      <div class="daily">
        <h3>Daily menu Friday</h3>
        <ul><li>Menu 2: Grilled salmon, od 12,90 € vegetables</li></ul>
      </div>
    </div>
  </body>
</html>
"""


def test_snapshot_skips_excluded_sections():
    items = parse_html_snapshot(SNAPSHOT, source_step=1)

    assert [item.name for item in items] == ["Gulášová polievka", "Vyprážaný rezeň so zemiakmi"]
    assert {item.category for item in items} == {"Denné menu streda"}
    assert {item.source_step for item in items} == {1}


def test_wrapper_with_excluded_content_is_skipped():
    items = parse_html_snapshot(DIV_SNAPSHOT)

    assert len(items) == 1
    assert items[0].name == "Grilled salmon"
    assert items[0].price == "od 12,90 €"
    assert items[0].description == "vegetables"
    assert items[0].category == "Daily menu"


def test_snapshot_without_daily_menu():
    assert parse_html_snapshot("<html><body><main>Stála ponuka</main></body></html>") == []
