import pytest

from scraper_service.core.errors import StorageUnavailableError, UnknownSourceError
from scraper_service.core.models import NormalizedProperty
from scraper_service.core.persistence import upsert_properties, upsert_properties_detailed
from scraper_service.core.validation import validate
from scraper_service.tests.fakes import FakeRepo

BASE = "https://www.leggett-immo.com/acheter-vendre-une-maison/view"


def _props(price_a=300000, price_b=180000):
    props = [
        NormalizedProperty(source="leggett", url=f"{BASE}/A111/maison-bergerac", price=price_a, rooms=5),
        NormalizedProperty(source="leggett", url=f"{BASE}/B222/maison-eymet", price=price_b, rooms=4),
    ]
    for prop in props:
        prop.validation = validate(prop)
    return props


def test_upsert_twice_keeps_one_row_per_listing():
    repo = FakeRepo()

    assert upsert_properties(repo, _props(), "leggett") == 2
    first_ids = {key: row["id"] for key, row in repo.rows.items()}
    assert upsert_properties(repo, _props(), "leggett") == 2

    assert len(repo.rows) == 2
    assert {key: row["id"] for key, row in repo.rows.items()} == first_ids
    assert set(first_ids) == {("properties", "leggett", "A111"), ("properties", "leggett", "B222")}


def test_upsert_updates_changed_fields():
    repo = FakeRepo()
    upsert_properties(repo, _props(), "leggett")

    changed = _props(price_a=280000)
    changed[0].title = "Maison rénovée"
    result = upsert_properties_detailed(repo, changed, "leggett")

    row = repo.rows[("properties", "leggett", "A111")]
    assert row["title"] == "Maison rénovée"
    assert row["price"] == 280000
    assert row["previous_price"] == 300000
    assert row["price_drop_amount"] == -20000
    assert "price_changed_at" in row
    assert result.price_drops == 1
    assert "previous_price" not in repo.rows[("properties", "leggett", "B222")]


def test_failed_record_is_counted_and_batch_continues():
    repo = FakeRepo(fail_source_ids={"A111"})

    result = upsert_properties_detailed(repo, _props(), "leggett")

    assert result.written == 1
    assert result.failed == 1
    assert list(repo.rows) == [("properties", "leggett", "B222")]


def test_unreachable_store_aborts():
    with pytest.raises(StorageUnavailableError):
        upsert_properties(FakeRepo(unavailable=True), _props(), "leggett")


def test_unknown_source_is_rejected_before_any_write():
    repo = FakeRepo()
    with pytest.raises(UnknownSourceError) as excinfo:
        upsert_properties(repo, _props(), "seloger")
    assert isinstance(excinfo.value, ValueError)
    assert repo.writes == []


def test_source_id_and_quality_columns_are_written():
    repo = FakeRepo()
    prop = NormalizedProperty(
        source="cadimmo",
        url="https://cad-immo.com/fr/propriete/vente+maison+bergerac+7781",
        price=1000,
    )
    prop.validation = validate(prop)

    upsert_properties(repo, [prop], "cadimmo")

    row = repo.writes[0]
    assert row["source_id"] == "7781"
    assert row["data_quality_score"] == 0.8
    assert row["validation_errors"] == ["Invalid price range"]
    assert prop.source_id == "7781"


def test_empty_batch_writes_nothing():
    repo = FakeRepo()
    assert upsert_properties(repo, [], "cadimmo") == 0
    assert repo.writes == []


def test_new_sources_take_listing_code_from_url():
    repo = FakeRepo()
    records = {
        "eleonor": "https://www.agence-eleonor.fr/fr/vente/maison-issigeac-24560,VM17325",
        "beauxvillages": "https://beauxvillages.com/fr/property/12345-BVI67890",
        "cyrano": "https://www.cyranoimmobilier.com/vente/dordogne/bergerac/101-maison/?utm_source=list",
    }

    for source, url in records.items():
        upsert_properties(repo, [NormalizedProperty(source=source, url=url, price=250000)], source)

    assert [row["source_id"] for row in repo.writes] == ["VM17325", "BVI67890", "101"]
