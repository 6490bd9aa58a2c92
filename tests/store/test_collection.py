"""Tests for constant collections.

Tests cover:
- data(): insertion, validation, duplicates, schema fixing, symbols
- load_data()/load()/reload(): data files, bad files, idempotence
- Read-only guard on records and collections
- Replay after the in-memory database is replaced
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from pathlib import Path

import pytest
from sqlalchemy.exc import CompileError, NoSuchTableError

from constant_record.catalog import Catalog
from constant_record.core.errors import (
    BadDataFileError,
    DuplicateKeyError,
    ErrorCode,
    InvalidInputError,
    ReadOnlyError,
    RecordNotFoundError,
)
from constant_record.store.collection import Collection, CollectionState
from constant_record.store.schema import ColumnType


class TestData:
    """Defining records inline."""

    def test_distinct_keys_each_add_one_row(self, catalog: Catalog) -> None:
        """Every data() call with a new key adds exactly one retrievable row."""
        authors = catalog.collection("authors")

        authors.data({"id": 1, "name": "One"})
        assert authors.count() == 1
        authors.data({"id": 3, "name": "Three"})
        assert authors.count() == 2
        authors.data({"id": 2, "name": "Two"})
        assert authors.count() == 3

        assert authors.find(1).name == "One"
        assert authors.find(2).name == "Two"
        assert authors.find(3).name == "Three"

    def test_primary_key_taken_from_mapping(self, catalog: Catalog) -> None:
        """Keys are assigned explicitly, even out of order."""
        authors = catalog.collection("authors")
        authors.data({"id": 10, "name": "Ten"})
        authors.data({"id": 4, "name": "Four"})

        assert authors.find_by(name="Ten").id == 10
        assert [r.id for r in authors.all()] == [4, 10]

    def test_typed_values_round_trip(self, catalog: Catalog) -> None:
        """Dates, datetimes and decimals come back as the same values."""
        born = datetime(1970, 1, 2, 3, 4, 5)
        authors = catalog.collection("authors")
        authors.data({"id": 1, "name": "One", "birthday": born, "score": 2.5})

        author = authors.find(1)

        assert author.birthday == born
        assert author.score == 2.5
        assert authors.schema == {
            "name": ColumnType.STRING,
            "birthday": ColumnType.DATETIME,
            "score": ColumnType.DECIMAL,
        }

    def test_string_keys_accepted(self, catalog: Catalog) -> None:
        """Caller-supplied scalar keys other than integers work too."""
        states = catalog.collection("states")
        states.data({"id": "CA", "name": "California"})
        states.data({"id": "NY", "name": "New York"})

        assert states.find("NY").name == "New York"
        assert states.symbol("CALIFORNIA") == "CA"

    def test_custom_primary_key(self, catalog: Catalog) -> None:
        states = catalog.collection("us_states", primary_key="code")
        states.data({"code": "WA", "name": "Washington"})

        assert states.find("WA").name == "Washington"
        assert "code" not in states.schema

    def test_returns_persisted_record(self, catalog: Catalog) -> None:
        record = catalog.collection("authors").data({"id": 1, "name": "One"})

        assert record.id == 1
        assert record.readonly is True

    def test_caller_mapping_copied(self, catalog: Catalog) -> None:
        """Later changes to the caller's dict do not leak into replays."""
        attributes = {"id": 1, "name": "One"}
        authors = catalog.collection("authors")
        authors.data(attributes)

        attributes["name"] = "Changed"
        authors.reload()

        assert authors.find(1).name == "One"


class TestInvalidInput:
    """Validation of attribute mappings."""

    @pytest.mark.parametrize("attributes", [[("id", 1)], "id=1", None, 5, {}])
    def test_non_mapping_rejected(self, catalog: Catalog, attributes: object) -> None:
        authors = catalog.collection("authors")

        with pytest.raises(InvalidInputError) as exc_info:
            authors.data(attributes)  # type: ignore[arg-type]

        assert exc_info.value.code is ErrorCode.INVALID_INPUT
        assert authors.count() == 0

    @pytest.mark.parametrize("attributes", [{"name": "x"}, {"id": None, "name": "x"}])
    def test_missing_primary_key_rejected(
        self, catalog: Catalog, attributes: dict[str, object]
    ) -> None:
        authors = catalog.collection("authors")

        with pytest.raises(InvalidInputError) as exc_info:
            authors.data(attributes)

        assert exc_info.value.code is ErrorCode.MISSING_PRIMARY_KEY
        assert "id" in str(exc_info.value)

    def test_invalid_input_is_value_error(self, catalog: Catalog) -> None:
        with pytest.raises(ValueError):
            catalog.collection("authors").data({"name": "nameless"})

    def test_non_scalar_primary_key_rejected_before_storage(self, catalog: Catalog) -> None:
        """A rejected first record leaves no schema behind."""
        genres = catalog.collection("genres")

        with pytest.raises(InvalidInputError) as exc_info:
            genres.data({"id": [1, 2], "label": "bad"})

        assert exc_info.value.code is ErrorCode.INVALID_INPUT
        assert genres.state is CollectionState.EMPTY
        assert genres.schema == {}
        genres.data({"id": 1, "name": "Rock"})
        assert genres.schema == {"name": ColumnType.STRING}
        assert genres.find(1).name == "Rock"


class TestFailedInsert:
    """A data() call whose insert fails has no lasting effect."""

    def test_failed_first_insert_discards_relation(
        self, catalog: Catalog, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        genres = catalog.collection("genres")

        def _fail(*_args: object, **_kwargs: object) -> None:
            raise RuntimeError("insert failed")

        monkeypatch.setattr(catalog.engine, "insert", _fail)
        with pytest.raises(RuntimeError):
            genres.data({"id": 1, "label": "bad"})
        monkeypatch.undo()

        assert genres.state is CollectionState.EMPTY
        assert genres.schema == {}
        assert catalog.engine.has_table("genres") is False
        genres.data({"id": 1, "name": "Rock"})
        assert genres.count() == 1
        assert genres.symbol("ROCK") == 1

    def test_failed_later_insert_keeps_relation(
        self, catalog: Catalog, genres: Collection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def _fail(*_args: object, **_kwargs: object) -> None:
            raise RuntimeError("insert failed")

        monkeypatch.setattr(catalog.engine, "insert", _fail)
        with pytest.raises(RuntimeError):
            genres.data({"id": 4, "name": "Jazz", "slug": "jazz"})
        monkeypatch.undo()

        assert genres.count() == 3
        assert "JAZZ" not in genres.symbols
        assert genres.data({"id": 4, "name": "Jazz", "slug": "jazz"}).key == 4


class TestDuplicates:
    """Identity guard."""

    def test_duplicate_key_rejected_and_count_unchanged(self, genres: Collection) -> None:
        with pytest.raises(DuplicateKeyError) as exc_info:
            genres.data({"id": 3, "name": "Three"})

        assert genres.count() == 3
        assert genres.find(3).name == "Pop"
        details = exc_info.value.details
        assert details["old"]["name"] == "Pop"
        assert details["new"]["name"] == "Three"
        assert "Pop" in exc_info.value.message
        assert "Three" in exc_info.value.message

    def test_duplicate_does_not_rebind_symbol(self, genres: Collection) -> None:
        with pytest.raises(DuplicateKeyError):
            genres.data({"id": 2, "name": "Jazz"})

        assert "JAZZ" not in genres.symbols

    def test_duplicate_within_data_file_rejected(self, catalog: Catalog, data_dir: Path) -> None:
        numbers = catalog.collection("numbers")

        with pytest.raises(DuplicateKeyError):
            numbers.load_data(data_dir / "duplicates.yml")

        assert numbers.loaded is False


class TestSchema:
    """The first record fixes the schema."""

    def test_extra_column_on_later_record_fails(self, genres: Collection) -> None:
        with pytest.raises(CompileError):
            genres.data({"id": 4, "name": "Jazz", "slug": "jazz", "decade": 1920})

        assert genres.count() == 3
        assert "JAZZ" not in genres.symbols

    def test_missing_column_on_later_record_is_null(self, genres: Collection) -> None:
        genres.data({"id": 4, "name": "Jazz"})

        assert genres.find(4).slug is None

    def test_schema_not_refined_by_later_records(self, catalog: Catalog) -> None:
        things = catalog.collection("things")
        things.data({"id": 1, "name": "a", "size": None})
        things.data({"id": 2, "name": "b", "size": 4})

        assert things.schema["size"] is ColumnType.STRING


class TestSymbols:
    """Symbol bindings derived from names."""

    def test_genre_symbols(self, genres: Collection) -> None:
        assert dict(genres.symbols) == {"ROCK": 1, "HIP_HOP": 2, "POP": 3}
        assert genres.symbol("HIP_HOP") == 2

    def test_complex_names(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.data({"id": 3, "name": "Simple Value"})
        publishers.data({"id": 4, "name": " 2 Non-Fiction, Bestsellers! "})

        assert publishers.symbol("SIMPLE_VALUE") == 3
        assert publishers.symbol("NON_FICTION_BESTSELLERS") == 4

    def test_first_write_wins(self, catalog: Catalog) -> None:
        genres = catalog.collection("genres")
        genres.data({"id": 1, "name": "Hip-Hop"})
        genres.data({"id": 2, "name": "hip hop"})

        assert genres.symbol("HIP_HOP") == 1
        assert genres.count() == 2

    def test_no_name_column_no_symbols(self, catalog: Catalog) -> None:
        sizes = catalog.collection("sizes")
        sizes.data({"id": 1, "label": "Small"})

        assert len(sizes.symbols) == 0

    def test_empty_name_not_bound(self, catalog: Catalog) -> None:
        tags = catalog.collection("tags")
        tags.data({"id": 1, "name": ""})
        tags.data({"id": 2, "name": None})

        assert len(tags.symbols) == 0

    def test_custom_name_column(self, catalog: Catalog) -> None:
        sizes = catalog.collection("sizes", name_column="label")
        sizes.data({"id": 1, "label": "Extra Large"})

        assert sizes.symbol("EXTRA_LARGE") == 1

    def test_unknown_symbol_raises_key_error(self, genres: Collection) -> None:
        with pytest.raises(KeyError):
            genres.symbol("JAZZ")


class TestLoadData:
    """Loading from structured files."""

    def test_default_data_file(self, catalog: Catalog, data_dir: Path) -> None:
        publishers = catalog.collection("publishers")

        assert publishers.data_file == data_dir / "publishers.yml"

    def test_load_default_file(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")

        publishers.load_data()

        assert publishers.count() == 3
        assert publishers.find(2).name == "Random House"
        assert publishers.find(7).founded == date(1939, 8, 1)
        assert publishers.loaded is True
        assert publishers.is_loaded() is True
        assert publishers.state is CollectionState.LOADED

    def test_load_explicit_json_file(self, catalog: Catalog, data_dir: Path) -> None:
        statuses = catalog.collection("workflow_statuses")

        statuses.load_data(data_dir / "statuses.json")

        assert statuses.count() == 3
        assert statuses.find_by(name="In Review").position == 2.5
        assert statuses.symbol("IN_REVIEW") == 2

    def test_missing_file_propagates(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")

        with pytest.raises(FileNotFoundError):
            publishers.load_data("nope.yml")

    @pytest.mark.parametrize("filename", ["empty.yml", "not_a_list.yml", "scalars.yml"])
    def test_bad_data_file(self, catalog: Catalog, data_dir: Path, filename: str) -> None:
        """Anything but a non-empty list of mappings is a bad data file."""
        publishers = catalog.collection("publishers")

        with pytest.raises(BadDataFileError) as exc_info:
            publishers.load_data(data_dir / filename)

        assert exc_info.value.code is ErrorCode.BAD_DATA_FILE
        assert exc_info.value.details["path"].endswith(filename)
        assert publishers.count() == 0
        assert publishers.is_loaded() is False

    def test_bad_file_keeps_previous_data(self, catalog: Catalog, data_dir: Path) -> None:
        publishers = catalog.collection("publishers")
        publishers.load_data()

        with pytest.raises(BadDataFileError):
            publishers.load_data(data_dir / "empty.yml")

        assert publishers.count() == 3

    def test_load_is_noop_when_loaded(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.load()
        publishers.data({"id": 23, "name": "Flop"})

        publishers.load()

        assert publishers.count() == 4

    def test_data_after_load_still_allowed(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.load_data()

        publishers.data({"id": 23, "name": "Flop"})

        assert publishers.count() == 4
        assert publishers.symbol("FLOP") == 23


class TestReload:
    """reload() rebuilds from the file or retained definitions."""

    def test_reload_file_twice_same_as_once(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.load_data()
        once = [r.to_dict() for r in publishers.all()]

        publishers.reload()
        publishers.reload()

        assert [r.to_dict() for r in publishers.all()] == once
        assert publishers.count() == 3

    def test_reload_file_discards_inline_additions(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.load_data()
        publishers.data({"id": 23, "name": "Flop"})

        publishers.reload()

        assert publishers.count() == 3
        assert "FLOP" not in publishers.symbols

    def test_reload_inline_collection_replays_definitions(self, genres: Collection) -> None:
        before = [r.to_dict() for r in genres.all()]

        genres.reload()
        genres.reload()

        assert [r.to_dict() for r in genres.all()] == before
        assert dict(genres.symbols) == {"ROCK": 1, "HIP_HOP": 2, "POP": 3}
        assert genres.is_loaded() is True


class TestReadOnly:
    """Read-only guard."""

    def test_record_is_readonly(self, genres: Collection) -> None:
        assert genres.find(1).readonly is True

    @pytest.mark.parametrize("operation", ["delete", "destroy", "save"])
    def test_record_mutations_rejected(self, genres: Collection, operation: str) -> None:
        record = genres.find(2)

        with pytest.raises(ReadOnlyError) as exc_info:
            getattr(record, operation)()

        assert exc_info.value.code is ErrorCode.READ_ONLY_RECORD
        assert genres.count() == 3

    def test_attribute_assignment_rejected(self, genres: Collection) -> None:
        record = genres.find(1)

        with pytest.raises(ReadOnlyError):
            record.name = "Metal"

        assert genres.find(1).name == "Rock"

    def test_record_update_rejected(self, genres: Collection) -> None:
        with pytest.raises(ReadOnlyError):
            genres.find(1).update(name="Metal")

    @pytest.mark.parametrize(
        ("operation", "args"),
        [
            ("update_all", ({"name": None},)),
            ("delete_all", ()),
            ("destroy_all", ()),
            ("delete", (1,)),
            ("destroy", ([1, 2],)),
        ],
    )
    def test_bulk_mutations_rejected(
        self, genres: Collection, operation: str, args: tuple[object, ...]
    ) -> None:
        with pytest.raises(ReadOnlyError) as exc_info:
            getattr(genres, operation)(*args)

        assert exc_info.value.details["operation"] == operation
        assert genres.count() == 3

    def test_guard_never_blocks_data(self, genres: Collection) -> None:
        with pytest.raises(ReadOnlyError):
            genres.delete_all()

        genres.data({"id": 4, "name": "Jazz", "slug": "jazz"})

        assert genres.count() == 4


class TestQueries:
    """Read API over the relation."""

    def test_find_missing_raises(self, genres: Collection) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            genres.find(99)

        assert isinstance(exc_info.value, LookupError)

    def test_where_and_where_in(self, genres: Collection) -> None:
        assert [g.slug for g in genres.where(name="Pop")] == ["pop"]
        assert [g.id for g in genres.where(id=[1, 2])] == [1, 2]
        assert [g.id for g in genres.where_in("slug", ["pop", "rock"])] == [1, 3]
        assert genres.where_in("id", []) == []

    def test_filter_with_expressions(self, genres: Collection) -> None:
        records = genres.filter(genres.c.name.like("%o%"))

        assert [g.name for g in records] == ["Rock", "Hip-Hop", "Pop"]

    def test_pluck_count_exists_first(self, genres: Collection) -> None:
        assert genres.pluck("slug") == ["rock", "hiphop", "pop"]
        assert genres.pluck("id", where={"slug": "pop"}) == [3]
        assert genres.count(slug="rock") == 1
        assert genres.exists(2) is True
        assert genres.exists(9) is False
        assert genres.first() == genres.find(1)

    def test_iteration_and_len(self, genres: Collection) -> None:
        assert len(genres) == 3
        assert [g.name for g in genres] == ["Rock", "Hip-Hop", "Pop"]

    def test_query_on_never_defined_collection_raises(self, catalog: Catalog) -> None:
        empty = catalog.collection("nothing")

        assert empty.count() == 0
        assert empty.state is CollectionState.EMPTY
        with pytest.raises(NoSuchTableError):
            empty.where(id=1)


class TestReplay:
    """Transparent rebuild after the storage handle changes."""

    def test_reset_then_query_replays(self, catalog: Catalog, genres: Collection) -> None:
        catalog.reset_storage()

        assert genres.count() == 3
        assert genres.find(2).name == "Hip-Hop"
        assert dict(genres.symbols) == {"ROCK": 1, "HIP_HOP": 2, "POP": 3}

    def test_ensure_fresh_reports_replay(self, catalog: Catalog, genres: Collection) -> None:
        assert genres.ensure_fresh() is False

        catalog.reset_storage()

        assert genres.ensure_fresh() is True
        assert genres.ensure_fresh() is False

    def test_replay_preserves_order_and_loaded_state(self, catalog: Catalog) -> None:
        publishers = catalog.collection("publishers")
        publishers.load_data()
        publishers.data({"id": 23, "name": "Flop"})

        catalog.reset_storage()

        assert publishers.pluck("id") == [1, 2, 7, 23]
        assert publishers.loaded is True
        assert publishers.state is CollectionState.LOADED

    def test_data_after_reset_replays_first(self, catalog: Catalog, genres: Collection) -> None:
        catalog.reset_storage()

        genres.data({"id": 4, "name": "Jazz", "slug": "jazz"})

        assert genres.pluck("id") == [1, 2, 3, 4]

    def test_duplicates_still_detected_after_replay(
        self, catalog: Catalog, genres: Collection
    ) -> None:
        catalog.reset_storage()

        with pytest.raises(DuplicateKeyError):
            genres.data({"id": 1, "name": "Rock again"})

    def test_every_collection_replays(self, catalog: Catalog, genres: Collection) -> None:
        authors = catalog.collection("authors")
        authors.data({"id": 1, "name": "One"})

        catalog.reset_storage()

        assert sorted(catalog.ensure_fresh()) == ["authors", "genres"]
        assert authors.count() == 1

    def test_reads_on_another_thread_do_not_replay(
        self, catalog: Catalog, genres: Collection
    ) -> None:
        """Readers on other threads share the loaded relations."""
        statuses = catalog.collection("statuses")
        statuses.data({"id": 1, "name": "Draft"})
        statuses.data({"id": 2, "name": "Published"})

        with ThreadPoolExecutor(max_workers=2) as pool:
            names = list(pool.map(lambda key: genres.find(key).name, [1, 2, 3]))

        assert names == ["Rock", "Hip-Hop", "Pop"]
        assert statuses.find(1).name == "Draft"
        assert catalog.ensure_fresh() == []
        assert genres.count() == 3
