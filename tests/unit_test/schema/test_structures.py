"""
Unit tests for IndexStructures containment, merge and diff.
"""

import threading

from esinstaller.schema.mapping import Mappings
from esinstaller.schema.structures import IndexStructures, field_type

LIVE = Mappings(
    properties={
        "service_id": {"type": "keyword"},
        "latency": {"type": "integer"},
        "added_by_operator": {"type": "long"},
    }
)


class TestContainsStructure:
    def test_unknown_table(self):
        assert IndexStructures().contains_structure("t", Mappings({"a": {"type": "keyword"}})) is False

    def test_subset_ignores_extra_fields(self):
        structures = IndexStructures()
        structures.put_structure("t", LIVE)
        candidate = Mappings({"service_id": {"type": "keyword"}, "latency": {"type": "integer"}})
        assert structures.contains_structure("t", candidate) is True

    def test_missing_field(self):
        structures = IndexStructures()
        structures.put_structure("t", LIVE)
        candidate = Mappings({"service_id": {"type": "keyword"}, "endpoint": {"type": "keyword"}})
        assert structures.contains_structure("t", candidate) is False

    def test_type_differs(self):
        structures = IndexStructures()
        structures.put_structure("t", LIVE)
        assert structures.contains_structure("t", Mappings({"latency": {"type": "long"}})) is False

    def test_other_attributes_do_not_matter(self):
        """The backend reports copy_to as a list, the builder as a string."""
        structures = IndexStructures()
        structures.put_structure("t", Mappings({"content": {"type": "text", "copy_to": ["content_match"]}}))
        candidate = Mappings({"content": {"type": "text", "copy_to": "content_match"}})
        assert structures.contains_structure("t", candidate) is True

    def test_object_fields_without_type(self):
        structures = IndexStructures()
        structures.put_structure("t", Mappings({"tags": {"properties": {"key": {"type": "keyword"}}}}))
        assert structures.contains_structure("t", Mappings({"tags": {"type": "object"}})) is True
        assert field_type({}) is None


class TestPutStructure:
    def test_merge_appends_new_fields_only(self):
        structures = IndexStructures()
        structures.put_structure("t", Mappings({"a": {"type": "keyword"}}, ["a"]))
        structures.put_structure("t", Mappings({"a": {"type": "long"}, "b": {"type": "long"}}, ["b"]))
        merged = structures.get_mapping("t")
        assert merged.properties == {"a": {"type": "keyword"}, "b": {"type": "long"}}
        assert merged.source_excludes == ["a", "b"]

    def test_stored_copy_is_isolated(self):
        structures = IndexStructures()
        mapping = Mappings({"a": {"type": "keyword"}})
        structures.put_structure("t", mapping)
        mapping.properties["b"] = {"type": "long"}
        structures.get_mapping("t").properties["c"] = {"type": "long"}
        assert structures.get_mapping("t").properties == {"a": {"type": "keyword"}}

    def test_tables_are_independent(self):
        structures = IndexStructures()
        structures.put_structure("t1", Mappings({"a": {"type": "keyword"}}))
        structures.put_structure("t2", Mappings({"b": {"type": "keyword"}}))
        assert list(structures.get_mapping("t1").properties) == ["a"]
        assert list(structures.get_mapping("t2").properties) == ["b"]

    def test_get_mapping_unknown_table(self):
        assert IndexStructures().get_mapping("missing").is_empty()

    def test_concurrent_puts_keep_every_field(self):
        structures = IndexStructures()

        def put(i):
            structures.put_structure("t", Mappings({f"field_{i}": {"type": "long"}}))

        threads = [threading.Thread(target=put, args=(i,)) for i in range(50)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(structures.get_mapping("t").properties) == 50


class TestDiffStructure:
    def test_returns_only_missing_fields(self):
        structures = IndexStructures()
        structures.put_structure("t", LIVE)
        structures.put_structure("t", Mappings({"service_id": {"type": "keyword"}, "endpoint": {"type": "keyword"}}))
        diff = structures.diff_structure("t", LIVE)
        assert diff.properties == {"endpoint": {"type": "keyword"}}

    def test_applying_diff_converges(self):
        structures = IndexStructures()
        live = Mappings({"a": {"type": "keyword"}})
        structures.put_structure("t", live)
        structures.put_structure("t", Mappings({"a": {"type": "keyword"}, "b": {"type": "long"}}))
        diff = structures.diff_structure("t", live)
        live.properties.update(diff.properties)
        assert structures.diff_structure("t", live).is_empty()

    def test_never_reports_removals(self):
        structures = IndexStructures()
        structures.put_structure("t", Mappings({"a": {"type": "keyword"}}))
        live = Mappings({"a": {"type": "keyword"}, "legacy": {"type": "long"}})
        assert structures.diff_structure("t", live).is_empty()

    def test_unknown_table(self):
        assert IndexStructures().diff_structure("t", LIVE).is_empty()


class TestMergeStructure:
    def test_merge_leaves_cache_untouched(self):
        structures = IndexStructures()
        structures.put_structure("t", Mappings({"a": {"type": "keyword"}}))
        merged = structures.merge_structure("t", Mappings({"a": {"type": "long"}, "b": {"type": "long"}}, ["b"]))
        assert merged.properties == {"a": {"type": "keyword"}, "b": {"type": "long"}}
        assert merged.source_excludes == ["b"]
        assert structures.get_mapping("t").properties == {"a": {"type": "keyword"}}

    def test_unknown_table(self):
        mapping = Mappings({"a": {"type": "keyword"}})
        merged = IndexStructures().merge_structure("t", mapping)
        assert merged == mapping
        assert merged is not mapping


class TestMissingStructure:
    def test_only_unknown_names(self):
        structures = IndexStructures()
        structures.put_structure("t", LIVE)
        candidate = Mappings({"latency": {"type": "long"}, "endpoint": {"type": "keyword"}})
        assert structures.missing_structure("t", candidate).properties == {"endpoint": {"type": "keyword"}}

    def test_unknown_table(self):
        assert IndexStructures().missing_structure("t", LIVE).properties == LIVE.properties
