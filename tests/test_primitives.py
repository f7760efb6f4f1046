# tests/test_primitives.py
"""
Tests for buckets and the primitive-name table.
"""

import json

import pytest

from component_order.errors import ConfigError
from component_order.primitives import (
    BUCKET_LABELS,
    Bucket,
    PrimitiveTable,
    bucket_label,
    default_primitive_table,
    load_primitive_table,
)


class TestBucket:

    def test_fifteen_ordered_buckets(self):
        assert [b.value for b in Bucket] == list(range(1, 16))
        assert Bucket.PARAM_DESTRUCTURE < Bucket.STATE < Bucket.RETURN

    def test_every_bucket_has_a_label(self):
        assert set(BUCKET_LABELS) == set(Bucket)
        assert Bucket.STATE.label == "useState"
        assert Bucket.CONTEXT.label == "context hooks"

    def test_uncategorized_label(self):
        assert bucket_label(None) == "unknown"
        assert bucket_label(Bucket.RETURN) == "return statement"


class TestDefaultTable:

    @pytest.fixture
    def table(self):
        return default_primitive_table()

    @pytest.mark.parametrize("name,bucket", [
        ("useRef", Bucket.REF),
        ("useState", Bucket.STATE),
        ("useReducer", Bucket.REDUCER),
        ("useSelector", Bucket.SUBSCRIPTION),
        ("useDispatch", Bucket.SUBSCRIPTION),
        ("useNavigate", Bucket.NAVIGATION),
        ("useParams", Bucket.NAVIGATION),
        ("useContext", Bucket.CONTEXT),
        ("useTranslation", Bucket.CONTEXT),
        ("useMemo", Bucket.MEMO),
        ("useCallback", Bucket.CALLBACK),
        ("useEffect", Bucket.EFFECT),
        ("useLayoutEffect", Bucket.EFFECT),
    ])
    def test_listed_names(self, table, name, bucket):
        assert table.bucket_for(name) is bucket

    def test_unlisted_name(self, table):
        assert table.bucket_for("useFetch") is None
        assert table.bucket_for(None) is None

    @pytest.mark.parametrize("name,expected", [
        ("useFetch", True),
        ("useX", True),
        ("use", False),
        ("user", False),
        ("useful", False),
        ("fetchUser", False),
        ("", False),
        (None, False),
    ])
    def test_convention(self, table, name, expected):
        assert table.matches_convention(name) is expected

    def test_effects(self, table):
        assert table.is_effect("useEffect")
        assert not table.is_effect("useMemo")


class TestTableConfiguration:

    def test_empty_prefix_rejected(self):
        with pytest.raises(ConfigError):
            PrimitiveTable(prefix="")

    def test_custom_prefix(self):
        table = PrimitiveTable.from_buckets({Bucket.STATE: ["createSignal"]}, prefix="create")
        assert table.matches_convention("createStore")
        assert not table.matches_convention("useStore")
        assert table.bucket_for("createSignal") is Bucket.STATE

    def test_with_names_keeps_original(self):
        base = default_primitive_table()
        extended = base.with_names({"useAtom": Bucket.STATE})
        assert extended.bucket_for("useAtom") is Bucket.STATE
        assert base.bucket_for("useAtom") is None

    def test_from_mapping_extends_defaults(self):
        table = PrimitiveTable.from_mapping({"buckets": {"context": ["useSession"]}})
        assert table.bucket_for("useSession") is Bucket.CONTEXT
        assert table.bucket_for("useState") is Bucket.STATE

    def test_from_mapping_replaces_defaults(self):
        table = PrimitiveTable.from_mapping({
            "extend": False,
            "buckets": {"STATE": ["useAtom"]},
        })
        assert table.bucket_for("useAtom") is Bucket.STATE
        assert table.bucket_for("useState") is None

    @pytest.mark.parametrize("data", [
        [],
        {"prefix": 3},
        {"buckets": ["STATE"]},
        {"buckets": {"NOPE": ["useX"]}},
        {"buckets": {"STATE": "useAtom"}},
        {"buckets": {"STATE": ["useAtom", 1]}},
    ])
    def test_from_mapping_rejects_bad_input(self, data):
        with pytest.raises(ConfigError):
            PrimitiveTable.from_mapping(data)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "primitives.json"
        path.write_text(json.dumps({"buckets": {"NAVIGATION": ["useRouteState"]}}))
        table = load_primitive_table(path)
        assert table.bucket_for("useRouteState") is Bucket.NAVIGATION

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="invalid JSON"):
            load_primitive_table(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read"):
            load_primitive_table(tmp_path / "missing.json")
