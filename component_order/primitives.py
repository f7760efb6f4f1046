"""
component_order/primitives.py
═════════════════════════════

Buckets and the primitive-name table.

A *bucket* is the canonical phase a top-level statement belongs to in a
component or hook body.  The order is fixed:

     1  props destructure                 9  custom hooks
     2  destructured variables from props 10  derived state/computed variables
     3  useRef                            11  useMemo
     4  useState                          12  useCallback
     5  useReducer                        13  handler functions
     6  useSelector/useDispatch           14  useEffect/useLayoutEffect
     7  router hooks                      15  return statement
     8  context hooks

Which call names land in which bucket is *configuration*, not behaviour:
:class:`PrimitiveTable` is an immutable value handed to the classifier, so
several rule configurations can run side by side.  The default table
reproduces the React, Redux and router hook names the rule was written for.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from .errors import ConfigError


class Bucket(IntEnum):
    """Canonical statement phases, in required order."""
    PARAM_DESTRUCTURE = 1
    PARAM_DERIVED = 2
    REF = 3
    STATE = 4
    REDUCER = 5
    SUBSCRIPTION = 6
    NAVIGATION = 7
    CONTEXT = 8
    CUSTOM_PRIMITIVE = 9
    DERIVED = 10
    MEMO = 11
    CALLBACK = 12
    HANDLER = 13
    EFFECT = 14
    RETURN = 15

    @property
    def label(self) -> str:
        return BUCKET_LABELS[self]


BUCKET_LABELS: Dict[Bucket, str] = {
    Bucket.PARAM_DESTRUCTURE: "props destructure",
    Bucket.PARAM_DERIVED: "destructured variables from props",
    Bucket.REF: "useRef",
    Bucket.STATE: "useState",
    Bucket.REDUCER: "useReducer",
    Bucket.SUBSCRIPTION: "useSelector/useDispatch",
    Bucket.NAVIGATION: "router hooks",
    Bucket.CONTEXT: "context hooks",
    Bucket.CUSTOM_PRIMITIVE: "custom hooks",
    Bucket.DERIVED: "derived state/computed variables",
    Bucket.MEMO: "useMemo",
    Bucket.CALLBACK: "useCallback",
    Bucket.HANDLER: "handler functions",
    Bucket.EFFECT: "useEffect/useLayoutEffect",
    Bucket.RETURN: "return statement",
}

UNCATEGORIZED_LABEL = "unknown"


def bucket_label(bucket: Optional[Bucket]) -> str:
    return UNCATEGORIZED_LABEL if bucket is None else BUCKET_LABELS[bucket]


# ─────────────────────────────────────────────────────────────────────────
#  Default hook names
# ─────────────────────────────────────────────────────────────────────────

_ROUTER_HOOKS = (
    "useNavigate", "useLocation", "useParams", "useSearchParams",
    "useRouter", "usePathname", "useMatch", "useMatches",
    "useRouteLoaderData", "useNavigation", "useResolvedPath", "useHref",
    "useInRouterContext", "useNavigationType", "useOutlet",
    "useOutletContext", "useRouteError", "useRoutes", "useBlocker",
)

_CONTEXT_HOOKS = (
    "useContext", "useToast", "useTheme", "useAuth", "useModal",
    "useDialog", "useNotification", "useI18n", "useTranslation", "useIntl",
    "useForm", "useFormContext",
)

DEFAULT_BUCKET_NAMES: Dict[Bucket, Tuple[str, ...]] = {
    Bucket.REF: ("useRef",),
    Bucket.STATE: ("useState",),
    Bucket.REDUCER: ("useReducer",),
    Bucket.SUBSCRIPTION: ("useSelector", "useDispatch", "useStore"),
    Bucket.NAVIGATION: _ROUTER_HOOKS,
    Bucket.CONTEXT: _CONTEXT_HOOKS,
    Bucket.MEMO: ("useMemo",),
    Bucket.CALLBACK: ("useCallback",),
    Bucket.EFFECT: ("useEffect", "useLayoutEffect"),
}


@dataclass(frozen=True)
class PrimitiveTable:
    """
    Static name → bucket lookup plus the primitive naming convention.

    Attributes
    ----------
    names  : call name → bucket for every listed primitive
    prefix : reserved prefix of primitive names (``use``); a name matches
             the convention when the prefix is immediately followed by an
             uppercase letter
    """
    names: Mapping[str, Bucket] = field(default_factory=dict)
    prefix: str = "use"

    def __post_init__(self) -> None:
        if not self.prefix:
            raise ConfigError("primitive prefix must not be empty")

    def bucket_for(self, name: Optional[str]) -> Optional[Bucket]:
        """Bucket of a listed primitive, ``None`` for unlisted names."""
        if not name:
            return None
        return self.names.get(name)

    def matches_convention(self, name: Optional[str]) -> bool:
        if not name or not name.startswith(self.prefix):
            return False
        rest = name[len(self.prefix):]
        return bool(rest) and "A" <= rest[0] <= "Z"

    def is_effect(self, name: Optional[str]) -> bool:
        return self.bucket_for(name) is Bucket.EFFECT

    def with_names(self, extra: Mapping[str, Bucket]) -> "PrimitiveTable":
        merged = dict(self.names)
        merged.update(extra)
        return PrimitiveTable(names=merged, prefix=self.prefix)

    # ── construction ─────────────────────────────────────────────────

    @classmethod
    def from_buckets(
        cls,
        buckets: Mapping[Bucket, Iterable[str]],
        prefix: str = "use",
    ) -> "PrimitiveTable":
        names: Dict[str, Bucket] = {}
        for bucket, call_names in buckets.items():
            for name in call_names:
                names[name] = bucket
        return cls(names=names, prefix=prefix)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PrimitiveTable":
        """
        Build a table from a JSON-style mapping::

            {
              "prefix": "use",
              "extend": true,
              "buckets": {"CONTEXT": ["useSession"], "STATE": ["useAtom"]}
            }

        With ``extend`` (the default) the listed names are added to the
        default table; otherwise they replace it.

        Raises
        ------
        ConfigError
            On unknown bucket names or malformed entries.
        """
        if not isinstance(data, Mapping):
            raise ConfigError("primitive table must be a JSON object")
        prefix = data.get("prefix", "use")
        if not isinstance(prefix, str):
            raise ConfigError("'prefix' must be a string")
        raw_buckets = data.get("buckets", {})
        if not isinstance(raw_buckets, Mapping):
            raise ConfigError("'buckets' must map bucket names to name lists")

        parsed: Dict[Bucket, Tuple[str, ...]] = {}
        for key, call_names in raw_buckets.items():
            try:
                bucket = Bucket[str(key).upper()]
            except KeyError:
                valid = ", ".join(b.name for b in Bucket)
                raise ConfigError(
                    f"unknown bucket {key!r}; expected one of: {valid}"
                ) from None
            if isinstance(call_names, str) or not all(
                isinstance(n, str) for n in call_names
            ):
                raise ConfigError(f"bucket {key!r} must list call names")
            parsed[bucket] = tuple(call_names)

        if data.get("extend", True):
            base = default_primitive_table()
            extra = cls.from_buckets(parsed, prefix=prefix)
            return PrimitiveTable(
                names={**base.names, **extra.names}, prefix=prefix
            )
        return cls.from_buckets(parsed, prefix=prefix)


def default_primitive_table() -> PrimitiveTable:
    return PrimitiveTable.from_buckets(DEFAULT_BUCKET_NAMES)


def load_primitive_table(path: Union[str, Path]) -> PrimitiveTable:
    """Read a primitive table from a JSON file."""
    p = Path(path)
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"cannot read primitive table {p}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON in {p}: {exc}") from exc
    return PrimitiveTable.from_mapping(data)


__all__ = [
    "Bucket",
    "BUCKET_LABELS",
    "DEFAULT_BUCKET_NAMES",
    "PrimitiveTable",
    "UNCATEGORIZED_LABEL",
    "bucket_label",
    "default_primitive_table",
    "load_primitive_table",
]
