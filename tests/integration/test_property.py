"""Hypothesis property tests for RLS interpreter and composition invariants."""

from __future__ import annotations

import re

from hypothesis import given, settings
from hypothesis import strategies as st
from sqlalchemy import Integer, String, create_engine, insert, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from sqla_rls.compiler._compose import compose_predicate
from sqla_rls.compiler._interpret import interpret_filter_config
from sqla_rls.context._context import RLSContext
from sqla_rls.policy._filter import ALL_RECORDS, DENY_ALL, PARENT_DELEGATED, FieldEquals
from sqla_rls.session._query import fetch_page
from sqla_rls.testing import RecordingSink, assert_params_consistent

_PLACEHOLDER = re.compile(r"\$(\d+)")

identifier_names = st.from_regex(r"[a-z_][a-z0-9_]{0,12}", fullmatch=True)
identifier_values = st.one_of(st.none(), st.integers(), st.text(max_size=20))
identifiers = st.dictionaries(
    st.sampled_from(["userId", "customerProfileId", "technicianProfileId", "orgId"]),
    identifier_values,
)
valid_configs = st.one_of(
    st.just(ALL_RECORDS),
    st.just(DENY_ALL),
    st.just(PARENT_DELEGATED),
    st.builds(FieldEquals, identifier_names,
              st.sampled_from(["userId", "customerProfileId", "technicianProfileId", "orgId"])),
    identifier_names,
)
# Anything at all, including malformed permissions-file values.
any_configs = st.one_of(
    valid_configs,
    st.none(),
    st.booleans(),
    st.integers(),
    st.floats(allow_nan=True),
    st.text(max_size=30),
    st.lists(st.integers(), max_size=3),
    st.dictionaries(st.text(max_size=8), st.one_of(st.none(), st.text(max_size=8)), max_size=3),
)


class TestTotality:
    """The interpreter never raises and never allows implicitly."""

    @given(config=any_configs, ids=identifiers, offset=st.integers(min_value=0, max_value=50))
    @settings(max_examples=300, deadline=None)
    def test_never_raises(self, config, ids, offset) -> None:
        result = interpret_filter_config(config, ids, "t", offset, sink=RecordingSink())
        assert result.applied is True
        if result.clause == "":
            assert config == ALL_RECORDS
        else:
            assert result.deny_all or len(result.bound_values) == 1

    @given(config=any_configs, ids=identifiers, offset=st.integers(min_value=0, max_value=50))
    @settings(max_examples=200, deadline=None)
    def test_placeholders_start_after_offset(self, config, ids, offset) -> None:
        result = interpret_filter_config(config, ids, "t", offset, sink=RecordingSink())
        numbers = [int(n) for n in _PLACEHOLDER.findall(result.clause)]
        assert numbers == list(range(offset + 1, offset + 1 + len(result.bound_values)))


class TestComposition:
    """Composed WHERE clauses are always consistent with their parameters."""

    @given(
        config=any_configs,
        ids=identifiers,
        base_count=st.integers(min_value=0, max_value=6),
        built_offset=st.integers(min_value=0, max_value=6),
        use_or=st.booleans(),
    )
    @settings(max_examples=200, deadline=None)
    def test_params_match_placeholders(self, config, ids, base_count, built_offset, use_or):
        joiner = " OR " if use_or else " AND "
        base = joiner.join(f"c{i} = ${i + 1}" for i in range(base_count))
        base_params = [f"v{i}" for i in range(base_count)]
        rls = interpret_filter_config(config, ids, "t", built_offset, sink=RecordingSink())
        composed = compose_predicate(base, base_params, rls)

        if composed.where_clause:
            assert composed.where_clause.startswith("WHERE ")
            assert composed.where_clause.count("WHERE") == 1
            assert_params_consistent(composed.where_clause, composed.params)
        assert composed.params[:base_count] == tuple(base_params)

    @given(base_count=st.integers(min_value=1, max_value=6), use_or=st.booleans())
    @settings(max_examples=50, deadline=None)
    def test_deny_is_never_widened(self, base_count, use_or):
        joiner = " OR " if use_or else " AND "
        base = joiner.join(f"c{i} = ${i + 1}" for i in range(base_count))
        rls = interpret_filter_config(DENY_ALL, {}, "t")
        composed = compose_predicate(base, [0] * base_count, rls)
        condition = composed.where_clause[len("WHERE "):]
        assert condition.endswith(" AND 1=0")
        head = condition[: -len(" AND 1=0")]
        if use_or and base_count > 1:
            assert head.startswith("(") and head.endswith(")")


# ---------------------------------------------------------------------------
# Isolated model for soundness checks (avoids conftest coupling)
# ---------------------------------------------------------------------------


class PropBase(DeclarativeBase):
    pass


class PropOrder(PropBase):
    __tablename__ = "prop_orders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    status: Mapped[str] = mapped_column(String(20))
    owner_id: Mapped[int] = mapped_column(Integer)


class TestSoundness:
    """Every returned row satisfies both the base filter and the RLS filter."""

    @given(
        owners=st.lists(st.integers(min_value=1, max_value=5), min_size=1, max_size=12),
        caller=st.integers(min_value=1, max_value=5),
        status=st.sampled_from(["open", "closed"]),
    )
    @settings(max_examples=40, deadline=None)
    def test_rows_belong_to_caller(self, owners, caller, status) -> None:
        engine = create_engine("sqlite:///:memory:", echo=False)
        PropBase.metadata.create_all(engine)
        with engine.begin() as conn:
            conn.execute(
                insert(PropOrder.__table__),
                [
                    {"id": i + 1, "status": "open" if i % 2 else "closed", "owner_id": owner}
                    for i, owner in enumerate(owners)
                ],
            )
            ctx = RLSContext(
                resource="prop_orders",
                role="customer",
                filter_config=FieldEquals("owner_id"),
                identifiers={"userId": caller},
            )
            result = fetch_page(conn, table="prop_orders", context=ctx,
                                base_where="status = $1", base_params=[status], limit=100)
            expected = conn.execute(
                select(PropOrder.__table__.c.id).where(
                    PropOrder.__table__.c.owner_id == caller,
                    PropOrder.__table__.c.status == status,
                )
            ).scalars().all()

        assert all(row["owner_id"] == caller for row in result.data)
        assert all(row["status"] == status for row in result.data)
        assert sorted(row["id"] for row in result.data) == sorted(expected)
        assert result.total == len(expected)
