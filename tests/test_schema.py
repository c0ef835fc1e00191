import pytest

from tests.helpers import SAMPLE_SESSION, clone_session, write_session
from cashplan.schema import MonthlyPaymentPlan, SchemaError, TargetDatePlan, load_session


def test_sample_session_loads():
    session = load_session(SAMPLE_SESSION)

    assert session.projection_horizon_years == 5
    assert session.tax_year == 2026
    assert [m.id for m in session.members] == ["alex", "sam"]
    assert session.investments[0].is_restricted
    assert not session.investments[3].is_restricted
    assert isinstance(session.debts[0].payoff_plan, MonthlyPaymentPlan)
    assert isinstance(session.debts[1].payoff_plan, TargetDatePlan)
    assert session.debts[1].payoff_plan.kind == "target_date"
    assert session.redirect_rules[3].destination_id is None


def test_load_session_rejects_non_object_root(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[]", encoding="utf-8")

    with pytest.raises(SchemaError, match="session: root must be a JSON object"):
        load_session(path)


def test_load_session_requires_horizon(tmp_path, sample_session_dict):
    data = clone_session(sample_session_dict)
    del data["projection_horizon_years"]
    path = write_session(tmp_path, data)

    with pytest.raises(SchemaError, match=r"session\.projection_horizon_years: missing required field"):
        load_session(path)


def test_load_session_requires_payoff_plan_kind(tmp_path, sample_session_dict):
    data = clone_session(sample_session_dict)
    del data["debts"][0]["payoff_plan"]["kind"]
    path = write_session(tmp_path, data)

    with pytest.raises(SchemaError, match=r"debts\[0\]\.payoff_plan\.kind: missing required field"):
        load_session(path)


def test_load_session_rejects_unknown_payoff_plan_kind(tmp_path, sample_session_dict):
    data = clone_session(sample_session_dict)
    data["debts"][0]["payoff_plan"]["kind"] = "snowball"
    path = write_session(tmp_path, data)

    with pytest.raises(SchemaError, match=r"debts\[0\]\.payoff_plan\.kind: 'snowball' is not valid"):
        load_session(path)


def test_load_session_rejects_fractional_cents(tmp_path, sample_session_dict):
    data = clone_session(sample_session_dict)
    data["investments"][0]["monthly_contribution_cents"] = 100.5
    path = write_session(tmp_path, data)

    with pytest.raises(SchemaError, match=r"investments\[0\]\.monthly_contribution_cents: expected integer"):
        load_session(path)


def test_load_session_rejects_wrong_collection_types(tmp_path, sample_session_dict):
    data = clone_session(sample_session_dict)
    data["members"] = {}
    path = write_session(tmp_path, data)

    with pytest.raises(SchemaError, match=r"members: expected array"):
        load_session(path)


def test_optional_fields_default(tmp_path):
    path = write_session(
        tmp_path,
        {
            "projection_horizon_years": 2,
            "goal_funds": [{"id": "g", "name": "Goal"}],
        },
    )
    session = load_session(path)

    assert session.tax_year is None
    assert session.assumed_annual_inflation.basis_points == 0
    assert session.goal_funds[0].target_amount.cents == 0
    assert session.goal_funds[0].start_date is None
    assert session.debts == ()
