import pytest

from relief.optimizer.demand import ceil_count, estimate_demand, severity_factor
from tests.helpers import make_incident


def test_flood_high_demand():
    demand = estimate_demand(make_incident("A", type="flood", severity="high", affected_count=15000))
    assert demand.needed_transport == 3
    assert demand.needed_rescue_teams == 8
    assert demand.needed_shelter_capacity == 10500


def test_fire_medium_rounds_up_small_needs():
    demand = estimate_demand(make_incident("B", type="fire", severity="medium", affected_count=500))
    assert demand.needed_transport == 1
    assert demand.needed_rescue_teams == 1
    assert demand.needed_shelter_capacity == 150


@pytest.mark.parametrize("affected", [None, 0])
def test_missing_affected_count_uses_default_without_mutation(affected):
    incident = make_incident("C", type="flood", severity="high", affected_count=affected)
    demand = estimate_demand(incident)
    assert demand.needed_transport == 1
    assert demand.needed_rescue_teams == 1
    assert demand.needed_shelter_capacity == 700
    assert incident.affected_count == affected


def test_unrecognized_type_uses_other_row():
    incident = make_incident("V", type="volcano", severity="high", affected_count=10000)
    assert incident.type == "other"
    demand = estimate_demand(incident)
    assert demand.needed_transport == 2
    assert demand.needed_rescue_teams == 2
    assert demand.needed_shelter_capacity == 5000


def test_float_noise_does_not_inflate_counts():
    # 2500 / 1500 * 0.6 is 1.0 up to float error
    demand = estimate_demand(make_incident("E", type="earthquake", severity="medium", affected_count=2500))
    assert demand.needed_transport == 2
    assert demand.needed_rescue_teams == 1


def test_ceil_count():
    assert ceil_count(0) == 0
    assert ceil_count(0.15) == 1
    assert ceil_count(2.0) == 2
    assert ceil_count(420.00000000000006) == 420
    assert ceil_count(-0.5) == 0


def test_severity_factor_fallback():
    assert severity_factor("high") == 1.0
    assert severity_factor("low") == 0.3
    assert severity_factor("extreme") == 0.5
    assert severity_factor(None) == 0.5
