from relief.optimizer.allocation import allocate, run_allocation
from relief.optimizer.schemas import Demand
from tests.helpers import make_catalog, make_incident


def test_transport_capped_by_pool_size(scenario_incidents):
    catalog = make_catalog(transport=2)
    run = run_allocation(scenario_incidents, catalog)

    assert run.ranked_ids == ["A", "B"]
    assert run.demands["A"].needed_transport == 3
    assert run.recommendations["A"].transport == ["T1", "T2"]
    assert run.recommendations["A"].allocation_gap["transport"] == 1
    assert run.recommendations["B"].transport == []


def test_partial_shelter_fill():
    catalog = make_catalog(shelters=[("S1", 155)])
    demands = {
        "first": Demand(needed_shelter_capacity=100),
        "second": Demand(needed_shelter_capacity=100),
    }
    result = allocate(["first", "second"], demands, catalog)

    assert [(s.shelter_id, s.capacity) for s in result["first"].shelters] == [("S1", 100)]
    assert [(s.shelter_id, s.capacity) for s in result["second"].shelters] == [("S1", 55)]
    assert result["second"].allocation_gap["shelter_capacity"] == 45
    assert catalog.shelters[0].available_capacity == 0


def test_shelter_need_spans_shelters_in_order():
    catalog = make_catalog(shelters=[("S1", 50), ("S2", 0), ("S3", 100)])
    result = allocate(["x"], {"x": Demand(needed_shelter_capacity=120)}, catalog)

    assert [(s.shelter_id, s.capacity) for s in result["x"].shelters] == [("S1", 50), ("S3", 70)]
    assert [s.available_capacity for s in catalog.shelters] == [0, 0, 30]


def test_units_assigned_first_available_first():
    catalog = make_catalog(transport=3, rescue_teams=3)
    demands = {
        "a": Demand(needed_transport=1, needed_rescue_teams=2),
        "b": Demand(needed_transport=5, needed_rescue_teams=1),
    }
    result = allocate(["a", "b"], demands, catalog)

    assert result["a"].transport == ["T1"]
    assert result["a"].rescue_teams == ["R1", "R2"]
    assert result["b"].transport == ["T2", "T3"]
    assert result["b"].rescue_teams == ["R3"]
    assert catalog.transport == [] and catalog.rescue_teams == []


def test_empty_pools_give_explicit_empty_recommendation(scenario_incidents):
    run = run_allocation(scenario_incidents, make_catalog())

    assert set(run.recommendations) == {"A", "B"}
    for rec in run.recommendations.values():
        assert rec.is_empty
        assert rec.transport == [] and rec.rescue_teams == [] and rec.shelters == []


def test_ids_without_demand_are_skipped():
    result = allocate(["a", "b"], {"a": Demand(needed_transport=1)}, make_catalog(transport=2))
    assert "b" not in result
    assert result["a"].transport == ["T1"]


def test_inactive_incidents_consume_nothing():
    incidents = [
        make_incident("big", severity="high", affected_count=100000, status="monitoring"),
        make_incident("small", severity="low", affected_count=100),
    ]
    run = run_allocation(incidents, make_catalog(transport=5, rescue_teams=5, shelters=[("S1", 1000)]))

    assert list(run.recommendations) == ["small"]
    assert run.recommendations["small"].transport == ["T1"]


def test_caller_catalog_is_not_mutated(scenario_incidents):
    catalog = make_catalog(transport=4, rescue_teams=4, shelters=[("S1", 500)])
    run = run_allocation(scenario_incidents, catalog)

    assert len(catalog.transport) == 4
    assert len(catalog.rescue_teams) == 4
    assert catalog.shelters[0].available_capacity == 500
    assert len(run.catalog.transport) == 0
    assert run.catalog.shelters[0].available_capacity == 0


def test_totals_never_exceed_starting_pools(store, seed_catalog):
    run = run_allocation(store.get_all_incidents(), seed_catalog)
    recs = run.recommendations.values()

    assigned_transport = [u for r in recs for u in r.transport]
    assigned_rescue = [u for r in recs for u in r.rescue_teams]
    assert len(assigned_transport) <= len(seed_catalog.transport)
    assert len(set(assigned_transport)) == len(assigned_transport)
    assert len(assigned_rescue) <= len(seed_catalog.rescue_teams)

    for shelter in seed_catalog.shelters:
        used = sum(a.capacity for r in recs for a in r.shelters if a.shelter_id == shelter.shelter_id)
        assert used <= shelter.available_capacity


def test_seed_data_order_and_exhaustion(store, seed_catalog):
    run = run_allocation(store.get_all_incidents(), seed_catalog)

    assert run.ranked_ids == ["D008", "D003", "D001", "D005", "D006", "D002"]
    assert run.recommendations["D008"].transport == ["AMB-101", "AMB-102", "AMB-201", "AMB-301"]
    assert run.recommendations["D003"].transport == ["AMB-302", "AMB-401", "AMB-501", "AMB-601"]
    assert run.recommendations["D001"].transport == []
    assert run.recommendations["D003"].rescue_teams == ["RT-03", "RT-04", "RT-05"]
    assert [(a.shelter_id, a.capacity) for a in run.recommendations["D001"].shelters] == [
        ("SH-03", 1500), ("SH-04", 4000),
    ]
    assert run.recommendations["D002"].is_empty


def test_second_run_from_leftover_pools(scenario_incidents):
    catalog = make_catalog(transport=4)
    first = run_allocation(scenario_incidents, catalog)
    assert first.recommendations["A"].transport == ["T1", "T2", "T3"]
    assert first.recommendations["B"].transport == ["T4"]

    # Starting again from the leftovers finds the pool already consumed
    second = run_allocation(scenario_incidents, first.catalog)
    assert second.recommendations["A"].transport == []
    assert second.recommendations["B"].transport == []

    # Starting again from the untouched snapshot reproduces the first run
    again = run_allocation(scenario_incidents, catalog)
    assert again.recommendations == first.recommendations
