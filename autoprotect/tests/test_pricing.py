import pytest
from pydantic import ValidationError
from autoprotect.core.enums import PlanType
from autoprotect.schemas.quote import CoverageSelection, LocationFacts, QuoteEstimateRequest, VehicleFacts
from autoprotect.services.pricing import (
    BASE_PRICING,
    DISCLAIMERS,
    age_multiplier,
    calculate_quote,
    location_multiplier,
    mileage_multiplier,
    plan_features,
    recommend_plan,
    round_half_up,
)

YEAR = 2026


def _quote(year, odometer, state, plan=PlanType.GOLD, deductible=500, zip_code="00000"):
    return calculate_quote(
        VehicleFacts(year=year, make="Toyota", model="Camry", odometer=odometer),
        CoverageSelection(plan=plan, deductible=deductible),
        LocationFacts(zip=zip_code, state=state),
        current_year=YEAR,
    )


def _prices(estimate):
    plans = estimate.plans
    return (
        (plans.powertrain.monthly, plans.gold.monthly, plans.platinum.monthly),
        (plans.powertrain.total, plans.gold.total, plans.platinum.total),
    )


@pytest.mark.pricing
class TestMultipliers:

    @pytest.mark.parametrize("age,expected", [
        (-1, 0.9),
        (0, 0.9),
        (3, 0.9),
        (4, 1.0),
        (9, 1.0),
        (10, 1.3),
        (25, 1.3),
    ])
    def test_age_multiplier(self, age, expected):
        assert age_multiplier(age) == expected

    @pytest.mark.parametrize("odometer,expected", [
        (0, 0.95),
        (29999, 0.95),
        (30000, 1.0),
        (100000, 1.0),
        (100001, 1.2),
    ])
    def test_mileage_multiplier(self, odometer, expected):
        assert mileage_multiplier(odometer) == expected

    @pytest.mark.parametrize("state,expected", [
        ("CA", 1.1),
        ("NY", 1.1),
        ("FL", 1.1),
        ("TX", 1.0),
        ("ca", 1.0),
        (" CA", 1.0),
        ("", 1.0),
    ])
    def test_location_multiplier_exact_match(self, state, expected):
        assert location_multiplier(state) == expected


@pytest.mark.pricing
class TestRecommendation:

    @pytest.mark.parametrize("age,odometer,expected", [
        (3, 49999, PlanType.PLATINUM),
        (3, 50000, PlanType.GOLD),
        (4, 10000, PlanType.GOLD),
        (7, 80000, PlanType.GOLD),
        (7, 80001, PlanType.POWERTRAIN),
        (8, 10000, PlanType.POWERTRAIN),
        (-2, 0, PlanType.PLATINUM),
        (2, 90000, PlanType.POWERTRAIN),
    ])
    def test_recommend_plan(self, age, odometer, expected):
        assert recommend_plan(age, odometer) == expected


@pytest.mark.pricing
class TestRounding:

    @pytest.mark.parametrize("value,expected", [
        (0.5, 1),
        (1.5, 2),
        (2.5, 3),
        (1.49, 1),
        (74.2995, 74),
        (1478.88, 1479),
    ])
    def test_halves_round_up(self, value, expected):
        assert round_half_up(value) == expected


@pytest.mark.pricing
class TestCalculateQuote:

    def test_new_low_mileage_high_cost_state(self):
        estimate = _quote(YEAR - 1, 15000, "CA")

        assert _prices(estimate) == ((74, 121, 187), (892, 1456, 2246))
        assert estimate.recommended == PlanType.PLATINUM

    def test_old_high_mileage_vehicle(self):
        estimate = _quote(YEAR - 12, 150000, "TX")

        assert _prices(estimate) == ((123, 201, 310), (1479, 2415, 3725))
        assert estimate.recommended == PlanType.POWERTRAIN

    def test_mid_age_high_cost_state(self):
        estimate = _quote(YEAR - 5, 85000, "NY")

        assert _prices(estimate) == ((87, 142, 219), (1043, 1703, 2627))
        assert estimate.recommended == PlanType.POWERTRAIN

    def test_neutral_inputs_return_base_prices(self):
        estimate = _quote(YEAR - 5, 50000, "TX")

        assert _prices(estimate) == ((79, 129, 199), (948, 1548, 2388))
        assert estimate.recommended == PlanType.GOLD

    def test_lowercase_state_is_not_high_cost(self):
        upper = _quote(YEAR - 5, 50000, "CA")
        lower = _quote(YEAR - 5, 50000, "ca")

        assert upper.plans.gold.monthly == 142
        assert lower.plans.gold.monthly == 129

    def test_future_model_year_counts_as_new(self):
        estimate = _quote(YEAR + 1, 10, "TX")

        assert estimate.plans.gold.monthly == round_half_up(129 * 0.9 * 0.95)
        assert estimate.recommended == PlanType.PLATINUM

    def test_coverage_selection_does_not_change_prices(self):
        a = _quote(YEAR - 6, 70000, "FL", plan=PlanType.POWERTRAIN, deductible=0)
        b = _quote(YEAR - 6, 70000, "FL", plan=PlanType.PLATINUM, deductible=1000.5)

        assert a == b

    def test_zip_does_not_change_prices(self):
        assert _quote(YEAR - 6, 70000, "TX", zip_code="10001") == _quote(YEAR - 6, 70000, "TX", zip_code="99999")

    def test_repeated_calls_are_identical(self):
        first = _quote(YEAR - 4, 64000, "CA")
        second = _quote(YEAR - 4, 64000, "CA")

        assert first.model_dump() == second.model_dump()

    def test_every_plan_is_priced_with_features(self):
        estimate = _quote(YEAR - 4, 64000, "TX")

        for plan in PlanType:
            price = getattr(estimate.plans, plan.value)
            assert price.features == plan_features(plan)
            assert price.monthly > 0
            assert price.total > price.monthly
        assert estimate.disclaimers == DISCLAIMERS

    def test_features_are_copies(self):
        estimate = _quote(YEAR - 4, 64000, "TX")
        estimate.plans.gold.features.append("Free car")

        assert "Free car" not in plan_features(PlanType.GOLD)

    def test_base_table(self):
        assert BASE_PRICING[PlanType.POWERTRAIN] == {"monthly": 79, "total": 948}
        assert BASE_PRICING[PlanType.GOLD] == {"monthly": 129, "total": 1548}
        assert BASE_PRICING[PlanType.PLATINUM] == {"monthly": 199, "total": 2388}


@pytest.mark.pricing
class TestEstimateRequestValidation:

    def _body(self, **overrides):
        body = {
            "vehicle": {"year": 2020, "make": "Toyota", "model": "Camry", "odometer": 45000},
            "coverage": {"plan": "gold", "deductible": 500},
            "location": {"zip": "90210", "state": "CA"},
        }
        for section, values in overrides.items():
            body[section] = {**body[section], **values}
        return body

    def test_valid_request(self):
        req = QuoteEstimateRequest.model_validate(self._body())
        assert req.coverage.plan == PlanType.GOLD

    @pytest.mark.parametrize("section,values", [
        ("vehicle", {"year": "2020"}),
        ("vehicle", {"odometer": 45000.5}),
        ("vehicle", {"make": 12}),
        ("coverage", {"plan": "diamond"}),
        ("coverage", {"deductible": "500"}),
        ("location", {"state": None}),
    ])
    def test_rejects_loose_types(self, section, values):
        with pytest.raises(ValidationError):
            QuoteEstimateRequest.model_validate(self._body(**{section: values}))

    def test_missing_section(self):
        body = self._body()
        del body["location"]
        with pytest.raises(ValidationError):
            QuoteEstimateRequest.model_validate(body)
