"""
Tests for the FastAPI endpoints
Run with: pytest tests/test_api.py -v
"""

import pytest
from fastapi.testclient import TestClient

from betcalc.main import app

client = TestClient(app)

TWO_WAY = {
    "legs": [{"id": "home", "odds": 2.10}, {"id": "away", "odds": 2.00}],
    "objective": "total_stake",
    "amount": 100,
}


class TestHealthAndConvert:

    def test_health(self):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_convert_fractional_to_american(self):
        response = client.post(
            "/api/odds/convert",
            json={"value": "5/2", "from_format": "fractional", "to_format": "american"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["decimal"] == 3.5
        assert body["value"] == 250.0
        assert body["implied_probability_percent"] == 28.57

    def test_convert_to_fractional_string(self):
        response = client.post(
            "/api/odds/convert",
            json={"value": -200, "from_format": "american", "to_format": "fractional"},
        )

        assert response.json()["value"] == "1/2"

    def test_convert_american_zero(self):
        response = client.post("/api/odds/convert", json={"value": 0, "from_format": "american"})

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidOddsFormat"

    def test_unknown_format_is_schema_error(self):
        response = client.post("/api/odds/convert", json={"value": 2.0, "from_format": "hk"})

        assert response.status_code == 422
        assert "detail" in response.json()


class TestMultiLegEndpoints:

    def test_dutching_two_way(self):
        response = client.post("/api/calculators/dutching", json=TWO_WAY)

        assert response.status_code == 200
        body = response.json()
        assert body["is_arbitrage"] is True
        assert [leg["stake"] for leg in body["stakes"]] == [48.78, 51.22]
        assert [leg["payout"] for leg in body["stakes"]] == [102.44, 102.44]
        assert body["total_stake"] == 100.0
        assert body["guaranteed_profit"] == 2.44
        assert body["margin_percent"] == 2.44
        assert body["summary"]["is_risk_free"] is True
        assert [s["name"] for s in body["scenarios"]] == ["home wins", "away wins"]

    def test_fractional_legs(self):
        payload = dict(TWO_WAY, odds_format="fractional")
        payload["legs"] = [{"id": "home", "odds": "11/10"}, {"id": "away", "odds": "1/1"}]
        response = client.post("/api/calculators/dutching", json=payload)

        assert [leg["stake"] for leg in response.json()["stakes"]] == [48.78, 51.22]

    def test_target_profit(self):
        payload = dict(TWO_WAY, objective="target_profit", amount=10)
        body = client.post("/api/calculators/dutching", json=payload).json()

        assert body["total_stake"] == 410.0
        assert body["guaranteed_profit"] == 10.0

    def test_no_arbitrage(self):
        payload = dict(TWO_WAY, legs=[{"id": "a", "odds": 1.8}, {"id": "b", "odds": 1.8}])
        body = client.post("/api/calculators/dutching", json=payload).json()

        assert body["is_arbitrage"] is False
        assert body["margin_percent"] == -10.0
        assert body["stakes"] == []
        assert body["summary"] is None

    def test_insufficient_legs(self):
        payload = dict(TWO_WAY, legs=[{"id": "a", "odds": 2.5}])
        response = client.post("/api/calculators/dutching", json=payload)

        assert response.status_code == 422
        assert response.json()["error"] == "InsufficientLegs"

    def test_arbitrage_custom_stake(self):
        payload = {
            "legs": [{"id": "a", "odds": 2.10, "custom_stake": 200}, {"id": "b", "odds": 2.00}],
            "objective": "custom_stake",
        }
        body = client.post("/api/calculators/arbitrage", json=payload).json()

        assert body["total_stake"] == 410.0
        assert [leg["stake"] for leg in body["stakes"]] == [200.0, 210.0]

    def test_arbitrage_custom_leg_id(self):
        payload = dict(TWO_WAY, objective="custom_stake", custom_leg_id="away", amount=210)
        body = client.post("/api/calculators/arbitrage", json=payload).json()

        assert body["total_stake"] == 410.0

    def test_detect(self):
        body = client.post("/api/arbitrage/detect", json=TWO_WAY).json()

        assert body["is_arbitrage"] is True
        assert body["margin_percent"] == 2.44
        assert body["implied_probability_percent"] == 97.62

    def test_invalid_commission(self):
        payload = dict(TWO_WAY, legs=[{"id": "a", "odds": 2.1, "commission": 2}, {"id": "b", "odds": 2.0}])
        response = client.post("/api/arbitrage/detect", json=payload)

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidCommission"

    def test_detect_and_arbitrage_agree_on_commission(self):
        """3% commission on 2.10/2.00 only survives if charged on winnings"""
        legs = [
            {"id": "a", "odds": 2.10, "commission": 0.03},
            {"id": "b", "odds": 2.00, "commission": 0.03},
        ]
        payload = dict(TWO_WAY, legs=legs)

        detected = client.post("/api/arbitrage/detect", json=payload).json()
        staked = client.post("/api/calculators/arbitrage", json=payload).json()

        assert detected["is_arbitrage"] is False
        assert staked["is_arbitrage"] is False
        assert detected["margin_percent"] == staked["margin_percent"]

    def test_commission_model_override(self):
        legs = [
            {"id": "a", "odds": 2.10, "commission": 0.03},
            {"id": "b", "odds": 2.00, "commission": 0.03},
        ]
        payload = dict(TWO_WAY, legs=legs, commission_model="on_winnings")

        detected = client.post("/api/arbitrage/detect", json=payload).json()
        staked = client.post("/api/calculators/arbitrage", json=payload).json()
        dutched = client.post("/api/calculators/dutching", json=dict(payload, commission_model=None)).json()

        assert detected["is_arbitrage"] is True
        assert staked["is_arbitrage"] is True
        assert dutched["is_arbitrage"] is True
        assert detected["margin_percent"] == staked["margin_percent"] == dutched["margin_percent"]

    def test_engine_errors_documented_in_openapi(self):
        schema = client.get("/openapi.json").json()

        assert "ErrorResponse" in schema["components"]["schemas"]
        detect_responses = schema["paths"]["/api/arbitrage/detect"]["post"]["responses"]
        assert detect_responses["422"]["content"]["application/json"]["schema"]["$ref"].endswith(
            "/ErrorResponse"
        )


class TestBackLayEndpoints:

    def test_matched_bet(self):
        response = client.post(
            "/api/calculators/matched-bet",
            json={"back_stake": 100, "back_odds": 3.0, "lay_odds": 3.1, "lay_commission": 0.02},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["lay_stake"] == 97.4
        assert body["liability"] == 204.55
        assert [s["profit"] for s in body["scenarios"]] == [-4.55, -4.55]
        assert body["summary"]["qualifying_loss"] == 4.55

    def test_matched_bet_default_commission(self):
        body = client.post(
            "/api/calculators/matched-bet",
            json={"back_stake": 100, "back_odds": 3.0, "lay_odds": 3.1},
        ).json()

        assert body["lay_stake"] == 97.4

    def test_free_bet(self):
        body = client.post(
            "/api/calculators/matched-bet",
            json={
                "back_stake": 25,
                "back_odds": 5.0,
                "lay_odds": 5.2,
                "lay_commission": 0.02,
                "mode": "free_bet_snr",
            },
        ).json()

        assert body["lay_stake"] == 19.31
        assert body["summary"]["is_risk_free"] is True

    def test_invalid_back_odds(self):
        response = client.post(
            "/api/calculators/matched-bet",
            json={"back_stake": 100, "back_odds": 1.0, "lay_odds": 3.1},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidOddsFormat"

    def test_invalid_stake(self):
        response = client.post(
            "/api/calculators/matched-bet",
            json={"back_stake": -10, "back_odds": 3.0, "lay_odds": 3.1},
        )

        assert response.status_code == 422
        assert response.json() == {
            "error": "InvalidStakeAmount",
            "detail": "back_stake must be greater than 0, got -10.0.",
            "field": "back_stake",
        }

    def test_early_payout(self):
        body = client.post(
            "/api/calculators/early-payout",
            json={"back_stake": 100, "back_odds": 3.0, "lay_odds": 3.1, "lay_commission": 0.02},
        ).json()

        assert [s["profit"] for s in body["scenarios"]] == [-4.55, 295.45, -4.55, -4.55]

    def test_each_way(self):
        body = client.post(
            "/api/calculators/each-way",
            json={
                "stake_per_part": 10,
                "win_odds": 11.0,
                "place_fraction": 0.25,
                "win_lay_odds": 12.0,
                "place_lay_odds": 3.6,
                "lay_commission": 0,
            },
        ).json()

        assert body["place_odds"] == 3.5
        assert body["win_lay_stake"] == 9.17
        assert body["place_lay_stake"] == 9.72
        assert [s["profit"] for s in body["scenarios"]] == [-1.11, -1.11, -1.11]

    def test_acca(self):
        body = client.post(
            "/api/calculators/acca",
            json={
                "back_stake": 10,
                "leg_odds": [2.0, 1.5, 3.0],
                "lay_odds": 9.5,
                "lay_commission": 0,
                "refund_value": 7.0,
            },
        ).json()

        assert body["back_odds"] == 9.0
        assert [s["profit"] for s in body["scenarios"]] == [-0.53, 6.47, -0.53]


class TestSizingEndpoints:

    def test_kelly(self):
        body = client.post(
            "/api/calculators/kelly",
            json={"win_probability": 0.55, "back_odds": 2.0, "bankroll": 1000},
        ).json()

        assert body == {
            "kelly_percent": 10.0,
            "recommended_stake": 100.0,
            "expected_value": 10.0,
            "risk_band": "medium",
        }

    @pytest.mark.parametrize("prob", [0, 1, 1.2])
    def test_kelly_probability_range(self, prob):
        response = client.post(
            "/api/calculators/kelly",
            json={"win_probability": prob, "back_odds": 2.0, "bankroll": 1000},
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidProbability"

    def test_cross_venue(self):
        body = client.post(
            "/api/arbitrage/cross-venue",
            json={"quotes": [{"venue": "alpha", "price": 100}, {"venue": "beta", "price": 102}]},
        ).json()

        assert len(body) == 1
        assert body[0]["buy_venue"] == "alpha"
        assert body[0]["net_profit_percent"] == 1.8
