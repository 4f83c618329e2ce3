"""Integration tests for the delivery zone lookup endpoint."""


class TestZoneMatchAPI:
    def test_pincode_match(self, client):
        response = client.get("/delivery/zones/match", params={"zip_code": "517501"})
        assert response.status_code == 200
        body = response.json()
        assert body["available"] is True
        assert body["zone_name"] == "Tirupati"
        assert body["delivery_time"] == "25-35 min"
        assert body["match_type"] == "pincode"

    def test_village_match(self, client):
        response = client.get("/delivery/zones/match", params={"village_town": "Renigunta"})
        body = response.json()
        assert body["match_type"] == "village"
        assert body["delivery_time"] == "30-45 min"

    def test_no_match(self, client):
        response = client.get("/delivery/zones/match", params={"city": "Chennai"})
        body = response.json()
        assert body["available"] is False
        assert body["zone_name"] == "Standard Delivery"
        assert body["match_type"] == "none"
        assert body["zone"] is None

    def test_no_location(self, client):
        body = client.get("/delivery/zones/match").json()
        assert body["available"] is False
