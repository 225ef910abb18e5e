"""Location tests."""


class TestLocations:

    def test_create_and_list(self, client, manager_headers):
        first = client.post('/api/v1/locations', json={"address": "Main Street 1"}, headers=manager_headers)
        second = client.post('/api/v1/locations', json={"address": "  Harbour Road 7 "}, headers=manager_headers)
        assert first.status_code == second.status_code == 201

        resp = client.get('/api/v1/locations', headers=manager_headers)
        assert resp.get_json() == {
            "status": 200,
            "data": {
                "locations": [
                    {"locationId": first.get_json()["data"], "address": "Main Street 1"},
                    {"locationId": second.get_json()["data"], "address": "Harbour Road 7"},
                ]
            },
        }

    def test_duplicate_address(self, client, manager_headers, location):
        resp = client.post('/api/v1/locations', json={"address": "Main Street 1"}, headers=manager_headers)
        assert resp.status_code == 409
        assert "address" in resp.get_json()["error"]["fields"]

    def test_missing_address(self, client, manager_headers):
        resp = client.post('/api/v1/locations', json={}, headers=manager_headers)
        assert resp.status_code == 400

    def test_requires_manager(self, client, seller_headers):
        assert client.post('/api/v1/locations', json={"address": "X"}, headers=seller_headers).status_code == 403
