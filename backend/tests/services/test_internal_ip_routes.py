"""Tests for internal IP rule CRUD."""


async def test_create_exact_rule_by_default(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/internal-ips", headers=user_headers, json={
        "ip": " 198.51.100.7 ", "label": "Office",
    })
    assert resp.status_code == 201
    data = resp.json()
    assert data["ip"] == "198.51.100.7"
    assert data["ruleType"] == "exact"


async def test_invalid_cidr_rejected(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/internal-ips", headers=user_headers, json={
        "ip": "198.51.100.0", "ruleType": "cidr",
    })
    assert resp.status_code == 400


async def test_ipv6_cidr_accepted(client, project_url, user_headers):
    resp = await client.post(f"{project_url}/internal-ips", headers=user_headers, json={
        "ip": "2001:db8::/32", "ruleType": "cidr",
    })
    assert resp.status_code == 201


async def test_update_revalidates_cidr(client, project_url, user_headers):
    created = (await client.post(f"{project_url}/internal-ips", headers=user_headers, json={
        "ip": "10.1.", "ruleType": "prefix",
    })).json()
    url = f"{project_url}/internal-ips/{created['id']}"

    bad = await client.patch(url, headers=user_headers, json={"ruleType": "cidr"})
    assert bad.status_code == 400

    good = await client.patch(url, headers=user_headers, json={
        "ip": "10.1.0.0/16", "ruleType": "cidr", "label": None,
    })
    assert good.status_code == 200
    assert good.json()["ruleType"] == "cidr"
    assert good.json()["label"] is None


async def test_list_and_delete(client, project_url, user_headers):
    created = (await client.post(f"{project_url}/internal-ips", headers=user_headers, json={
        "ip": "198.51.100.7",
    })).json()
    listed = (await client.get(f"{project_url}/internal-ips", headers=user_headers)).json()
    assert [r["id"] for r in listed] == [created["id"]]

    url = f"{project_url}/internal-ips/{created['id']}"
    assert (await client.delete(url, headers=user_headers)).status_code == 200
    assert (await client.delete(url, headers=user_headers)).status_code == 404


async def test_rules_are_owner_only(client, project_url, other_headers):
    resp = await client.get(f"{project_url}/internal-ips", headers=other_headers)
    assert resp.status_code == 403
