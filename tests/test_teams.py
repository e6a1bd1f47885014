# tests/test_teams.py
from conftest import create_team, create_task, register


def test_creator_becomes_admin_member(client, alice):
    team = create_team(client, alice, name="Core")

    assert team["ownerId"] == alice["user"]["id"]
    assert team["memberCount"] == 1
    assert team["joinCode"] is None

    members = client.get(f"/teams/{team['id']}/members", headers=alice["headers"]).json()["data"]
    assert [(m["user"]["username"], m["role"]) for m in members] == [("alice", "ADMIN")]


def test_team_name_too_short(client, alice):
    response = client.post("/teams", json={"name": "x"}, headers=alice["headers"])
    assert response.status_code == 400


def test_join_public_team_twice_is_conflict(client, alice, bob):
    team = create_team(client, alice)

    first = client.post("/teams/join", json={"teamId": team["id"]}, headers=bob["headers"])
    assert first.status_code == 200
    assert first.json()["data"]["role"] == "MEMBER"

    second = client.post("/teams/join", json={"teamId": team["id"]}, headers=bob["headers"])
    assert second.status_code == 409


def test_join_private_team_requires_code(client, alice, bob):
    team = create_team(client, alice, name="Secret", team_type="PRIVATE")
    assert team["joinCode"]

    by_id = client.post("/teams/join", json={"teamId": team["id"]}, headers=bob["headers"])
    assert by_id.status_code == 403

    wrong = client.post("/teams/join", json={"joinCode": "nope"}, headers=bob["headers"])
    assert wrong.status_code == 404

    ok = client.post("/teams/join", json={"joinCode": team["joinCode"]}, headers=bob["headers"])
    assert ok.status_code == 200

    again = client.post("/teams/join", json={"joinCode": team["joinCode"]}, headers=bob["headers"])
    assert again.status_code == 409


def test_join_without_target_is_bad_request(client, alice):
    response = client.post("/teams/join", json={}, headers=alice["headers"])
    assert response.status_code == 400
    assert "Either teamId or joinCode must be provided" in response.json()["message"]


def test_private_team_hidden_from_outsiders(client, alice, bob):
    team = create_team(client, alice, name="Secret", team_type="PRIVATE")

    assert client.get(f"/teams/{team['id']}", headers=bob["headers"]).status_code == 403
    public = client.get("/teams", headers=bob["headers"]).json()["data"]
    assert public["total"] == 0


def test_team_settings_are_owner_only(client, alice, bob, team):
    # bob is a member but not the owner
    update = client.put(f"/teams/{team['id']}", json={"name": "Renamed"}, headers=bob["headers"])
    assert update.status_code == 403

    delete = client.delete(f"/teams/{team['id']}", headers=bob["headers"])
    assert delete.status_code == 403

    owner_update = client.put(f"/teams/{team['id']}", json={"type": "PRIVATE"}, headers=alice["headers"])
    assert owner_update.status_code == 200
    assert owner_update.json()["data"]["joinCode"]


def test_admin_who_is_not_owner_cannot_regenerate_code(client, alice, bob):
    team = create_team(client, alice, name="Secret", team_type="PRIVATE")
    invite = client.post(f"/teams/{team['id']}/members", json={"username": "bob", "role": "ADMIN"},
                         headers=alice["headers"])
    assert invite.status_code == 200

    by_admin = client.post(f"/teams/{team['id']}/regenerate-join-code", headers=bob["headers"])
    assert by_admin.status_code == 403

    by_owner = client.post(f"/teams/{team['id']}/regenerate-join-code", headers=alice["headers"])
    assert by_owner.status_code == 200
    assert by_owner.json()["data"]["joinCode"] != team["joinCode"]


def test_owner_cannot_leave(client, alice, bob, team):
    assert client.post(f"/teams/{team['id']}/leave", headers=alice["headers"]).status_code == 403
    assert client.post(f"/teams/{team['id']}/leave", headers=bob["headers"]).status_code == 200

    ids = client.get("/teams/user/team-ids", headers=bob["headers"]).json()["data"]
    assert ids == []


def test_my_teams_lists_memberships(client, alice, bob, team):
    create_team(client, alice, name="Solo")

    mine = client.get("/teams/my-teams", headers=bob["headers"]).json()["data"]
    assert [t["name"] for t in mine["teams"]] == ["Platform"]
    assert mine["totalPages"] == 1


def test_delete_team_removes_tasks(client, alice, team):
    create_task(client, alice, team["id"], "Doomed")

    assert client.delete(f"/teams/{team['id']}", headers=alice["headers"]).status_code == 200
    assert client.get(f"/teams/{team['id']}", headers=alice["headers"]).status_code == 404
    assert client.get("/tasks", headers=alice["headers"]).json()["data"]["total"] == 0


def test_team_stats(client, alice, bob, team):
    create_task(client, alice, team["id"], "One")
    create_task(client, alice, team["id"], "Two", status="DONE")

    stats = client.get(f"/teams/{team['id']}/stats", headers=bob["headers"]).json()["data"]
    assert stats["totalMembers"] == 2
    assert stats["totalTasks"] == 2
    assert stats["tasksByStatus"] == {"todo": 1, "inProgress": 0, "done": 1}
    assert stats["recentActivity"] == 2

    outsider = register(client, "eve")
    assert client.get(f"/teams/{team['id']}/stats", headers=outsider["headers"]).status_code == 403
