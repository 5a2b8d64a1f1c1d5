"""
Tests for the REST API.
"""

from streakly.database import StorageError


def test_missing_user_header(client):
    """Test requests without X-User-Id are rejected."""
    response = client.get("/api/tasks")
    assert response.status_code == 401
    assert "X-User-Id" in response.get_json()["error"]


def test_task_lifecycle(client, headers):
    """Test create, list, complete and delete a task over HTTP."""
    response = client.post("/api/tasks", json={"text": "Write tests", "priority": "high"}, headers=headers)
    assert response.status_code == 201
    task = response.get_json()["task"]
    assert task["priority"] == "high"

    listed = client.get("/api/tasks", headers=headers).get_json()["tasks"]
    assert [t["id"] for t in listed] == [task["id"]]

    response = client.patch(f"/api/tasks/{task['id']}", json={"completed": True}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["task"]["completed_at"] == "2024-03-15T10:30:00"

    assert client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/tasks/{task['id']}", headers=headers).status_code == 404


def test_invalid_task_rejected(client, headers):
    assert client.post("/api/tasks", json={"text": ""}, headers=headers).status_code == 400
    response = client.post("/api/tasks", json={"text": "x", "priority": "urgent"}, headers=headers)
    assert response.status_code == 400
    assert "priority" in response.get_json()["error"]


def test_non_string_task_text_rejected(client, headers):
    response = client.post("/api/tasks", json={"text": 5}, headers=headers)
    assert response.status_code == 400
    assert "text" in response.get_json()["error"]


def test_string_completed_flag_rejected(client, headers):
    """Test "false" is not taken as a truthy completion."""
    task = client.post("/api/tasks", json={"text": "Read"}, headers=headers).get_json()["task"]

    response = client.patch(f"/api/tasks/{task['id']}", json={"completed": "false"}, headers=headers)

    assert response.status_code == 400
    listed = client.get("/api/tasks", headers=headers).get_json()["tasks"]
    assert listed[0]["completed"] is False


def test_non_string_habit_name_rejected(client, headers):
    assert client.post("/api/habits", json={"name": ["Run"]}, headers=headers).status_code == 400


def test_non_object_body_rejected(client, headers):
    assert client.post("/api/tasks", json=["text"], headers=headers).status_code == 400


def test_users_are_isolated(client, headers):
    client.post("/api/tasks", json={"text": "Mine"}, headers=headers)
    other = client.get("/api/tasks", headers={"X-User-Id": "someone-else"}).get_json()
    assert other["tasks"] == []


def test_habit_toggle(client, headers):
    """Test toggling a habit returns its tier and the points earned."""
    habit = client.post("/api/habits", json={"name": "Meditate"}, headers=headers).get_json()["habit"]

    response = client.post(f"/api/habits/{habit['id']}/toggle", headers=headers)

    assert response.status_code == 200
    body = response.get_json()
    assert body["habit"]["streak"] == 1
    assert body["tier"]["name"] == "Starting"
    assert body["points_earned"] == 10

    listed = client.get("/api/habits", headers=headers).get_json()["habits"]
    assert listed[0]["completed_today"] is True
    assert listed[0]["tier"]["next_threshold"] == 3


def test_habit_update_and_delete(client, headers):
    habit = client.post("/api/habits", json={"name": "Run"}, headers=headers).get_json()["habit"]

    response = client.patch(f"/api/habits/{habit['id']}", json={"name": "Run 5k", "streak": 99}, headers=headers)
    assert response.get_json()["habit"]["name"] == "Run 5k"
    assert response.get_json()["habit"]["streak"] == 0

    assert client.delete(f"/api/habits/{habit['id']}", headers=headers).status_code == 200
    assert client.post(f"/api/habits/{habit['id']}/toggle", headers=headers).status_code == 404


def test_gamification_dashboard(client, headers):
    """Test the evaluation endpoint returns level, challenges and achievements."""
    client.post("/api/tasks", json={"text": "Done already"}, headers=headers)
    task_id = client.get("/api/tasks", headers=headers).get_json()["tasks"][0]["id"]
    client.patch(f"/api/tasks/{task_id}", json={"completed": True}, headers=headers)

    body = client.get("/api/gamification", headers=headers).get_json()

    assert [a["id"] for a in body["newly_unlocked"]] == ["first-task", "productivity-guru"]
    assert body["level"]["total_points"] == 90  # 5 for the task + 85 in unlocks
    assert len(body["challenges"]) == 3
    assert len(body["achievements"]) == 7
    assert body["statistics"]["completed_tasks"] == 1


def test_claim_challenge_twice(client, headers):
    """Test a claim credits once over HTTP as well."""
    habit = client.post("/api/habits", json={"name": "Stretch"}, headers=headers).get_json()["habit"]
    client.post(f"/api/habits/{habit['id']}/toggle", headers=headers)

    first = client.post("/api/gamification/challenges/habit-streak/claim", headers=headers).get_json()
    second = client.post("/api/gamification/challenges/habit-streak/claim", headers=headers).get_json()

    assert first["credited"] is True
    assert first["points_awarded"] == 30
    assert second["credited"] is False
    assert second["total_points"] == first["total_points"]


def test_claim_unknown_challenge(client, headers):
    response = client.post("/api/gamification/challenges/nope/claim", headers=headers)
    assert response.status_code == 404


def test_levels(client, headers):
    body = client.get("/api/gamification/levels", headers=headers).get_json()
    assert [level["title"] for level in body["levels"]][:2] == ["Beginner", "Motivated"]
    assert body["progress"]["current_level_index"] == 0


def test_analytics_window(client, headers):
    body = client.get("/api/analytics?window=14", headers=headers).get_json()
    assert body["window_days"] == 14
    assert len(body["daily_series"]) == 14
    assert [w["week"] for w in body["weekly_rollup"]] == ["This Week", "Last Week"]


def test_analytics_default_window(client, headers):
    assert len(client.get("/api/analytics", headers=headers).get_json()["daily_series"]) == 7


def test_analytics_invalid_window(client, headers):
    assert client.get("/api/analytics?window=abc", headers=headers).status_code == 400
    assert client.get("/api/analytics?window=0", headers=headers).status_code == 400


def test_suggestions(client, headers):
    body = client.get("/api/suggestions", headers=headers).get_json()
    assert body["tasks"][0]["id"] == "morning-focus-1"
    assert len(body["habits"]) == 4
    assert len(body["schedule"]) == 9


def test_activities(client, headers):
    habit = client.post("/api/habits", json={"name": "Journal"}, headers=headers).get_json()["habit"]
    client.post(f"/api/habits/{habit['id']}/toggle", headers=headers)
    client.get("/api/gamification", headers=headers)

    activities = client.get("/api/activities", headers=headers).get_json()["activities"]
    assert activities
    assert all(a["type"] == "achievement" for a in activities)


def test_health(client):
    response = client.get("/api/health")
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_storage_failure_returns_503(client, headers, storage, monkeypatch):
    """Test storage outages map to 503 rather than 500."""

    def broken(user_id):
        raise StorageError("database is locked")

    monkeypatch.setattr(storage, "list_tasks", broken)
    response = client.get("/api/tasks", headers=headers)

    assert response.status_code == 503
    assert response.get_json()["error"] == "Storage unavailable"


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert "error" in response.get_json()


def test_post_activity(client, headers):
    response = client.post(
        "/api/activities", json={"type": "note", "message": "Planned the week", "icon": "🗓️"}, headers=headers
    )

    assert response.status_code == 201
    assert response.get_json()["activity"]["message"] == "Planned the week"
    listed = client.get("/api/activities", headers=headers).get_json()["activities"]
    assert [a["message"] for a in listed] == ["Planned the week"]


def test_post_activity_requires_fields(client, headers):
    response = client.post("/api/activities", json={"type": "note"}, headers=headers)
    assert response.status_code == 400


def test_profile(client, headers):
    assert client.get("/api/profile", headers=headers).status_code == 404

    response = client.put("/api/profile", json={"username": "sam", "dateOfBirth": "1990-04-01"}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()["profile"]["date_of_birth"] == "1990-04-01"

    profile = client.get("/api/profile", headers=headers).get_json()["profile"]
    assert profile["username"] == "sam"
    assert client.put("/api/profile", json={"email": "not-an-email"}, headers=headers).status_code == 400


def test_share_card(client, headers):
    habit = client.post("/api/habits", json={"name": "Stretch"}, headers=headers).get_json()["habit"]
    client.post(f"/api/habits/{habit['id']}/toggle", headers=headers)

    body = client.get("/api/share/streak", headers=headers).get_json()

    assert body["title"] == "🔥 1-Day Streak!"
    assert "Stretch" in body["share_text"]
    assert client.get("/api/share/achievement", headers=headers).status_code == 404


def test_progress_report(client, headers):
    client.post("/api/tasks", json={"text": "Done", "completed": True}, headers=headers)
    client.post("/api/tasks", json={"text": "Open"}, headers=headers)

    body = client.get("/api/progress-report?timeframe=daily", headers=headers).get_json()

    assert body["report"]["tasks"] == {"completed": 1, "total": 2, "rate": 50}
    assert body["text"].startswith("📈 Daily Update:")
    assert client.get("/api/progress-report?timeframe=yearly", headers=headers).status_code == 400
