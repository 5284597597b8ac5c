"""
Tests for the HTTP layer.
"""
from tracker.tests.conftest import store_day


def create_perfect_day(client, habit_id, target_date):
    iso = target_date.isoformat()
    client.post(f"/api/habits/{habit_id}/completions/{iso}")
    client.post("/api/tasks", json={"description": "Plan sprint", "target_date": iso, "is_done": True})
    response = client.post(
        "/api/time-logs",
        json={"type": "productive", "date_logged_for": iso, "duration_minutes": 360}
    )
    assert response.status_code == 201


class TestScoreEndpoints:
    """Tests for score and streak endpoints"""

    def test_health(self, client):
        assert client.get("/").json()["status"] == "active"

    def test_daily_score_on_demand(self, client, day1):
        response = client.get(f"/api/daily-score/{day1.isoformat()}")

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == day1.isoformat()
        assert body["total_score"] == 0.0

    def test_invalid_date_is_400(self, client):
        response = client.get("/api/daily-score/2026-02-31")

        assert response.status_code == 400
        assert "date" in response.json()["detail"]

    def test_streak_flow(self, client, day1, day2, day3):
        """Three perfect days, then day 1's habit is undone"""
        habit = client.post("/api/habits", json={"name": "Write", "current_weight": 1.0}).json()
        for day in (day1, day2, day3):
            create_perfect_day(client, habit["id"], day)

        assert client.get("/api/streak").json() == {"current_streak_days": 3}

        response = client.delete(f"/api/habits/{habit['id']}/completions/{day1.isoformat()}")
        assert response.status_code == 200
        assert client.get("/api/streak").json() == {"current_streak_days": 2}

    def test_rest_day_and_notes(self, client, day1):
        iso = day1.isoformat()

        rest = client.put(f"/api/daily-status/{iso}", json={"is_rest_day": True})
        notes = client.put(f"/api/daily-notes/{iso}", json={"notes": "Family visit"})

        assert rest.json()["is_rest_day"] is True
        assert notes.json()["notes"] == "Family visit"
        assert notes.json()["is_rest_day"] is True

    def test_history(self, client, db_session, day1, day2):
        store_day(db_session, day2, habit=100, task=100)

        response = client.get(
            "/api/scores/history",
            params={"start_date": day1.isoformat(), "end_date": day2.isoformat()}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert [point["date"] for point in data] == [day1.isoformat(), day2.isoformat()]
        assert data[0]["total_score"] == 0.0

    def test_history_reversed_range_is_400(self, client, day1, day2):
        response = client.get(
            "/api/scores/history",
            params={"start_date": day2.isoformat(), "end_date": day1.isoformat()}
        )

        assert response.status_code == 400

    def test_manual_reconcile(self, client, db_session, day1, day2):
        store_day(db_session, day1, habit=100, task=100, time=60, bonus=1.0, streak=1)
        store_day(db_session, day2, habit=100, task=100, time=60, streak=0)

        response = client.post(f"/api/streaks/reconcile/{day2.isoformat()}")

        assert response.status_code == 200
        assert response.json()["days_changed"] == 1
        assert client.get("/api/streak").json() == {"current_streak_days": 2}


class TestMutationEndpoints:
    def test_unknown_habit_is_404(self, client, day1):
        response = client.post(f"/api/habits/77/completions/{day1.isoformat()}")

        assert response.status_code == 404

    def test_invalid_weight_is_422(self, client):
        response = client.post("/api/habits", json={"name": "Too heavy", "current_weight": 1.5})

        assert response.status_code == 422

    def test_task_lifecycle(self, client, day1):
        created = client.post(
            "/api/tasks",
            json={"description": "Review PR", "target_date": day1.isoformat()}
        )
        assert created.status_code == 201
        task_id = created.json()["id"]

        updated = client.put(f"/api/tasks/{task_id}", json={"is_done": True})
        assert updated.json()["completion_date"] == day1.isoformat()
        score = client.get(f"/api/daily-score/{day1.isoformat()}").json()
        assert score["task_component"] == 100.0

        assert client.delete(f"/api/tasks/{task_id}").status_code == 204
        assert client.delete(f"/api/tasks/{task_id}").status_code == 404

    def test_habit_reads_and_delete(self, client, day1, day2):
        habit = client.post("/api/habits", json={"name": "Write", "current_weight": 1.0}).json()
        retired = client.post("/api/habits", json={"name": "Old", "current_weight": 0.1}).json()
        client.put(f"/api/habits/{retired['id']}", json={"is_archived": True})
        create_perfect_day(client, habit["id"], day1)

        archived = client.get("/api/habits/archived").json()
        completions = client.get("/api/habits/completions", params={"date": day1.isoformat()}).json()
        history = client.get(
            f"/api/habits/{habit['id']}/history",
            params={"start_date": day1.isoformat(), "end_date": day2.isoformat()}
        ).json()

        assert [h["name"] for h in archived] == ["Old"]
        assert completions[0]["habit_id"] == habit["id"]
        assert completions[0]["weight_at_completion"] == 1.0
        assert [point["completed"] for point in history["data"]] == [True, False]

        assert client.delete(f"/api/habits/{habit['id']}").status_code == 204
        score = client.get(f"/api/daily-score/{day1.isoformat()}").json()
        assert score["habit_component"] == 0.0
        assert client.get("/api/streak").json() == {"current_streak_days": 0}
        assert client.delete(f"/api/habits/{habit['id']}").status_code == 404

    def test_list_tasks_and_time_logs(self, client, day1, day2):
        habit = client.post("/api/habits", json={"name": "Write", "current_weight": 1.0}).json()
        create_perfect_day(client, habit["id"], day1)
        client.post("/api/tasks", json={"description": "Tomorrow", "target_date": day2.isoformat()})

        all_tasks = client.get("/api/tasks").json()
        day1_tasks = client.get("/api/tasks", params={"date": day1.isoformat()}).json()
        logs = client.get("/api/time-logs", params={"date": day1.isoformat()}).json()

        assert len(all_tasks) == 2
        assert [t["description"] for t in day1_tasks] == ["Plan sprint"]
        assert [log["duration_minutes"] for log in logs] == [360]

    def test_time_logs_require_date(self, client):
        assert client.get("/api/time-logs").status_code == 422

    def test_time_log_validation(self, client, day1):
        response = client.post(
            "/api/time-logs",
            json={"type": "sleeping", "date_logged_for": day1.isoformat(), "duration_minutes": 30}
        )

        assert response.status_code == 422
