"""Tests for API endpoints."""

import time

from netsentinel.main import app


def _wait_for_report(client, attempts: int = 50) -> dict:
    """Poll /api/report until the background analysis publishes."""
    data = client.get("/api/report").json()
    for _ in range(attempts):
        if data["report"] is not None:
            break
        time.sleep(0.02)
        data = client.get("/api/report").json()
    return data


class TestHealthEndpoint:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestReadEndpoints:
    def test_devices_empty_before_monitoring(self, client):
        resp = client.get("/api/devices")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_status_defaults(self, client):
        data = client.get("/api/status").json()
        assert data == {
            "monitoring": False,
            "auto_analyze": False,
            "analyzing": False,
            "subnet": "192.168.1",
        }

    def test_report_empty(self, client):
        data = client.get("/api/report").json()
        assert data["report"] is None
        assert data["completed_at"] is None

    def test_stats_empty(self, client):
        data = client.get("/api/stats").json()
        assert data["total_devices"] == 0
        assert data["online_devices"] == 0


class TestMonitoringControls:
    def test_start_populates_devices(self, client):
        resp = client.post("/api/monitoring/start")
        assert resp.status_code == 200
        assert resp.json()["monitoring"] is True

        devices = client.get("/api/devices").json()
        ips = [d["ip"] for d in devices]
        assert "192.168.1.1" in ips
        assert "192.168.1.42" in ips
        host = next(d for d in devices if d["ip"] == "192.168.1.42")
        assert host["security_risk"] == "medium"
        assert host["open_ports"][0] == {"port": 445, "service": "SMB", "vulnerability": None}

    def test_stop(self, client):
        client.post("/api/monitoring/start")
        resp = client.post("/api/monitoring/stop")
        assert resp.json()["monitoring"] is False

        events = client.get("/api/events").json()
        assert events[0]["message"] == "Monitoring stopped."
        assert events[0]["severity"] == "alert"

    def test_events_limit(self, client):
        client.post("/api/monitoring/start")
        client.post("/api/monitoring/stop")
        events = client.get("/api/events?limit=1").json()
        assert len(events) == 1

    def test_events_limit_must_be_positive(self, client):
        client.post("/api/monitoring/start")
        assert client.get("/api/events?limit=0").status_code == 422
        assert client.get("/api/events?limit=-1").status_code == 422

    def test_stats_after_start(self, client):
        client.post("/api/monitoring/start")
        data = client.get("/api/stats").json()
        assert data["total_devices"] >= 2
        assert data["online_devices"] + data["offline_devices"] == data["total_devices"]

    def test_toggle_auto_analyze(self, client):
        resp = client.put("/api/auto-analyze", json={"enabled": True})
        assert resp.status_code == 200
        assert resp.json()["auto_analyze"] is True
        assert app.state.monitor.auto_analyze is True

    def test_toggle_auto_analyze_validates_body(self, client):
        resp = client.put("/api/auto-analyze", json={})
        assert resp.status_code == 422


class TestAnalyzeEndpoint:
    def test_rejected_when_not_monitoring(self, client):
        resp = client.post("/api/analyze")
        assert resp.status_code == 409
        assert "not running" in resp.json()["detail"]

    def test_manual_analysis(self, client):
        client.post("/api/monitoring/start")
        resp = client.post("/api/analyze")
        assert resp.status_code == 202

        data = _wait_for_report(client)
        assert data["report"].startswith("# Report")
        assert data["completed_at"] is not None
