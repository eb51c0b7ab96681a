import json

from ares_bot.handlers import main


def _event(method, path):
    return {"requestContext": {"http": {"method": method, "path": path}}}


def test_main_routes_health(monkeypatch):
    monkeypatch.setattr(main.health_check, "lambda_handler", lambda e, c: {"status": "ok"})
    resp = main.lambda_handler(_event("GET", "/health"), None)
    assert resp["status"] == "ok"


def test_main_routes_webhook(monkeypatch):
    marker = {}

    def fake_handler(event, context):
        marker["called"] = True
        return {"statusCode": 200}

    monkeypatch.setattr(main.webhook, "lambda_handler", fake_handler)
    resp = main.lambda_handler(_event("POST", "/messages"), None)
    assert resp["statusCode"] == 200
    assert marker["called"] is True


def test_main_routes_classify_before_webhook(monkeypatch):
    monkeypatch.setattr(main.webhook, "lambda_handler", lambda e, c: {"route": "webhook"})
    monkeypatch.setattr(main.classification, "lambda_handler", lambda e, c: {"route": "classify"})
    resp = main.lambda_handler(_event("POST", "/messages/classify"), None)
    assert resp["route"] == "classify"


def test_main_routes_reports(monkeypatch):
    monkeypatch.setattr(main.reports, "lambda_handler", lambda e, c: {"reports": True})
    resp = main.lambda_handler(_event("POST", "/reports/send/"), None)
    assert resp["reports"] is True


def test_main_unknown_route():
    resp = main.lambda_handler(_event("GET", "/messages"), None)
    assert resp["statusCode"] == 404
    body = json.loads(resp["body"])
    assert body["message"] == "Route not found"
    assert body["route"] == "GET /messages"
