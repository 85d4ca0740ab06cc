"""HTTP endpoints"""
from queueflow.utils.logger import get_correlation_id


async def issue(api, service_id=1, **body):
    response = await api.post("/api/kiosk/tickets", json={"serviceId": service_id, **body})
    assert response.status_code == 201, response.text
    return response.json()["ticket"]


# =============================================================================
# Kiosk
# =============================================================================

async def test_create_ticket(api):
    response = await api.post("/api/kiosk/tickets", json={
        "serviceId": 1, "customerName": "  Dana ", "customerEmail": "", "priority": 1,
    })

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    ticket = body["ticket"]
    assert ticket["ticketNumber"] == "A001"
    assert ticket["customerName"] == "Dana"
    assert ticket["queuePosition"] == 1
    assert ticket["estimatedWait"] == 300
    assert ticket["estimatedWaitMinutes"] == 5
    assert response.headers["X-Correlation-Id"]


async def test_create_ticket_accepts_snake_case(api):
    response = await api.post("/api/kiosk/tickets", json={"service_id": 2})

    assert response.status_code == 201
    assert response.json()["ticket"]["ticketNumber"] == "B001"


async def test_create_ticket_errors(api):
    response = await api.post("/api/kiosk/tickets", json={"serviceId": 3})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid or inactive service"}

    response = await api.post("/api/kiosk/tickets", json={"serviceId": 1, "priority": 5})
    assert response.status_code == 400
    assert response.json()["error"].startswith("priority:")

    response = await api.post("/api/kiosk/tickets", json={})
    assert response.status_code == 400
    assert response.json()["error"].startswith("serviceId:")


async def test_list_services(api):
    await issue(api, 1)
    await issue(api, 1)

    response = await api.get("/api/kiosk/services")

    assert response.status_code == 200
    services = {s["id"]: s for s in response.json()["services"]}
    assert set(services) == {1, 2}
    assert services[1]["waiting"] == 2
    assert services[1]["queueCount"] == 2
    assert services[1]["nowServing"] == "None"
    assert services[1]["estimatedWaitMinutes"] == 10


# =============================================================================
# Terminal
# =============================================================================

async def test_call_and_complete_flow(api):
    ticket = await issue(api, 1)

    response = await api.post("/api/terminal/call-next", json={"counterId": 3, "agentId": 7})
    assert response.status_code == 200
    body = response.json()
    assert body["ticket"]["id"] == ticket["id"]
    assert body["ticket"]["state"] == "called"
    assert body["ticket"]["counterId"] == 3
    assert body["ticket"]["customerName"] == "Customer"
    assert body["queueUpdate"]["waiting"] == 0
    assert body["queueUpdate"]["serving"] == 1

    counters = {c["id"]: c for c in (await api.get("/api/counters")).json()["counters"]}
    assert counters[3]["state"] == "serving"
    assert counters[3]["currentTicketId"] == ticket["id"]

    action = {"ticketId": ticket["id"], "counterId": 3, "agentId": 7}
    response = await api.post("/api/terminal/complete", json={**action, "notes": "done"})
    assert response.status_code == 200
    assert response.json()["ticket"]["state"] == "completed"

    response = await api.post("/api/terminal/complete", json=action)
    assert response.status_code == 400
    assert response.json() == {"error": "Ticket already completed"}

    counters = {c["id"]: c for c in (await api.get("/api/counters")).json()["counters"]}
    assert counters[3]["state"] == "available"
    assert counters[3]["currentTicketId"] is None


async def test_call_next_errors(api):
    response = await api.post("/api/terminal/call-next", json={"counterId": 3, "agentId": 7})
    assert response.status_code == 404
    assert response.json() == {"error": "No tickets waiting in queue"}

    response = await api.post("/api/terminal/call-next", json={"counterId": 3, "agentId": 7, "serviceId": 2})
    assert response.status_code == 403
    assert response.json() == {"error": "Agent is not assigned to this service"}

    response = await api.post("/api/terminal/call-next", json={"agentId": 7})
    assert response.status_code == 400
    assert response.json()["error"].startswith("counterId:")


async def test_recall_no_show_recycle(api):
    ticket = await issue(api, 1)
    action = {"ticketId": ticket["id"], "counterId": 3, "agentId": 7}
    await api.post("/api/terminal/call-next", json={"counterId": 3, "agentId": 7})

    response = await api.post("/api/terminal/recall", json=action)
    assert response.status_code == 200
    assert response.json()["ticket"]["recallCount"] == 2

    response = await api.post("/api/terminal/recycle", json={**action, "position": 2})
    assert response.status_code == 200
    body = response.json()
    assert body["ticket"]["state"] == "waiting"
    assert body["ticket"]["requestedPosition"] == 2
    assert body["queueUpdate"]["tickets"][0]["id"] == ticket["id"]

    response = await api.post("/api/terminal/no-show", json=action)
    assert response.status_code == 404
    assert response.json() == {"error": "Ticket not found or not in called state"}


async def test_transfer(api):
    ticket = await issue(api, 1, customerName="Robin")
    await api.post("/api/terminal/call-next", json={"counterId": 3, "agentId": 7})

    response = await api.post("/api/terminal/transfer", json={
        "ticketId": ticket["id"], "targetServiceId": 2, "counterId": 3, "agentId": 7,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["ticket"]["number"] == "A001"
    assert body["ticket"]["serviceId"] == 2
    assert body["ticket"]["previousId"] == ticket["id"]
    assert body["ticket"]["customerName"] == "Robin"
    assert body["queueUpdate"]["fromService"]["serviceId"] == 1
    assert body["queueUpdate"]["toService"]["waiting"] == 1

    queue = (await api.get("/api/terminal/queue/2")).json()
    assert queue["service"] == {"id": 2, "name": "Payments", "prefix": "B"}
    assert queue["tickets"][0]["ticketNumber"] == "A001"


async def test_queue_and_agent_services(api):
    await issue(api, 1)

    response = await api.get("/api/terminal/queue/1")
    assert response.status_code == 200
    body = response.json()
    assert body["serviceId"] == body["service_id"] == 1
    assert body["waiting"] == 1

    response = await api.get("/api/terminal/queue/3")
    assert response.status_code == 404
    assert response.json() == {"error": "Service not found"}

    response = await api.get("/api/terminal/agent/9/services")
    assert [s["id"] for s in response.json()["services"]] == [2, 1]


# =============================================================================
# Admin
# =============================================================================

async def test_system_reset(api):
    await issue(api, 1)

    response = await api.post("/api/admin/system/reset", json={"reason": "end of day", "silent": True})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["deletedTickets"] == 1
    assert body["reason"] == "end of day"

    response = await api.post("/api/admin/system/reset")
    assert response.status_code == 200
    assert response.json()["reason"] == "manual"

    status = (await api.get("/api/admin/system/reset-status")).json()
    assert status["lastResetReason"] == "manual"
    assert status["lastResetSummary"]["deletedTickets"] == 0
    assert status["inProgress"] is False


async def test_preset_queue(api):
    response = await api.post("/api/admin/system/preset-queue", json={
        "serviceId": 1, "startNumber": 10, "count": 5,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["insertedCount"] == 5
    assert [t["number"] for t in body["insertedTickets"]] == ["A011", "A012", "A013", "A014", "A015"]
    assert body["finalNumber"] == 15

    response = await api.post("/api/admin/system/preset-queue", json={
        "serviceId": 3, "startNumber": 0, "count": 1,
    })
    assert response.status_code == 404
    assert response.json() == {"error": "Service not found or inactive"}


async def test_reset_config(api):
    response = await api.put("/api/admin/system/reset-config", json={"resetTime": "22:15", "dailyReset": True})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["enabled"] is True
    assert body["resetTime"] == "22:15"
    assert body["nextRunAt"] is not None

    response = await api.put("/api/admin/system/reset-config", json={"resetTime": "25:00", "dailyReset": True})
    assert response.status_code == 400
    assert response.json() == {"error": "resetTime must be in HH:MM 24h format"}


# =============================================================================
# Health / errors
# =============================================================================

async def test_health(api):
    response = await api.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"]["database"] == "sqlite"


async def test_unknown_route(api):
    response = await api.get("/api/nowhere")

    assert response.status_code == 404
    assert "error" in response.json()


async def test_unexpected_error_is_500(api, container, monkeypatch):
    async def broken():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(container.terminal, "list_counters", broken)

    response = await api.get("/api/counters")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


async def test_correlation_id_is_echoed(api):
    response = await api.get("/api/counters", headers={"X-Correlation-Id": "COR-test-1"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-Id"] == "COR-test-1"


async def test_generated_correlation_id_reaches_handler(api, container, monkeypatch):
    seen = []
    agent_services = container.terminal.agent_services

    async def recording(agent_id):
        seen.append(get_correlation_id())
        return await agent_services(agent_id)

    monkeypatch.setattr(container.terminal, "agent_services", recording)

    response = await api.get("/api/terminal/agent/7/services")

    assert response.status_code == 200
    assert response.headers["X-Correlation-Id"].startswith("COR-")
    assert seen == [response.headers["X-Correlation-Id"]]
