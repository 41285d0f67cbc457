from __future__ import annotations

from biofarm_notify.models.notification import MessageEnvelope

VET_REQUESTS_URL = "/vet-requests"
FARMER_REQUESTS_URL = "/farmer/requests"
FARMER_DASHBOARD_URL = "/farmer-dashboard"
DASHBOARD_URL = "/dashboard"

_ALERT_TITLES = {
    "warning": "Warning Alert",
    "alert": "Critical Alert",
}


def _data(**values: str | None) -> dict[str, str]:
    return {key: "" if value is None else str(value) for key, value in values.items()}


def new_request(request_id: str, animal_type: str, category: str | None) -> MessageEnvelope:
    return MessageEnvelope(
        title="New Animal Treatment Request",
        body=f"A farmer needs help with {animal_type} - {category or 'treatment needed'}",
        data=_data(requestId=request_id, animalType=animal_type, entityType="vetRequest", url=VET_REQUESTS_URL),
    )


def report_available(report_id: str, animal_type: str) -> MessageEnvelope:
    return MessageEnvelope(
        title="Vet Submitted a Treatment Report",
        body=f"Treatment report available for your {animal_type}",
        data=_data(reportId=report_id, animalType=animal_type, entityType="vetReport", url=FARMER_REQUESTS_URL),
    )


def treatment_completed(request_id: str, animal_type: str) -> MessageEnvelope:
    return MessageEnvelope(
        title="Treatment Completed!",
        body=f"Your {animal_type} has been treated. Check the details now.",
        data=_data(requestId=request_id, animalType=animal_type, entityType="vetRequest", url=FARMER_REQUESTS_URL),
    )


def new_alert(alert_id: str, message: str, alert_type: str | None) -> MessageEnvelope:
    return MessageEnvelope(
        title="New Alert",
        body=message,
        data=_data(alertId=alert_id, type=alert_type or "info", entityType="alert", url=DASHBOARD_URL),
    )


def farmers_alert_broadcast(alert_type: str, message: str, created_by_name: str | None) -> MessageEnvelope:
    body = f"{created_by_name}: {message}" if created_by_name else message
    return MessageEnvelope(
        title=_ALERT_TITLES.get(alert_type, "New Information"),
        body=body,
        data=_data(alertType=alert_type, entityType="alert", url=FARMER_DASHBOARD_URL),
    )


def vets_request_broadcast(
    request_id: str | None,
    animal_type: str,
    category: str,
    farmer_name: str | None,
) -> MessageEnvelope:
    who = farmer_name or "A farmer"
    return MessageEnvelope(
        title="New Animal Treatment Request",
        body=f"{who} needs help with {animal_type} - {category}",
        data=_data(
            requestId=request_id or "unknown",
            animalType=animal_type,
            entityType="vetRequest",
            url=VET_REQUESTS_URL,
        ),
    )


def farmer_treatment_update(
    request_id: str | None,
    animal_type: str,
    vet_name: str | None,
    diagnosis: str | None,
    treatment: str | None,
) -> MessageEnvelope:
    parts = [f"Your {animal_type} has been treated"]
    if vet_name:
        parts[0] += f" by {vet_name}"
    if diagnosis:
        parts.append(f"Diagnosis: {diagnosis}")
    if treatment:
        parts.append(f"Treatment: {treatment}")
    return MessageEnvelope(
        title="Treatment Completed!",
        body=". ".join(parts) + ".",
        data=_data(
            requestId=request_id or "",
            animalType=animal_type,
            entityType="vetRequest",
            url=FARMER_REQUESTS_URL,
        ),
    )
