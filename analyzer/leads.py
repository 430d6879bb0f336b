import logging

import requests


LEADS_TABLE = "leads"
CRM_TIMEOUT = 20

logger = logging.getLogger(__name__)


class LeadSaveError(Exception):
    """Raised when the lead row could not be persisted."""
    pass


def build_lead_row(data: dict) -> dict:
    audit = data.get("auditResults")
    if not isinstance(audit, dict):
        audit = None
    return {
        "type": data.get("type"),
        "name": data.get("name") or None,
        "email": data.get("email"),
        "phone": data.get("phone") or None,
        "company": data.get("company") or None,
        "message": data.get("message") or None,
        "website_url": (audit or {}).get("url") or None,
        "audit_score": (audit or {}).get("overallScore"),
        "audit_data": audit,
        "status": "new",
        "zoho_synced": False,
    }


def save_lead(client, row: dict) -> dict:
    """Insert ``row`` into the leads table and return the stored record."""
    logger.info("Saving lead type=%s", row.get("type"))
    try:
        resp = client.table(LEADS_TABLE).insert(row).execute()
    except Exception as e:
        raise LeadSaveError(f"Failed to save lead: {e}")
    if not resp.data:
        raise LeadSaveError("Failed to save lead: insert returned no rows")
    saved = resp.data[0]
    logger.info("Lead saved: %s", saved.get("id"))
    return saved


def build_crm_payload(lead: dict) -> dict:
    name_parts = (lead.get("name") or "Website User").split()
    first_name = name_parts[0] if name_parts else "Website"
    last_name = " ".join(name_parts[1:]) if len(name_parts) > 1 else "User"
    audit = lead.get("audit_data") or {}

    def metric(value):
        return "N/A" if value is None else value

    audit_details = "\n".join([
        f"Audit Score: {metric(lead.get('audit_score'))}/100",
        f"Type: {lead.get('type')}",
        f"Performance: {metric(audit.get('performance'))}",
        f"SEO: {metric(audit.get('seo'))}",
        f"Mobile: {metric(audit.get('mobile'))}",
        f"Accessibility: {metric(audit.get('accessibility'))}",
    ])
    return {
        "first_name": first_name,
        "last_name": last_name,
        "email": lead.get("email"),
        "phone": lead.get("phone") or "",
        "company": lead.get("company") or lead.get("website_url") or "Not Provided",
        "description": lead.get("message") or f"{lead.get('type')} request from website audit tool",
        "website": lead.get("website_url") or "",
        "lead_source": "Web Download",
        "lead_status": "Attempted to Contact",
        "audit_details": audit_details,
    }


def sync_to_crm(lead: dict, webhook_url: str, timeout: float = CRM_TIMEOUT):
    if not webhook_url:
        logger.info("CRM webhook URL not configured, skipping sync")
        return None
    response = requests.post(webhook_url, json=build_crm_payload(lead), timeout=timeout)
    response.raise_for_status()
    logger.info("CRM sync successful for lead %s", lead.get("id"))
    return response


def notify_team(lead: dict):
    logger.info(
        "New lead: type=%s name=%s score=%s",
        lead.get("type"),
        lead.get("name"),
        lead.get("audit_score"),
    )


def relay_lead(lead: dict, webhook_url: str):
    """Best-effort downstream sync. Errors are logged, never raised."""
    try:
        sync_to_crm(lead, webhook_url)
    except Exception as e:
        logger.error("CRM sync failed (non-critical): %s", e)
    try:
        notify_team(lead)
    except Exception as e:
        logger.error("Team notification failed (non-critical): %s", e)
