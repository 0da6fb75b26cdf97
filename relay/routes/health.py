from flask import Blueprint, jsonify
from relay.utils.config import get_settings


bp = Blueprint("health", __name__, url_prefix="/api/system")


@bp.get("/health")
def health():
    s = get_settings()
    status = {
        "flask": "ok",
        "storage": "configured" if s.bucket_name and s.service_account_key else "not_configured",
        "supabase": "configured" if s.supabase_url and s.supabase_service_role_key else "not_configured",
        "mailgun": "configured" if s.mailgun_api_key and s.mailgun_domain else "not_configured",
    }
    return jsonify(status), 200
