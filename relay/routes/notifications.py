import json
import re
from urllib.parse import urlsplit

import requests
from flask import Blueprint, jsonify, request

from relay.models.errors import MalformedEventError, SubmissionError
from relay.utils.config import get_settings
from relay.utils.logger import get_logger
from relay.workflow import SubmissionWorkflow, envelope, get_workflow


bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")
logger = get_logger("notifications")

_SNS_HOST_RE = re.compile(r"^sns\.[a-z0-9-]+\.amazonaws\.com(\.cn)?$")


def _workflow() -> SubmissionWorkflow:
    return get_workflow()


def is_sns_url(url: str) -> bool:
    parsed = urlsplit(url)
    if parsed.scheme != "https" or parsed.username or parsed.password or parsed.port:
        return False
    return bool(parsed.hostname and _SNS_HOST_RE.fullmatch(parsed.hostname))


@bp.post("/sns")
def sns():
    """
    HTTP(S) subscription endpoint for the submissions topic.

    The topic posts JSON with a text/plain content type, so the body is
    decoded by hand rather than through ``request.get_json``. When
    SNS_TOPIC_ARN is set, messages from any other topic are refused.
    """
    try:
        body = json.loads(request.get_data(as_text=True) or "{}")
    except json.JSONDecodeError:
        return jsonify({"error": "body is not JSON"}), 400
    if not isinstance(body, dict):
        return jsonify({"error": "body must be a JSON object"}), 400

    kind = request.headers.get("x-amz-sns-message-type") or body.get("Type")
    if kind not in ("SubscriptionConfirmation", "Notification"):
        return jsonify({"message": f"ignored message type {kind!r}"}), 200

    pinned_topic = get_settings().sns_topic_arn
    if pinned_topic and body.get("TopicArn") != pinned_topic:
        logger.warning("Refused %s from topic %r", kind, body.get("TopicArn"))
        return jsonify({"error": "unexpected topic"}), 403

    if kind == "SubscriptionConfirmation":
        subscribe_url = body.get("SubscribeURL")
        if not subscribe_url:
            return jsonify({"error": "SubscribeURL is required"}), 400
        if not is_sns_url(subscribe_url):
            logger.warning("Refused SubscribeURL outside the notification service: %s", subscribe_url)
            return jsonify({"error": "SubscribeURL must be an https sns.<region>.amazonaws.com URL"}), 400
        try:
            r = requests.get(subscribe_url, timeout=10)
        except requests.RequestException as e:
            logger.error("Subscription confirmation failed for %s: %s", body.get("TopicArn"), e)
            return jsonify({"confirmed": False}), 502
        logger.info("Confirmed topic subscription (%s): %s", r.status_code, body.get("TopicArn"))
        return jsonify({"confirmed": r.ok}), 200 if r.ok else 502

    try:
        result = _workflow().handle(envelope(body.get("Message", "")))
    except MalformedEventError as e:
        logger.error("Rejected notification %s: %s", body.get("MessageId"), e)
        return jsonify({"error": str(e)}), 400

    if isinstance(result, SubmissionError):
        return jsonify({"status": "failed", "kind": result.kind.value, "message": result.reason}), 200
    return jsonify({"status": "completed", "message": result}), 200
