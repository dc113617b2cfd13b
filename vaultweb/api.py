"""
AUTHENTICATOR API ROUTES - FLASK BLUEPRINT

All endpoints need a logged-in session (see routes.login_required) and only
ever touch the current user's entries.

- GET    /api/authenticators              entries with live code + remaining time
- POST   /api/authenticators              add from {"url": ...} or a manual secret
- GET    /api/authenticators/<id>         one entry with its current code
- PUT    /api/authenticators/<id>         rename / change issuer or account name
- DELETE /api/authenticators/<id>
- POST   /api/authenticators/<id>/verify  {"token": "123456", "window": 1}
- GET    /api/authenticators/<id>/uri     otpauth:// URI + QR code data URI
- POST   /api/authenticators/parse-qr     {"text": "otpauth://..."}
"""

import logging
import time

from flask import Blueprint, current_app, g, jsonify, request

from otpcore import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    base32_decode,
    format_otpauth_uri,
    generate_totp,
    get_remaining_time,
    parse_authenticator_url,
    verify_totp,
)
from otpcore.qr import qr_code_data_uri

from .app import get_store
from .logging_config import mask_secret
from .routes import json_body, login_required

logger = logging.getLogger(__name__)

authenticators_bp = Blueprint("authenticators", __name__, url_prefix="/api/authenticators")

MAX_DIGITS = 9


class InvalidEntryError(ValueError):
    """Request body does not describe a usable authenticator entry."""


def _entry_with_code(entry, now=None):
    """Public view of an entry plus its current code; the secret is not included."""
    if now is None:
        now = time.time()
    time_step = entry["time_step"]
    remaining = get_remaining_time(time_step, now=now)
    return {
        "id": entry["id"],
        "name": entry["name"],
        "issuer": entry["issuer"],
        "account_name": entry["account_name"],
        "digits": entry["digits"],
        "time_step": time_step,
        "code": generate_totp(entry["secret"], time_step, entry["digits"], at_time_millis=now * 1000),
        "remaining_time": remaining,
        "progress": round(remaining / time_step * 100, 1),
        "created_at": entry["created_at"],
        "updated_at": entry["updated_at"],
    }


def _read_int(data, key, default, minimum, maximum=None):
    value = data.get(key, default)
    if value in (None, ""):
        return default
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise InvalidEntryError(f"'{key}' must be an integer")
    if value < minimum or (maximum is not None and value > maximum):
        raise InvalidEntryError(f"'{key}' is out of range")
    return value


def _entry_fields_from_request(data):
    """Turn an add request into create_entry() keyword arguments."""
    digits = _read_int(data, "digits", DEFAULT_DIGITS, 1, MAX_DIGITS)
    time_step = _read_int(data, "time_step", DEFAULT_TIME_STEP, 1)
    name = str(data.get("name") or "").strip()

    url = str(data.get("url") or "").strip()
    if url:
        record = parse_authenticator_url(url)
        if record is None:
            raise InvalidEntryError("Unsupported authenticator URL")
        secret, issuer, account_name = record
        name = name or issuer or account_name or "Authenticator"
    else:
        secret = str(data.get("secret") or "").strip()
        issuer = str(data.get("issuer") or "").strip()
        account_name = str(data.get("account_name") or "").strip()
        if not name or not secret:
            raise InvalidEntryError("Name and secret are required")

    if not base32_decode(secret):
        raise InvalidEntryError("Secret is not a valid Base32 key")

    return {
        "name": name,
        "secret": secret,
        "issuer": issuer,
        "account_name": account_name,
        "digits": digits,
        "time_step": time_step,
    }


def _get_entry_or_404(entry_id):
    entry = get_store().get_entry(entry_id, g.user["id"])
    if entry is None:
        return None, (jsonify({"error": "Authenticator not found"}), 404)
    return entry, None


@authenticators_bp.route("", methods=["GET"])
@login_required
def list_authenticators():
    now = time.time()
    entries = get_store().list_entries(g.user["id"])
    return jsonify({"authenticators": [_entry_with_code(e, now) for e in entries]})


@authenticators_bp.route("", methods=["POST"])
@login_required
def add_authenticator():
    data = json_body()
    try:
        fields = _entry_fields_from_request(data)
    except InvalidEntryError as e:
        return jsonify({"error": str(e)}), 400

    entry = get_store().create_entry(g.user["id"], **fields)
    logger.info("Added authenticator '%s' (secret %s)", entry["name"], mask_secret(entry["secret"]))
    return jsonify({"authenticator": _entry_with_code(entry)}), 201


@authenticators_bp.route("/<entry_id>", methods=["GET"])
@login_required
def get_authenticator(entry_id):
    entry, error = _get_entry_or_404(entry_id)
    if error:
        return error
    return jsonify({"authenticator": _entry_with_code(entry)})


@authenticators_bp.route("/<entry_id>", methods=["PUT"])
@login_required
def update_authenticator(entry_id):
    data = json_body()
    entry, error = _get_entry_or_404(entry_id)
    if error:
        return error
    if "name" in data and not str(data["name"]).strip():
        return jsonify({"error": "Name cannot be empty"}), 400

    fields = {
        key: str(data[key]).strip()
        for key in ("name", "issuer", "account_name")
        if key in data and data[key] is not None
    }
    entry = get_store().update_entry(entry_id, g.user["id"], **fields)
    return jsonify({"authenticator": _entry_with_code(entry)})


@authenticators_bp.route("/<entry_id>", methods=["DELETE"])
@login_required
def delete_authenticator(entry_id):
    if not get_store().delete_entry(entry_id, g.user["id"]):
        return jsonify({"error": "Authenticator not found"}), 404
    return jsonify({"success": True})


@authenticators_bp.route("/<entry_id>/verify", methods=["POST"])
@login_required
def verify_authenticator(entry_id):
    data = json_body()
    token = str(data.get("token") or "").strip()
    if not token:
        return jsonify({"error": "Token is required"}), 400

    entry, error = _get_entry_or_404(entry_id)
    if error:
        return error
    try:
        window = _read_int(data, "window", current_app.config.get("VERIFY_WINDOW", 1), 0, 10)
    except InvalidEntryError as e:
        return jsonify({"error": str(e)}), 400

    valid = verify_totp(entry["secret"], token, entry["time_step"], entry["digits"], window)
    return jsonify({"valid": valid})


@authenticators_bp.route("/<entry_id>/uri", methods=["GET"])
@login_required
def authenticator_uri(entry_id):
    entry, error = _get_entry_or_404(entry_id)
    if error:
        return error

    issuer = entry["issuer"] or current_app.config.get("DEFAULT_ISSUER", "")
    account = entry["account_name"] or entry["name"]
    uri = format_otpauth_uri(
        entry["secret"], account, issuer, digits=entry["digits"], period=entry["time_step"]
    )
    return jsonify({"uri": uri, "qr_code": qr_code_data_uri(uri)})


@authenticators_bp.route("/parse-qr", methods=["POST"])
@login_required
def parse_qr():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return jsonify({"success": False, "error": "Unsupported request format"}), 400

    text = data.get("text")
    if text:
        record = parse_authenticator_url(text)
        if record is None:
            return jsonify({"success": False, "error": "Cannot parse authenticator URL"})
        return jsonify({"success": True, "data": record.to_dict()})

    if data.get("base64Image"):
        # QR images are decoded in the browser
        return jsonify({
            "success": False,
            "error": "Image parsing is not supported on the server, decode the QR code client-side",
        })

    return jsonify({"success": False, "error": "Either 'text' or 'base64Image' is required"}), 400
