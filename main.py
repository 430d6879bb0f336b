from flask import Flask, render_template, request, jsonify, current_app
from supabase import create_client
import logging
import math
import stripe

from config import Settings, ConfigError
from analyzer.analyzer import analyze, build_detailed_report, is_valid_url
from analyzer.leads import build_lead_row, save_lead, relay_lead, LeadSaveError
from analyzer.scoring import round_half_up


logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("audit-tool")

app = Flask(__name__)
app.config["SETTINGS"] = Settings.from_env()

_missing = app.config["SETTINGS"].missing()
if _missing:
    logger.warning("Missing configuration: %s", ", ".join(_missing))


def get_settings() -> Settings:
    return current_app.config["SETTINGS"]


def get_supabase(settings):
    return create_client(settings.supabase_url, settings.supabase_key)


def get_request_json() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def get_str(data, key) -> str:
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ""


def get_public_base_url(settings):
    base = request.headers.get("Origin") or settings.public_base_url or request.host_url
    if not base.startswith("http://") and not base.startswith("https://"):
        base = "https://" + base
    return base.rstrip("/")


@app.after_request
def add_cors_headers(response):
    if request.path.startswith("/api/"):
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET,OPTIONS,POST"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/audit.html')
def audit_results():
    return render_template('audit.html')


@app.route('/success.html')
def payment_success():
    return render_template('success.html', session_id=request.args.get("session_id", ""))


@app.route('/api/analyze', methods=['POST'])
def analyze_site():
    data = get_request_json()
    url = get_str(data, "url")
    email = get_str(data, "email")
    name = get_str(data, "name")

    if not url or not email:
        return jsonify({"error": "URL and email are required"}), 400
    if not is_valid_url(url):
        return jsonify({"error": "Please enter a valid URL (example: https://example.com)."}), 400

    settings = get_settings()
    try:
        settings.require("pagespeed_api_key", "gemini_api_key")
    except ConfigError as e:
        logger.error("Analyze rejected: %s", e)
        return jsonify({"error": str(e)}), 500

    try:
        result = analyze(url, email, name, settings)
    except Exception as e:
        logger.exception("Analysis failed for %s", url)
        return jsonify({"error": "Analysis failed", "message": str(e)}), 500
    return jsonify(result)


@app.route('/api/create-payment', methods=['POST'])
def create_payment():
    data = get_request_json()
    email = get_str(data, "email")
    url = get_str(data, "url")
    if not email or not url:
        return jsonify({"error": "Email and URL are required"}), 400

    settings = get_settings()
    amount = data.get("amount")
    if amount in (None, ""):
        amount = settings.report_price
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        return jsonify({"error": "Amount must be a number"}), 400
    if not math.isfinite(amount) or amount <= 0:
        return jsonify({"error": "Amount must be positive"}), 400

    try:
        settings.require("stripe_secret_key")
    except ConfigError as e:
        logger.error("Payment rejected: %s", e)
        return jsonify({"error": str(e)}), 500

    try:
        base_url = get_public_base_url(settings)
        session_obj = stripe.checkout.Session.create(
            api_key=settings.stripe_secret_key,
            mode="payment",
            payment_method_types=["card"],
            line_items=[{
                "price_data": {
                    "currency": settings.report_currency,
                    "product_data": {
                        "name": "Detailed Website Audit Report",
                        "description": f"Complete analysis for {url}",
                    },
                    "unit_amount": round_half_up(amount * 100),
                },
                "quantity": 1,
            }],
            success_url=f"{base_url}/success.html?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{base_url}/audit.html",
            customer_email=email,
            metadata={"website_url": url, "email": email},
        )
    except Exception as e:
        logger.exception("Stripe checkout failed")
        return jsonify({"error": "Payment creation failed", "message": str(e)}), 500
    return jsonify({"sessionId": session_obj.id, "url": session_obj.url})


@app.route('/api/generate-pdf', methods=['POST'])
def generate_pdf():
    data = get_request_json()
    session_id = get_str(data, "sessionId")
    if not session_id:
        return jsonify({"error": "sessionId is required"}), 400

    settings = get_settings()
    try:
        settings.require("stripe_secret_key")
    except ConfigError as e:
        logger.error("Report rejected: %s", e)
        return jsonify({"error": str(e)}), 500

    try:
        session_obj = stripe.checkout.Session.retrieve(session_id, api_key=settings.stripe_secret_key)
    except Exception:
        logger.exception("Stripe session lookup failed for %s", session_id)
        return jsonify({"error": "Report generation failed"}), 500

    if session_obj.get("payment_status") != "paid":
        return jsonify({"error": "Payment not completed"}), 400

    url = (session_obj.get("metadata") or {}).get("website_url")
    if not url:
        logger.error("Checkout session %s has no website_url metadata", session_id)
        return jsonify({"error": "Report generation failed"}), 500

    try:
        report = build_detailed_report(url, settings)
    except Exception:
        logger.exception("Detailed report failed for %s", url)
        return jsonify({"error": "Report generation failed"}), 500
    return jsonify({
        "success": True,
        "report": report,
        "downloadUrl": f"/download-pdf?session={session_id}",
    })


@app.route('/api/lead-capture', methods=['POST'])
def lead_capture():
    data = get_request_json()
    if not get_str(data, "type") or not get_str(data, "email"):
        return jsonify({"error": "Type and email are required"}), 400

    settings = get_settings()
    try:
        settings.require("supabase_url", "supabase_key")
    except ConfigError as e:
        logger.error("Supabase credentials missing: %s", e)
        return jsonify({"error": "Database configuration missing"}), 500

    row = build_lead_row(data)
    try:
        saved = save_lead(get_supabase(settings), row)
    except LeadSaveError as e:
        logger.error("Lead capture error: %s", e)
        return jsonify({"error": "Failed to capture lead", "message": str(e)}), 500
    except Exception as e:
        logger.exception("Supabase client error")
        return jsonify({"error": "Failed to capture lead", "message": str(e)}), 500

    relay_lead({**row, **saved}, settings.crm_webhook_url)

    return jsonify({
        "success": True,
        "message": "Lead captured successfully",
        "leadId": saved.get("id"),
        "type": row["type"],
    })


@app.errorhandler(404)
def not_found(e):
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(405)
def method_not_allowed(e):
    return jsonify({"error": "Method not allowed"}), 405


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=1500)
