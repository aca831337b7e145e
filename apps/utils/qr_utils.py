import hmac
import hashlib
import time
import qrcode
from io import BytesIO
import base64
from django.conf import settings
from apps.core.models import Settings


def _sign(payload_data):
	secret = settings.QR_SECRET.encode()
	return hmac.new(secret, payload_data.encode(), hashlib.sha256).hexdigest()


def generate_qr_payload(student_id, nonce):
	"""Generate HMAC-signed identity payload for a student"""
	app_settings = Settings.get_settings()
	version = app_settings.qr_secret_version
	issued_at = int(time.time())

	payload_data = f"{version}|{student_id}|{issued_at}|{nonce}"
	return f"{payload_data}|{_sign(payload_data)}"


def verify_qr_payload(payload):
	"""Verify QR payload HMAC and return (student_id, message)"""
	parts = (payload or '').strip().split('|')
	if len(parts) != 5:
		return None, "Invalid QR code"

	version, student_id, issued_at, nonce, signature = parts

	try:
		version = int(version)
	except ValueError:
		return None, "Invalid QR code"

	app_settings = Settings.get_settings()
	if version != app_settings.qr_secret_version:
		return None, "QR code version mismatch"

	payload_data = f"{version}|{student_id}|{issued_at}|{nonce}"
	if not hmac.compare_digest(signature, _sign(payload_data)):
		return None, "Invalid signature"

	return student_id, "Valid"


def generate_qr_image(payload):
	"""Generate QR code image from payload, base64 encoded PNG"""
	qr = qrcode.QRCode(
		version=1,
		error_correction=qrcode.constants.ERROR_CORRECT_L,
		box_size=10,
		border=4,
	)
	qr.add_data(payload)
	qr.make(fit=True)

	img = qr.make_image(fill_color="black", back_color="white")

	buffer = BytesIO()
	img.save(buffer, format='PNG')
	buffer.seek(0)

	return base64.b64encode(buffer.getvalue()).decode()
