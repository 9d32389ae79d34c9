"""Minimal PayPal Orders v2 client over `requests`."""
import time

import requests
from flask import current_app

LIVE_BASE = "https://api-m.paypal.com"
SANDBOX_BASE = "https://api-m.sandbox.paypal.com"
TIMEOUT = 20


class PayPalError(RuntimeError):
    pass


def _raise_with_body(resp):
    """Raise with the response body included so failures are debuggable from logs"""
    try:
        resp.raise_for_status()
    except requests.HTTPError as e:
        try:
            body = resp.json()
        except ValueError:
            body = resp.text
        raise PayPalError(f"PayPal HTTPError {resp.status_code}: {body}") from e


class PayPalClient:
    def __init__(self, client_id=None, client_secret=None, mode='sandbox', app_url=''):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = LIVE_BASE if mode == 'live' else SANDBOX_BASE
        self.app_url = (app_url or '').rstrip('/')
        self._access_token = None
        self._token_expiry = 0.0

    @classmethod
    def from_config(cls, config):
        return cls(
            client_id=config.get('PAYPAL_CLIENT_ID'),
            client_secret=config.get('PAYPAL_CLIENT_SECRET'),
            mode=config.get('PAYPAL_MODE', 'sandbox'),
            app_url=config.get('APP_URL', ''),
        )

    def access_token(self):
        if self._access_token and time.time() < self._token_expiry:
            return self._access_token

        if not self.client_id or not self.client_secret:
            raise PayPalError("Missing PAYPAL_CLIENT_ID or PAYPAL_CLIENT_SECRET")

        resp = requests.post(
            f"{self.base_url}/v1/oauth2/token",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            data={"grant_type": "client_credentials"},
            auth=(self.client_id, self.client_secret),
            timeout=TIMEOUT,
        )
        _raise_with_body(resp)
        payload = resp.json()
        self._access_token = payload["access_token"]
        # Refresh a minute early
        self._token_expiry = time.time() + max(int(payload.get("expires_in", 0)) - 60, 0)
        return self._access_token

    def _headers(self):
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token()}",
        }

    def create_order(self, amount, currency='USD'):
        body = {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {
                    "currency_code": currency,
                    "value": f"{float(amount):.2f}",
                },
                "description": "NexusAI Subscription",
            }],
            "application_context": {
                "brand_name": "NexusAI",
                "landing_page": "BILLING",
                "user_action": "PAY_NOW",
                "return_url": f"{self.app_url}/api/payment/capture-order",
                "cancel_url": f"{self.app_url}/upgrade",
            },
        }
        resp = requests.post(f"{self.base_url}/v2/checkout/orders", headers=self._headers(), json=body, timeout=TIMEOUT)
        _raise_with_body(resp)
        return resp.json()

    def capture_order(self, order_id):
        resp = requests.post(
            f"{self.base_url}/v2/checkout/orders/{order_id}/capture",
            headers=self._headers(),
            json={},
            timeout=TIMEOUT,
        )
        _raise_with_body(resp)
        return resp.json()


def approval_url(order):
    for link in order.get('links') or []:
        if link.get('rel') == 'approve':
            return link.get('href')
    return None


def captured_amount(capture):
    """Amount of the first capture of the first purchase unit, as a float"""
    unit = capture['purchase_units'][0]
    return float(unit['payments']['captures'][0]['amount']['value'])


def init_app(app):
    app.extensions['paypal'] = PayPalClient.from_config(app.config)


def get_client():
    return current_app.extensions['paypal']
