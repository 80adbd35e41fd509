import argparse
import base64
import hashlib
import hmac
import json
import os

import requests

# === CONFIG ===
SECRET = os.environ.get("DEPOSIT_WEBHOOK_SECRET", "")
WEBHOOK_URL = os.environ.get("WEBHOOK_URL", "http://127.0.0.1:8000/recharge-transactions/webhook/confirm")

parser = argparse.ArgumentParser(description="Send a signed deposit confirmation to the local API")
parser.add_argument("transaction_id", help="RechargeTransaction.transaction_id from your DB")
parser.add_argument("--amount", help="optional; must match the expected deposit")
parser.add_argument("--txid", default="", help="on-chain transaction hash")
args = parser.parse_args()

if not SECRET:
    raise SystemExit("DEPOSIT_WEBHOOK_SECRET is not set")

body = {"transaction_id": args.transaction_id, "txid": args.txid}
if args.amount:
    body["amount"] = args.amount

payload = json.dumps(body, separators=(",", ":")).encode("utf-8")

# base64(HMAC-SHA256(raw body))
sig = base64.b64encode(hmac.new(SECRET.encode("utf-8"), payload, hashlib.sha256).digest()).decode("ascii")

resp = requests.post(
    WEBHOOK_URL,
    headers={"Content-Type": "application/json", "X-DEP-SIGN": sig},
    data=payload,
    timeout=10,
)

print(resp.status_code, resp.text)
