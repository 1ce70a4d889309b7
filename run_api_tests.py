import urllib.request
import urllib.error
import json
import uuid

BASE = "http://localhost:8000/api/v1"

def post(path, body):
    data = json.dumps(body).encode()
    req = urllib.request.Request(
        f"{BASE}{path}",
        data=data,
        headers={"Content-Type": "application/json"}
    )
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def get(path, params=None):
    url = f"{BASE}{path}"
    if params:
        url += "?" + "&".join(f"{k}={v}" for k, v in params.items())
    req = urllib.request.Request(url)
    try:
        with urllib.request.urlopen(req) as r:
            return json.loads(r.read())
    except urllib.error.HTTPError as e:
        return json.loads(e.read())

def section(title):
    print(f"\n{'='*60}")
    print(f"### {title} ###")
    print('='*60)

def label(name):
    print(f"\n--- {name} ---")

def out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False))

USER = f"smoke_{uuid.uuid4().hex[:8]}"

# ── T1 Testnet ─────────────────────────────────────────────────
section("T1: TESTNET")

label("T1-1: List coins")
out(get("/testnet/coins"))

label("T1-2: Market chart (bitcoin, 5 points)")
out(get("/testnet/market_chart/bitcoin", params={"points": 5}))

label("T1-3: Market chart for unknown coin")
out(get("/testnet/market_chart/notacoin"))

label("T1-4: Buy 1000 of bitcoin")
out(post("/testnet/trade", {"coin": "bitcoin", "type": "BUY", "amount": 1000}))

label("T1-5: Sell 400 of bitcoin")
out(post("/testnet/trade", {"coin": "bitcoin", "type": "SELL", "amount": 400}))

label("T1-6: Sell solana without holdings")
out(post("/testnet/trade", {"coin": "solana", "type": "SELL", "amount": 10}))

label("T1-7: Buy more than the balance")
out(post("/testnet/trade", {"coin": "ethereum", "type": "BUY", "amount": 999999}))

label("T1-8: Wallet")
out(get("/testnet/wallet"))

label("T1-9: Zero amount is logged and rejected")
out(post("/testnet/trade", {"coin": "bitcoin", "type": "BUY", "amount": 0}))

label("T1-10: Trade log (bitcoin)")
out(get("/testnet/trades/bitcoin"))

# ── T2 Wallet ──────────────────────────────────────────────────
section(f"T2: WALLET ({USER})")

label("T2-1: Latest polled price")
out(get("/market/latest"))

label("T2-2: First read creates the default wallet")
out(get(f"/wallet/{USER}"))

label("T2-3: Sell before any buy")
out(post(f"/wallet/{USER}/trade", {"type": "SELL"}))

label("T2-4: Buy")
out(post(f"/wallet/{USER}/trade", {"type": "BUY"}))

label("T2-5: Sell half")
out(post(f"/wallet/{USER}/trade", {"type": "SELL"}))

label("T2-6: Invalid trade type")
out(post(f"/wallet/{USER}/trade", {"type": "HOLD"}))

label("T2-7: Portfolio view")
out(get(f"/wallet/{USER}/portfolio"))

label("T2-8: Trade log")
out(get(f"/wallet/{USER}/trades", params={"limit": 10}))

label("T2-9: Market chart from the configured feed")
out(get("/market/market_chart/bitcoin", params={"points": 5}))

print("\n\n=== ALL TESTS COMPLETE ===\n")
