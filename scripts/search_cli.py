# /scripts/search_cli.py
# Interactive CLI to exercise the CosmeticGuard API:
# 1) Autocomplete + paginated search
# 2) Company score breakdown
# 3) Alternatives for a product
#
# Usage:
#   python scripts/search_cli.py
#   python scripts/search_cli.py --base-url http://127.0.0.1:8000 --api-key $SERVICE_API_KEY
#
# Requires: requests

from __future__ import annotations
import argparse, os, uuid
from typing import Optional

import requests

from clients.cosmetic_guard_client import CosmeticGuardClient


# -------------------------------
# CLI utilities
# -------------------------------
def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Interactive CosmeticGuard CLI (search + score breakdown)")
    ap.add_argument("--base-url", default=os.getenv("COSMETICGUARD_URL", "http://127.0.0.1:8000"))
    ap.add_argument("--api-key", default=os.getenv("SERVICE_API_KEY", ""))
    ap.add_argument("--session-id", default=None, help="Use a fixed X-Session-Id (else auto-generate)")
    ap.add_argument("--page-size", type=int, default=10)
    ap.add_argument("--timeout", type=int, default=30)
    return ap.parse_args(argv)

def print_div():
    print("-" * 64)

def color(s: str, c: str) -> str:
    colors = {
        "green": "\033[92m", "red": "\033[91m", "yellow": "\033[93m",
        "cyan": "\033[96m", "blue": "\033[94m", "end": "\033[0m"
    }
    return f"{colors.get(c,'')}{s}{colors['end']}"

def risk_color(level: Optional[str]) -> str:
    return {"low": "green", "medium": "yellow", "high": "red"}.get((level or "").lower(), "blue")


# -------------------------------
# Rendering
# -------------------------------
def format_product_line(p: dict) -> str:
    lvl = p.get("riskLevel") or "-"
    fallback = " (fallback)" if p.get("scoreIsFallback") else ""
    line = f"{p.get('notificationNumber')}  {p.get('name')}  [{p.get('brand') or '-'}]  " \
           f"score={p.get('riskScore')}{fallback} risk={color(lvl, risk_color(lvl))}"
    harmful = p.get("harmfulIngredients") or []
    if harmful:
        line += "\n     harmful: " + ", ".join(harmful)
    return line

def print_breakdown(bd: dict):
    print_div()
    print(f"{color('COMPANY', 'cyan')}: {bd.get('company')}  final={bd.get('finalScore')}  base={bd.get('baseScore')}")
    for c in bd.get("components") or []:
        mark = color("+", "green") if c.get("isGood") else color("-", "red")
        print(f"  {mark} {c.get('name')} ({c.get('weight')}%): raw={c.get('rawScore')} -> {c.get('weightedScore')}")
    for b in bd.get("bonuses") or []:
        print(f"  {color('bonus', 'green')} {b.get('name')}: +{b.get('points')}")
    for p in bd.get("penalties") or []:
        print(f"  {color('penalty', 'red')} {p.get('name')}: {p.get('points')}")
    if not bd.get("reconciled", True):
        print(color(f"  (reconciliation error {bd.get('reconciliationError')})", "yellow"))
    if bd.get("explanation"):
        print(f"{color('EXPLANATION', 'blue')}: {bd['explanation']}")


# -------------------------------
# Flows
# -------------------------------
def search_flow(client: CosmeticGuardClient, page_size: int):
    q = input("Query: ").strip()
    if len(q) < 3:
        print("Query minimal 3 karakter.")
        return
    for s in client.suggestions(q, limit=5):
        print(f"  ~ {s.get('name')} ({s.get('matchType')}, {s.get('similarity')})")
    page = 1
    while True:
        res = client.search_page(q, page=page, page_size=page_size)
        print_div()
        print(f"Page {res['currentPage']}/{res['totalPages']}  total={res['totalCount']}")
        for p in res["items"]:
            print("  " + format_product_line(p))
        if not res["hasNextPage"]:
            break
        if input("Halaman berikutnya? [Y/n]: ").strip().lower() == "n":
            break
        page += 1

def breakdown_flow(client: CosmeticGuardClient):
    name = input("Nama company: ").strip()
    if not name:
        return
    code = input("Notif code (opsional): ").strip() or None
    print_breakdown(client.score_breakdown(name, notif_code=code))

def alternatives_flow(client: CosmeticGuardClient):
    code = input("Notif code: ").strip()
    if not code:
        return
    alts = client.alternatives(code)
    if not alts:
        print("Tidak ada alternatif.")
    for p in alts:
        print("  " + format_product_line(p))

def prompt_menu() -> str:
    print_div()
    print("CosmeticGuard Interactive")
    print("1) Cari produk")
    print("2) Score breakdown company")
    print("3) Alternatif produk")
    print("r) Reset cache sesi")
    print("q) Keluar")
    return input("Pilih [1/2/3/r/q]: ").strip().lower()


# -------------------------------
# Main
# -------------------------------
def main(argv=None):
    args = parse_args(argv)
    session_id = args.session_id or f"cli-{uuid.uuid4()}"
    client = CosmeticGuardClient(args.base_url, args.api_key, session_id=session_id, timeout=args.timeout)
    print(color(f"Session: {session_id}", "cyan"))
    print(f"Server: {args.base_url}")

    flows = {
        "1": lambda: search_flow(client, args.page_size),
        "2": lambda: breakdown_flow(client),
        "3": lambda: alternatives_flow(client),
        "r": client.reset_session,
    }
    while True:
        choice = prompt_menu()
        if choice == "q":
            break
        flow = flows.get(choice)
        if flow is None:
            print("Pilihan tidak dikenal.")
            continue
        try:
            flow()
        except requests.HTTPError as e:
            body = getattr(e, "response", None)
            print(color("HTTP error:", "red"), e, body.text if body is not None else "")
        except requests.RequestException as e:
            print(color("Error:", "red"), e)


if __name__ == "__main__":
    main()
