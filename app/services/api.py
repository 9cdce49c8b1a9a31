# app/services/api.py

import os
import requests

# Base URL of the FastAPI backend
API_URL = os.getenv("API_URL", "http://localhost:8000")
TIMEOUT = 10


def _auth_headers(token):
    return {"Authorization": f"Bearer {token}"} if token else {}


def _error_message(res):
    """
    Pulls a readable message out of an error response.
    Validation errors come back as a list under 'errors'.
    """
    try:
        data = res.json()
    except ValueError:
        return f"Error: Status {res.status_code}"

    if data.get("errors"):
        return "; ".join(f"{e.get('field')}: {e.get('message')}" for e in data["errors"])
    return data.get("detail") or data.get("message") or f"Error: Status {res.status_code}"


def _request(method, path, token=None, **kwargs):
    try:
        res = requests.request(
            method,
            f"{API_URL}{path}",
            headers=_auth_headers(token),
            timeout=TIMEOUT,
            **kwargs,
        )
    except requests.RequestException as e:
        return {"error": f"Server unreachable: {e}"}

    if res.status_code >= 400:
        return {"error": _error_message(res)}
    return res.json()


# -------------------------------
# Authentication-related functions
# -------------------------------

def login_user(email, password):
    """
    Logs in a user and returns {'token', 'user'}.
    """
    return _request("POST", "/api/auth/login", json={"email": email, "password": password})


def register_user(username, email, password):
    return _request(
        "POST",
        "/api/auth/register",
        json={"username": username, "email": email, "password": password},
    )


def get_user_info(token):
    """
    Retrieves the profile of the token holder.
    """
    return _request("GET", "/api/auth/me", token)


# -------------------------
# Inventory
# -------------------------

def list_sweets(token):
    data = _request("GET", "/api/sweets", token)
    return data if data.get("error") else data.get("sweets", [])


def search_sweets(token, name=None, category=None, min_price=None, max_price=None):
    """
    Searches sweets; filters left empty are not sent.
    """
    params = {}
    if name:
        params["name"] = name
    if category:
        params["category"] = category
    if min_price is not None:
        params["minPrice"] = min_price
    if max_price is not None:
        params["maxPrice"] = max_price

    data = _request("GET", "/api/sweets/search", token, params=params)
    return data if data.get("error") else data.get("sweets", [])


def create_sweet(token, name, category, price, quantity):
    payload = {"name": name, "category": category, "price": price, "quantity": quantity}
    return _request("POST", "/api/sweets", token, json=payload)


def update_sweet(token, sweet_id, name, category, price, quantity):
    payload = {"name": name, "category": category, "price": price, "quantity": quantity}
    return _request("PUT", f"/api/sweets/{sweet_id}", token, json=payload)


def delete_sweet(token, sweet_id):
    return _request("DELETE", f"/api/sweets/{sweet_id}", token)


def purchase_sweet(token, sweet_id):
    return _request("POST", f"/api/sweets/{sweet_id}/purchase", token)


def restock_sweet(token, sweet_id, quantity):
    return _request("POST", f"/api/sweets/{sweet_id}/restock", token, json={"quantity": quantity})
